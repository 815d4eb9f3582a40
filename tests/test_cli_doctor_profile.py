from __future__ import annotations

import json

import httpx
from cryptography.fernet import Fernet
from typer.testing import CliRunner

from mpx.cli import app
from mpx.config import ConfigStore

BASE_URL = "https://mp.example.test/ministryplatformapi"
TOKEN_URL = f"{BASE_URL}/oauth/connect/token"

runner = CliRunner()


def test_doctor_reports_missing_variables():
    result = runner.invoke(app, ["doctor"])

    assert result.exit_code == 1
    assert "MINISTRY_PLATFORM_BASE_URL" in result.stdout
    assert "MINISTRY_PLATFORM_CLIENT_SECRET" in result.stdout


def test_doctor_probes_platform(platform_env, fake_platform, respx_mock):
    respx_mock.get(f"{BASE_URL}/domain").mock(
        return_value=httpx.Response(200, json={"DisplayName": "Grace Church"})
    )

    result = runner.invoke(app, ["doctor"])

    assert result.exit_code == 0, result.output
    assert "Platform reachable" in result.stdout
    assert "Grace Church" in result.stdout
    assert fake_platform.token_requests == 1


def test_doctor_reports_rejected_credentials(platform_env, respx_mock):
    respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(400, json={"error": "invalid_client"})
    )

    result = runner.invoke(app, ["doctor"])

    assert result.exit_code == 1
    assert "Platform probe failed" in result.stdout


def test_doctor_can_skip_probe(platform_env):
    result = runner.invoke(app, ["doctor", "--no-check-platform"])

    assert result.exit_code == 0, result.output
    assert BASE_URL in result.stdout


def test_profile_save_list_use_delete():
    saved = runner.invoke(
        app,
        ["profile", "save", "prod", "--base-url", BASE_URL, "--client-id", "client", "--client-secret-env", "PROD_SECRET"],
    )
    assert saved.exit_code == 0, saved.output
    assert "Saved profile prod (default)" in saved.stdout
    runner.invoke(app, ["profile", "save", "test", "--base-url", BASE_URL])

    listed = runner.invoke(app, ["profile", "list"])
    assert listed.exit_code == 0
    assert "* prod" in listed.stdout
    assert "  test" in listed.stdout

    used = runner.invoke(app, ["profile", "use", "test"])
    assert used.exit_code == 0
    assert ConfigStore().load().default_profile == "test"

    missing = runner.invoke(app, ["profile", "use", "nope"])
    assert missing.exit_code == 2

    deleted = runner.invoke(app, ["profile", "delete", "test"])
    assert deleted.exit_code == 0
    assert sorted(ConfigStore().load().profiles) == ["prod"]


def test_profile_show_masks_tokens(monkeypatch):
    monkeypatch.setenv("MPX_CONFIG_ENCRYPTION_KEY", Fernet.generate_key().decode("utf-8"))
    runner.invoke(app, ["profile", "save", "dev", "--base-url", BASE_URL, "--access-token", "user-token"])

    result = runner.invoke(app, ["profile", "show", "dev"])

    assert result.exit_code == 0, result.output
    assert "<hidden>" in result.stdout
    assert "user-token" not in result.stdout
    raw = json.loads(ConfigStore().path.read_text(encoding="utf-8"))
    assert raw["profiles"]["dev"]["access_token"].startswith("enc:")


def test_profile_settings_feed_commands(monkeypatch, respx_mock):
    monkeypatch.setenv("PROD_SECRET", "secret")
    runner.invoke(
        app,
        ["profile", "save", "prod", "--base-url", BASE_URL, "--client-id", "client", "--client-secret-env", "PROD_SECRET"],
    )
    token_route = respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"access_token": "from-profile"})
    )
    route = respx_mock.get(f"{BASE_URL}/domain").mock(
        return_value=httpx.Response(200, json={"DisplayName": "Grace"})
    )

    result = runner.invoke(app, ["--profile", "prod", "domain", "info"])

    assert result.exit_code == 0, result.output
    assert b"client_id=client" in token_route.calls.last.request.content
    assert route.calls.last.request.headers["Authorization"] == "Bearer from-profile"
