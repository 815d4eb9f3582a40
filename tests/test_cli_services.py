from __future__ import annotations

import json

import httpx
from typer.testing import CliRunner

from mpx.cli import app

BASE_URL = "https://mp.example.test/ministryplatformapi"
TOKEN_URL = f"{BASE_URL}/oauth/connect/token"

runner = CliRunner()


def test_procs_exec_with_params(platform_env, fake_platform, respx_mock):
    route = respx_mock.get(f"{BASE_URL}/procs/api_Custom_GetEvents").mock(
        return_value=httpx.Response(200, json=[[{"Event_ID": 3}]])
    )

    result = runner.invoke(
        app, ["procs", "exec", "api_Custom_GetEvents", "-p", "DomainID=1", "-p", "@Days=7"]
    )

    assert result.exit_code == 0, result.output
    assert "Event_ID" in result.stdout
    params = route.calls.last.request.url.params
    assert params["@DomainID"] == "1"
    assert params["@Days"] == "7"
    assert fake_platform.token_requests == 1


def test_procs_exec_with_body(platform_env, fake_platform, respx_mock):
    route = respx_mock.post(f"{BASE_URL}/procs/api_Custom_Save").mock(
        return_value=httpx.Response(200, json=[[]])
    )

    result = runner.invoke(
        app, ["procs", "exec", "api_Custom_Save", "--body", json.dumps({"@Name": "x"})]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(route.calls.last.request.content) == {"@Name": "x"}


def test_procs_list(platform_env, fake_platform, respx_mock):
    respx_mock.get(f"{BASE_URL}/procs").mock(
        return_value=httpx.Response(
            200,
            json=[
                {
                    "Name": "api_Custom_GetEvents",
                    "Parameters": [{"Name": "@DomainID", "DataType": "Integer32", "Direction": "Input"}],
                }
            ],
        )
    )

    result = runner.invoke(app, ["procs", "list"])

    assert result.exit_code == 0, result.output
    assert "api_Custom_GetEvents(@DomainID Integer32)" in result.stdout


def test_files_download_needs_only_base_url(monkeypatch, respx_mock, tmp_path):
    monkeypatch.setenv("MINISTRY_PLATFORM_BASE_URL", BASE_URL)
    token_route = respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(500))
    route = respx_mock.get(f"{BASE_URL}/files/abc-123").mock(
        return_value=httpx.Response(200, content=b"binary")
    )
    target = tmp_path / "out.bin"

    result = runner.invoke(app, ["files", "download", "abc-123", "--output", str(target)])

    assert result.exit_code == 0, result.output
    assert target.read_bytes() == b"binary"
    assert not token_route.called
    assert "Authorization" not in route.calls.last.request.headers


def test_files_upload(platform_env, fake_platform, respx_mock, tmp_path):
    route = respx_mock.post(f"{BASE_URL}/files/Contacts/7").mock(
        return_value=httpx.Response(200, json=[{"FileId": 1, "FileName": "a.txt"}])
    )
    upload = tmp_path / "a.txt"
    upload.write_text("hello", encoding="utf-8")

    result = runner.invoke(
        app, ["files", "upload", "Contacts", "7", str(upload), "--description", "Notes"]
    )

    assert result.exit_code == 0, result.output
    request = route.calls.last.request
    assert b'filename="a.txt"' in request.content
    assert request.url.params["$description"] == "Notes"


def test_domain_filters_and_metadata(platform_env, fake_platform, respx_mock):
    respx_mock.get(f"{BASE_URL}/domain/filters").mock(
        return_value=httpx.Response(200, json=[{"Key": 0, "Value": "Unassigned"}])
    )
    respx_mock.get(f"{BASE_URL}/tables").mock(
        return_value=httpx.Response(200, json=[{"Name": "Contacts", "AccessLevel": "Read"}])
    )
    refresh = respx_mock.get(f"{BASE_URL}/refreshMetadata").mock(return_value=httpx.Response(204))

    filters = runner.invoke(app, ["domain", "filters"])
    tables = runner.invoke(app, ["metadata", "tables"])
    refreshed = runner.invoke(app, ["metadata", "refresh"])

    assert filters.exit_code == 0, filters.output
    assert "Unassigned" in filters.stdout
    assert tables.exit_code == 0, tables.output
    assert "Contacts (Read)" in tables.stdout
    assert refreshed.exit_code == 0, refreshed.output
    assert refresh.called


def test_generate_models(platform_env, fake_platform, respx_mock, tmp_path):
    fake_platform.add_table(
        "Pledges", "Pledges_ID", [{"Pledges_ID": 1, "Amount": 10.5, "Notes": None}]
    )
    respx_mock.get(f"{BASE_URL}/tables").mock(
        return_value=httpx.Response(
            200,
            json=[
                {
                    "Name": "Contacts",
                    "Columns": [{"Name": "Contact_ID", "DataType": "Integer32", "IsRequired": True}],
                },
                {"Name": "Pledges"},
            ],
        )
    )
    out = tmp_path / "models"

    result = runner.invoke(app, ["generate-models", "--output", str(out), "--detailed"])

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out.iterdir()) == ["__init__.py", "contacts.py", "pledges.py"]
    pledges = (out / "pledges.py").read_text(encoding="utf-8")
    assert "Amount: float" in pledges
    assert "1 sample records" in pledges
