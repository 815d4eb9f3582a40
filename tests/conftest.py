from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx

# Ensure the repository-local ``src`` directory is importable when the project is
# not installed as a package.
SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from mpx.auth.base import TokenProvider, TokenResult  # noqa: E402
from mpx.client import MinistryPlatformClient  # noqa: E402
from mpx.provider import MinistryPlatformProvider, MPHelper  # noqa: E402

BASE_URL = "https://mp.example.test/ministryplatformapi"
TOKEN_URL = f"{BASE_URL}/oauth/connect/token"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from real credentials, ``.env`` files and ``~/.mpx``."""

    for name in (
        "MINISTRY_PLATFORM_BASE_URL",
        "MINISTRY_PLATFORM_CLIENT_ID",
        "MINISTRY_PLATFORM_CLIENT_SECRET",
        "MINISTRY_PLATFORM_SCOPE",
        "MINISTRY_PLATFORM_TOKEN_PATH",
        "MINISTRY_PLATFORM_TIMEOUT",
        "MPX_ACCESS_TOKEN",
        "MPX_CONFIG_ENCRYPTION_KEY",
        "MPX_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MPX_HOME", str(tmp_path / "mpx-home"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def respx_mock():
    with respx.mock(assert_all_called=False) as respx_mgr:
        yield respx_mgr


@pytest.fixture
def platform_env(monkeypatch):
    monkeypatch.setenv("MINISTRY_PLATFORM_BASE_URL", BASE_URL)
    monkeypatch.setenv("MINISTRY_PLATFORM_CLIENT_ID", "client")
    monkeypatch.setenv("MINISTRY_PLATFORM_CLIENT_SECRET", "secret")


class CountingTokenProvider(TokenProvider):
    """Issues ``token-1``, ``token-2``... and records how often it was asked."""

    def __init__(self) -> None:
        self.calls = 0

    async def get_token(self) -> TokenResult:
        self.calls += 1
        return TokenResult(f"token-{self.calls}", expires_in=3600)


@pytest.fixture
def token_provider() -> CountingTokenProvider:
    return CountingTokenProvider()


@pytest.fixture
def make_helper(token_provider):
    def factory(access_token: str | None = None) -> MPHelper:
        client = MinistryPlatformClient(
            BASE_URL,
            token_provider=None if access_token else token_provider,
            access_token=access_token,
        )
        return MPHelper(MinistryPlatformProvider(client))

    return factory


class FakePlatform:
    """In-memory ``/tables`` endpoint plus the token endpoint.

    Supports ``Column=value`` filters, ``$top`` and ``$allowCreate``; unknown
    tables answer 404 with a JSON body like the real API.
    """

    def __init__(self, router: respx.MockRouter) -> None:
        self.tables: dict[str, dict[int, dict[str, Any]]] = {}
        self.keys: dict[str, str] = {}
        self.token_requests = 0
        router.post(TOKEN_URL).mock(side_effect=self._token)
        router.route(
            host="mp.example.test",
            path__regex=r"^/ministryplatformapi/tables/(?P<table>[^/]+)(?:/(?P<record_id>\d+))?$",
        ).mock(side_effect=self._tables)

    def add_table(self, name: str, key: str, rows: list[dict[str, Any]] | None = None) -> None:
        self.keys[name] = key
        self.tables[name] = {row[key]: dict(row) for row in rows or []}

    def _token(self, request: httpx.Request) -> httpx.Response:
        self.token_requests += 1
        return httpx.Response(
            200,
            json={
                "access_token": f"platform-token-{self.token_requests}",
                "expires_in": 3600,
                "token_type": "Bearer",
            },
        )

    def _tables(
        self, request: httpx.Request, table: str, record_id: str | None = None
    ) -> httpx.Response:
        if table not in self.tables:
            return httpx.Response(404, json={"Message": f"Table '{table}' does not exist"})
        rows = self.tables[table]
        key = self.keys[table]
        params = request.url.params
        if request.method == "GET":
            if record_id is not None:
                row = rows.get(int(record_id))
                return httpx.Response(200, json=[row] if row else [])
            result = list(rows.values())
            expression = params.get("$filter")
            if expression:
                column, _, value = expression.partition("=")
                result = [r for r in result if str(r.get(column.strip())) == value.strip().strip("'")]
            top = params.get("$top")
            if top:
                result = result[: int(top)]
            return httpx.Response(200, json=result)
        if request.method == "POST":
            created = []
            for record in json.loads(request.content)["records"]:
                new_id = max(rows, default=0) + 1
                row = {**record, key: new_id}
                rows[new_id] = row
                created.append(row)
            return httpx.Response(200, json=created)
        if request.method == "PUT":
            allow_create = params.get("$allowCreate") == "true"
            updated = []
            for record in json.loads(request.content)["records"]:
                record_key = record.get(key)
                if record_key in rows:
                    rows[record_key].update(record)
                elif allow_create and record_key is not None:
                    rows[record_key] = dict(record)
                else:
                    return httpx.Response(400, json={"Message": f"Record {record_key} not found"})
                updated.append(rows[record_key])
            return httpx.Response(200, json=updated)
        if request.method == "DELETE":
            deleted = [rows.pop(int(i)) for i in params.get_list("id") if int(i) in rows]
            return httpx.Response(200, json=deleted)
        return httpx.Response(405)


@pytest.fixture
def fake_platform(respx_mock) -> FakePlatform:
    return FakePlatform(respx_mock)
