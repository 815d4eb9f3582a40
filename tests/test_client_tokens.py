from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from mpx.auth.base import StaticTokenProvider, TokenProvider, TokenResult
from mpx.client import DELEGATED_TOKEN_LIFE, TOKEN_LIFE, MinistryPlatformClient
from mpx.config import MinistryPlatformSettings
from mpx.errors import AuthError, ConfigError

BASE_URL = "https://mp.example.test/ministryplatformapi"
TOKEN_URL = f"{BASE_URL}/oauth/connect/token"


class SlowTokenProvider(TokenProvider):
    def __init__(self) -> None:
        self.calls = 0

    async def get_token(self) -> TokenResult:
        self.calls += 1
        await asyncio.sleep(0.01)
        return TokenResult(f"slow-{self.calls}")


class FailingTokenProvider(TokenProvider):
    async def get_token(self) -> TokenResult:
        raise AuthError("invalid_client", status_code=400)


class Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def test_new_client_forces_refresh_on_first_use():
    client = MinistryPlatformClient(BASE_URL, token_provider=StaticTokenProvider("abc"))

    assert client.token.is_expired(datetime.now(timezone.utc))

    async def scenario():
        async with client:
            await client.ensure_valid_token()

    asyncio.run(scenario())
    assert client.token.value == "abc"
    assert not client.token.delegated


def test_concurrent_callers_share_single_refresh():
    provider = SlowTokenProvider()
    client = MinistryPlatformClient(BASE_URL, token_provider=provider)

    async def scenario():
        async with client:
            await asyncio.gather(*(client.ensure_valid_token() for _ in range(25)))

    asyncio.run(scenario())

    assert provider.calls == 1
    assert client.token.value == "slow-1"
    assert client.token.expires_at > datetime.now(timezone.utc)


def test_token_expires_after_five_minutes():
    clock = Clock()
    provider = SlowTokenProvider()
    client = MinistryPlatformClient(BASE_URL, token_provider=provider, clock=clock)

    async def scenario():
        async with client:
            await client.ensure_valid_token()
            assert client.token.expires_at == clock.now + TOKEN_LIFE
            clock.now += TOKEN_LIFE - timedelta(seconds=1)
            await client.ensure_valid_token()
            assert provider.calls == 1
            clock.now += timedelta(seconds=1)
            await client.ensure_valid_token()

    asyncio.run(scenario())

    assert provider.calls == 2
    assert client.token.value == "slow-2"


def test_refresh_failure_propagates_and_keeps_old_token():
    client = MinistryPlatformClient(BASE_URL, token_provider=FailingTokenProvider())
    before = client.token

    async def scenario():
        async with client:
            await client.get("/domain")

    with pytest.raises(AuthError, match="invalid_client"):
        asyncio.run(scenario())
    assert client.token is before


def test_missing_provider_is_an_auth_error():
    client = MinistryPlatformClient(BASE_URL)

    async def scenario():
        async with client:
            await client.ensure_valid_token()

    with pytest.raises(AuthError):
        asyncio.run(scenario())


def test_delegated_token_is_trusted_for_a_day(respx_mock):
    clock = Clock()
    token_route = respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(500))
    domain_route = respx_mock.get(f"{BASE_URL}/domain").mock(
        return_value=httpx.Response(200, json={"DisplayName": "Example Church"})
    )
    client = MinistryPlatformClient(BASE_URL, access_token="user-token", clock=clock)

    async def scenario():
        async with client:
            clock.now += DELEGATED_TOKEN_LIFE + timedelta(hours=1)
            return await client.get("/domain")

    assert asyncio.run(scenario()) == {"DisplayName": "Example Church"}
    assert client.is_delegated
    assert client.token.expires_at == datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)
    assert not token_route.called
    assert domain_route.calls.last.request.headers["Authorization"] == "Bearer user-token"


def test_requests_carry_the_refreshed_token(respx_mock):
    respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"access_token": "issued", "expires_in": 3600})
    )
    route = respx_mock.get(f"{BASE_URL}/tables/Contacts").mock(
        return_value=httpx.Response(200, json=[])
    )
    settings = MinistryPlatformSettings(
        base_url=BASE_URL, client_id="client", client_secret="secret"
    )
    client = MinistryPlatformClient.from_settings(settings)

    async def scenario():
        async with client:
            return await client.get("/tables/Contacts")

    assert asyncio.run(scenario()) == []
    assert route.calls.last.request.headers["Authorization"] == "Bearer issued"


def test_from_settings_requires_credentials_unless_delegated():
    settings = MinistryPlatformSettings(base_url=BASE_URL)

    with pytest.raises(ConfigError) as exc_info:
        MinistryPlatformClient.from_settings(settings)
    assert exc_info.value.missing == [
        "MINISTRY_PLATFORM_CLIENT_ID",
        "MINISTRY_PLATFORM_CLIENT_SECRET",
    ]

    delegated = MinistryPlatformClient.from_settings(settings, access_token="user-token")
    assert delegated.is_delegated


def test_blank_base_url_is_rejected():
    with pytest.raises(ValueError):
        MinistryPlatformClient("  ")
