from __future__ import annotations

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from mpx.auth import DEFAULT_SCOPE, ClientCredentialsTokenProvider
from mpx.errors import AuthError

BASE_URL = "https://mp.example.test/ministryplatformapi"
TOKEN_URL = f"{BASE_URL}/oauth/connect/token"


def make_provider(**kwargs) -> ClientCredentialsTokenProvider:
    return ClientCredentialsTokenProvider(
        base_url=f"{BASE_URL}/", client_id="client", client_secret="s3cret", **kwargs
    )


def test_exchange_posts_form_and_returns_token(respx_mock):
    route = respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(
            200, json={"access_token": "abc", "expires_in": 3600, "token_type": "Bearer"}
        )
    )

    result = asyncio.run(make_provider().get_token())

    assert result.access_token == "abc"
    assert result.expires_in == 3600
    form = parse_qs(route.calls.last.request.content.decode())
    assert form == {
        "grant_type": ["client_credentials"],
        "client_id": ["client"],
        "client_secret": ["s3cret"],
        "scope": [DEFAULT_SCOPE],
    }


def test_custom_token_path_and_scope(respx_mock):
    route = respx_mock.post(f"{BASE_URL}/custom/token").mock(
        return_value=httpx.Response(200, json={"access_token": "xyz"})
    )

    result = asyncio.run(make_provider(scope="custom", token_path="custom/token").get_token())

    assert result.access_token == "xyz"
    assert result.token_type == "Bearer"
    assert b"scope=custom" in route.calls.last.request.content


def test_rejected_credentials_raise_auth_error(respx_mock):
    respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(400, json={"error": "invalid_client"})
    )

    with pytest.raises(AuthError) as exc_info:
        asyncio.run(make_provider().get_token())

    assert exc_info.value.status_code == 400
    assert "invalid_client" in exc_info.value.details


def test_response_without_token_raises_auth_error(respx_mock):
    respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"error": "nope"}))

    with pytest.raises(AuthError, match="Failed to acquire token"):
        asyncio.run(make_provider().get_token())


def test_non_json_response_raises_auth_error(respx_mock):
    respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, text="<html>"))

    with pytest.raises(AuthError, match="non-JSON"):
        asyncio.run(make_provider().get_token())


def test_unreachable_token_endpoint_raises_auth_error(respx_mock):
    respx_mock.post(TOKEN_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))

    with pytest.raises(AuthError, match="timed out"):
        asyncio.run(make_provider().get_token())
