from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import AuthError
from .base import TokenProvider, TokenResult

logger = logging.getLogger(__name__)

DEFAULT_SCOPE = "http://www.thinkministry.com/dataplatform/scopes/all"
DEFAULT_TOKEN_PATH = "/oauth/connect/token"


class ClientCredentialsTokenProvider(TokenProvider):
    """OAuth2 client-credentials exchange against the platform's token endpoint."""

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        scope: str = DEFAULT_SCOPE,
        token_path: str = DEFAULT_TOKEN_PATH,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token_url = f"{base_url.rstrip('/')}/{token_path.lstrip('/')}"
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self._timeout = timeout
        self._transport = transport

    async def get_token(self) -> TokenResult:
        form = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scope": self.scope,
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                resp = await client.post(
                    self.token_url, data=form, headers={"Accept": "application/json"}
                )
            except httpx.TransportError as exc:
                raise AuthError(f"Failed to get client credentials token: {exc}") from exc

        if not resp.is_success:
            raise AuthError(
                f"Failed to get client credentials token: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
                details=resp.text or None,
            )
        try:
            payload: Any = resp.json()
        except ValueError as exc:
            raise AuthError("Token endpoint returned a non-JSON response") from exc
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthError(f"Failed to acquire token: {payload}")
        expires_in = payload.get("expires_in")
        logger.debug("Client credentials token acquired for %s", self.client_id)
        return TokenResult(
            access_token=token,
            expires_in=int(expires_in) if isinstance(expires_in, (int, float)) else None,
            token_type=str(payload.get("token_type") or "Bearer"),
        )
