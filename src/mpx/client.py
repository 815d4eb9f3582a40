from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import TracebackType
from typing import TYPE_CHECKING, Any

import httpx

from .auth.base import TokenProvider
from .auth.client_credentials import ClientCredentialsTokenProvider
from .errors import AuthError
from .http_client import FileField, HttpClient
from .query import QueryParams

if TYPE_CHECKING:
    from .config import MinistryPlatformSettings

logger = logging.getLogger(__name__)

# Shorter than the platform's real token lifetime so a refresh happens well
# before an in-flight request could see the token expire.
TOKEN_LIFE = timedelta(minutes=5)
DELEGATED_TOKEN_LIFE = timedelta(hours=24)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AccessToken:
    """Bearer token and its expiry, replaced as a whole on refresh."""

    value: str
    expires_at: datetime
    delegated: bool = False

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class MinistryPlatformClient:
    """Owns the platform token lifecycle and the shared :class:`HttpClient`.

    Without ``access_token`` the client starts with an already-expired token,
    so the first request performs a client-credentials exchange through
    ``token_provider``. With ``access_token`` (a token obtained by a separate
    end-user login) the client trusts it for 24 hours and never refreshes it.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider | None = None,
        access_token: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise ValueError("MinistryPlatform base URL must not be empty")
        self.base_url = base_url.strip().rstrip("/")
        self._token_provider = token_provider
        self._clock = clock or _utcnow
        if access_token:
            self._token = AccessToken(
                access_token, self._clock() + DELEGATED_TOKEN_LIFE, delegated=True
            )
        else:
            self._token = AccessToken("", _EPOCH)
        self._refresh_lock = asyncio.Lock()
        self.http = HttpClient(
            self.base_url,
            token_getter=lambda: self._token.value,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: MinistryPlatformSettings,
        access_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> MinistryPlatformClient:
        """Build a client from validated settings.

        A delegated ``access_token`` skips the credential requirement.
        """

        if access_token:
            settings.validate_required(("base_url",))
            provider = None
        else:
            settings.validate_required()
            provider = ClientCredentialsTokenProvider(
                base_url=str(settings.base_url),
                client_id=str(settings.client_id),
                client_secret=str(settings.client_secret),
                scope=settings.scope,
                token_path=settings.token_path,
                timeout=settings.timeout,
                transport=transport,
            )
        return cls(
            str(settings.base_url),
            token_provider=provider,
            access_token=access_token,
            timeout=settings.timeout,
            transport=transport,
        )

    @property
    def token(self) -> AccessToken:
        return self._token

    @property
    def is_delegated(self) -> bool:
        return self._token.delegated

    async def ensure_valid_token(self) -> None:
        """Refresh the token when it has expired.

        Concurrent callers share a single exchange: the expiry is re-checked
        once the refresh lock is held.

        Raises:
            AuthError: The token exchange failed or no provider is configured.
        """

        if self._token.delegated:
            return
        if not self._token.is_expired(self._clock()):
            return
        async with self._refresh_lock:
            if not self._token.is_expired(self._clock()):
                return
            if self._token_provider is None:
                raise AuthError(
                    "No token provider configured; supply client credentials or an access token."
                )
            logger.info("MinistryPlatform token expired, refreshing")
            try:
                result = await self._token_provider.get_token()
            except Exception as exc:
                logger.error("Failed to refresh MinistryPlatform token: %s", exc)
                raise
            self._token = AccessToken(result.access_token, self._clock() + TOKEN_LIFE)
            logger.debug("Token refreshed; expires at %s", self._token.expires_at.isoformat())

    # ---- Authenticated verbs ----
    async def get(self, endpoint: str, query: QueryParams | None = None, **kwargs: Any) -> Any:
        await self.ensure_valid_token()
        return await self.http.get(endpoint, query, **kwargs)

    async def post(
        self, endpoint: str, json: Any | None = None, query: QueryParams | None = None, **kwargs: Any
    ) -> Any:
        await self.ensure_valid_token()
        return await self.http.post(endpoint, json, query, **kwargs)

    async def put(
        self, endpoint: str, json: Any | None = None, query: QueryParams | None = None, **kwargs: Any
    ) -> Any:
        await self.ensure_valid_token()
        return await self.http.put(endpoint, json, query, **kwargs)

    async def delete(self, endpoint: str, query: QueryParams | None = None, **kwargs: Any) -> Any:
        await self.ensure_valid_token()
        return await self.http.delete(endpoint, query, **kwargs)

    async def post_form(
        self,
        endpoint: str,
        files: Sequence[FileField] | None = None,
        data: Mapping[str, str] | None = None,
        query: QueryParams | None = None,
        **kwargs: Any,
    ) -> Any:
        await self.ensure_valid_token()
        return await self.http.post_form(endpoint, files, data, query, **kwargs)

    async def put_form(
        self,
        endpoint: str,
        files: Sequence[FileField] | None = None,
        data: Mapping[str, str] | None = None,
        query: QueryParams | None = None,
        **kwargs: Any,
    ) -> Any:
        await self.ensure_valid_token()
        return await self.http.put_form(endpoint, files, data, query, **kwargs)

    async def get_bytes_unauthenticated(
        self, endpoint: str, query: QueryParams | None = None, **kwargs: Any
    ) -> bytes:
        """Download raw content without a token (public file links)."""

        return await self.http.get_bytes(endpoint, query, authenticated=False, **kwargs)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> MinistryPlatformClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
