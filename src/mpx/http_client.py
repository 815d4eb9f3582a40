from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from types import TracebackType
from typing import Any, Union

import httpx

from .errors import HttpError
from .query import QueryParams, encode_query

logger = logging.getLogger(__name__)

FileContent = Union[bytes, Any]
FileField = tuple[str, tuple[Union[str, None], FileContent, Union[str, None]]]


def _multipart(
    files: Sequence[FileField] | None, data: Mapping[str, str] | None
) -> tuple[list[FileField], dict[str, str] | None]:
    # httpx only switches to multipart when at least one file part exists, so
    # metadata-only requests send their fields as nameless parts instead.
    parts = list(files or [])
    if parts:
        return parts, dict(data) if data else None
    fields = [(key, (None, value, None)) for key, value in (data or {}).items()]
    return fields, None


class HttpClient:
    """Thin async httpx wrapper that injects Authorization and raises :class:`HttpError`.

    Retries and timeouts are left to the caller; ``timeout`` may be passed
    through on every call.
    """

    def __init__(
        self,
        base_url: str,
        token_getter: Callable[[], str | None] | None = None,
        default_headers: dict[str, str] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token_getter = token_getter
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._default_headers = {"Accept": "application/json", **(default_headers or {})}

    def _auth_header(self) -> dict[str, str]:
        if not self._token_getter:
            return {}
        token = self._token_getter()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def build_url(self, endpoint: str, query: QueryParams | None = None) -> str:
        if endpoint.startswith(("http://", "https://")):
            url = endpoint
        else:
            url = f"{self.base_url}/{endpoint.lstrip('/')}"
        query_string = encode_query(query)
        return f"{url}?{query_string}" if query_string else url

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        query: QueryParams | None = None,
        json: Any | None = None,
        files: Sequence[FileField] | None = None,
        data: Mapping[str, str] | None = None,
        headers: dict[str, str] | None = None,
        authenticated: bool = True,
        timeout: Any = httpx.USE_CLIENT_DEFAULT,
    ) -> httpx.Response:
        url = self.build_url(endpoint, query)
        merged_headers = {**self._default_headers, **(headers or {})}
        if authenticated:
            merged_headers.update(self._auth_header())
        request_kwargs: dict[str, Any] = {"headers": merged_headers, "timeout": timeout}
        if json is not None:
            request_kwargs["json"] = json
        if files is not None:
            request_kwargs["files"] = list(files)
        if data is not None:
            request_kwargs["data"] = dict(data)
        try:
            resp = await self._client.request(method, url, **request_kwargs)
        except httpx.TransportError as e:
            raise HttpError(0, f"Transport error: {e}", method=method, endpoint=endpoint) from e

        if not resp.is_success:
            raise self._error_from_response(method, endpoint, resp)
        return resp

    @staticmethod
    def _error_from_response(method: str, endpoint: str, resp: httpx.Response) -> HttpError:
        detail: str | None = None
        try:
            detail = resp.text or None
        except Exception:
            logger.debug("Could not read error response body for %s %s", method, endpoint, exc_info=True)
        if detail:
            logger.debug("Platform error response for %s %s: %s", method, endpoint, detail)
        return HttpError(
            resp.status_code,
            resp.reason_phrase,
            method=method,
            endpoint=endpoint,
            details=detail,
        )

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        return resp.json()

    async def get(
        self, endpoint: str, query: QueryParams | None = None, **kwargs: Any
    ) -> Any:
        resp = await self.request("GET", endpoint, query=query, **kwargs)
        return self._json(resp)

    async def post(
        self,
        endpoint: str,
        json: Any | None = None,
        query: QueryParams | None = None,
        **kwargs: Any,
    ) -> Any:
        resp = await self.request("POST", endpoint, query=query, json=json, **kwargs)
        return self._json(resp)

    async def put(
        self,
        endpoint: str,
        json: Any | None = None,
        query: QueryParams | None = None,
        **kwargs: Any,
    ) -> Any:
        resp = await self.request("PUT", endpoint, query=query, json=json, **kwargs)
        return self._json(resp)

    async def delete(
        self, endpoint: str, query: QueryParams | None = None, **kwargs: Any
    ) -> Any:
        resp = await self.request("DELETE", endpoint, query=query, **kwargs)
        return self._json(resp)

    async def post_form(
        self,
        endpoint: str,
        files: Sequence[FileField] | None = None,
        data: Mapping[str, str] | None = None,
        query: QueryParams | None = None,
        **kwargs: Any,
    ) -> Any:
        """POST ``multipart/form-data``; httpx writes the boundary content type."""

        parts, fields = _multipart(files, data)
        resp = await self.request("POST", endpoint, query=query, files=parts, data=fields, **kwargs)
        return self._json(resp)

    async def put_form(
        self,
        endpoint: str,
        files: Sequence[FileField] | None = None,
        data: Mapping[str, str] | None = None,
        query: QueryParams | None = None,
        **kwargs: Any,
    ) -> Any:
        parts, fields = _multipart(files, data)
        resp = await self.request("PUT", endpoint, query=query, files=parts, data=fields, **kwargs)
        return self._json(resp)

    async def get_bytes(
        self,
        endpoint: str,
        query: QueryParams | None = None,
        *,
        authenticated: bool = True,
        **kwargs: Any,
    ) -> bytes:
        resp = await self.request(
            "GET", endpoint, query=query, authenticated=authenticated, **kwargs
        )
        return resp.content

    async def aclose(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`."""

        await self._client.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
