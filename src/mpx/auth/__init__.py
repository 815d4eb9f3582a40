from __future__ import annotations

from .base import StaticTokenProvider, TokenProvider, TokenResult
from .client_credentials import DEFAULT_SCOPE, DEFAULT_TOKEN_PATH, ClientCredentialsTokenProvider

__all__ = [
    "ClientCredentialsTokenProvider",
    "DEFAULT_SCOPE",
    "DEFAULT_TOKEN_PATH",
    "StaticTokenProvider",
    "TokenProvider",
    "TokenResult",
]
