from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass

@dataclass(frozen=True)
class TokenResult:
    access_token: str
    expires_in: int | None = None
    token_type: str = "Bearer"

class TokenProvider(ABC):
    @abstractmethod
    async def get_token(self) -> TokenResult:
        """Return a fresh access token for Authorization: Bearer."""

class StaticTokenProvider(TokenProvider):
    def __init__(self, token: str) -> None:
        self._token = token
    async def get_token(self) -> TokenResult:
        return TokenResult(self._token)
