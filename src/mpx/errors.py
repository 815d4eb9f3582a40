from __future__ import annotations
from typing import Any, Optional, Sequence

class MpxError(Exception):
    """Base error for mpx."""

class AuthError(MpxError):
    def __init__(
        self, message: str, *, status_code: Optional[int] = None, details: Optional[Any] = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details

class HttpError(MpxError):
    def __init__(
        self,
        status_code: int,
        reason: str,
        *,
        method: str | None = None,
        endpoint: str | None = None,
        details: Optional[Any] = None,
    ) -> None:
        if method and endpoint:
            message = f"{method} {endpoint} failed: {status_code} {reason}"
        else:
            message = f"HTTP {status_code}: {reason}"
        if details:
            message = f"{message} - {details}"
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.method = method
        self.endpoint = endpoint
        self.details = details

class ConfigError(MpxError):
    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        listed = "\n".join(f"  - {name}" for name in self.missing)
        super().__init__(f"Missing required environment variables:\n{listed}")

class RecordValidationError(MpxError):
    def __init__(self, model_name: str, index: int, error: Exception) -> None:
        super().__init__(f"Record {index} does not match {model_name}: {error}")
        self.model_name = model_name
        self.index = index
        self.error = error
