"""Async client for the MinistryPlatform REST API."""

from __future__ import annotations

from .client import AccessToken, MinistryPlatformClient
from .config import MinistryPlatformSettings
from .errors import AuthError, ConfigError, HttpError, MpxError, RecordValidationError
from .http_client import HttpClient
from .provider import MinistryPlatformProvider, MPHelper
from .query import TableQueryParams

__all__ = [
    "AccessToken",
    "AuthError",
    "ConfigError",
    "HttpClient",
    "HttpError",
    "MPHelper",
    "MinistryPlatformClient",
    "MinistryPlatformProvider",
    "MinistryPlatformSettings",
    "MpxError",
    "RecordValidationError",
    "TableQueryParams",
]

__version__ = "0.1.0"
