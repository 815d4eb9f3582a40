from __future__ import annotations

import logging
from typing import Any

from httpx import USE_CLIENT_DEFAULT

from ..client import MinistryPlatformClient
from ..models.platform import TableMetadata

logger = logging.getLogger(__name__)


class MetadataService:
    """Schema introspection. The platform caches its metadata; call
    :meth:`refresh_metadata` after structural changes such as registering a
    new API procedure."""

    def __init__(self, client: MinistryPlatformClient) -> None:
        self.client = client

    async def refresh_metadata(self, *, timeout: Any = USE_CLIENT_DEFAULT) -> None:
        try:
            await self.client.get("/refreshMetadata", timeout=timeout)
        except Exception as exc:
            logger.error("Error refreshing metadata: %s", exc)
            raise
        logger.info("Platform metadata cache refresh requested")

    async def get_tables(
        self, search: str | None = None, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> list[TableMetadata]:
        """List tables available to the current user."""

        try:
            data = await self.client.get(
                "/tables", {"$search": search} if search else None, timeout=timeout
            )
        except Exception as exc:
            logger.error("Error getting tables: %s", exc)
            raise
        return [TableMetadata.model_validate(item) for item in data or []]
