from __future__ import annotations

import logging
from typing import Any

from httpx import USE_CLIENT_DEFAULT

from ..client import MinistryPlatformClient
from ..models.platform import DomainInfo, GlobalFilterItem

logger = logging.getLogger(__name__)


class DomainService:
    def __init__(self, client: MinistryPlatformClient) -> None:
        self.client = client

    async def get_domain_info(self, *, timeout: Any = USE_CLIENT_DEFAULT) -> DomainInfo:
        """Return display settings for the current domain."""

        try:
            data = await self.client.get("/domain", timeout=timeout)
        except Exception as exc:
            logger.error("Error getting domain info: %s", exc)
            raise
        return DomainInfo.model_validate(data or {})

    async def get_global_filters(
        self,
        *,
        ignore_permissions: bool | None = None,
        user_id: int | None = None,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[GlobalFilterItem]:
        """Return the id/label pairs used to scope queries by global filter.

        Key ``0`` stands for records with no filter assigned.
        """

        query = {"$ignorePermissions": ignore_permissions, "$userId": user_id}
        try:
            data = await self.client.get("/domain/filters", query, timeout=timeout)
        except Exception as exc:
            logger.error("Error getting global filters: %s", exc)
            raise
        return [GlobalFilterItem.model_validate(item) for item in data or []]
