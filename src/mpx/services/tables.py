from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, cast
from urllib.parse import quote

from httpx import USE_CLIENT_DEFAULT

from ..client import MinistryPlatformClient
from ..models.records import TableRecord
from ..query import TableQueryParams

logger = logging.getLogger(__name__)


def _table_path(table: str) -> str:
    return f"/tables/{quote(table, safe='')}"


class TableService:
    """Generic record CRUD against ``/tables/{table}``.

    Every call is a fresh round trip; nothing is cached between calls.
    ``user_id`` is forwarded as an auditing attribute only, the platform
    enforces authorization itself. ``timeout`` overrides the client timeout
    for one call.
    """

    def __init__(self, client: MinistryPlatformClient) -> None:
        self.client = client

    async def get_table_records(
        self,
        table: str,
        params: TableQueryParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[TableRecord]:
        """Return records satisfying ``params`` in the order the platform sent them."""

        query = params.to_query() if params else None
        logger.debug("Fetching records from table %s with %s", table, query)
        try:
            data = await self.client.get(_table_path(table), query, timeout=timeout)
        except Exception as exc:
            logger.error("Error fetching records from table %s: %s", table, exc)
            raise
        return cast(list[TableRecord], data or [])

    async def get_table_record(
        self,
        table: str,
        record_id: int,
        *,
        select: str | None = None,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> TableRecord | None:
        """Return a single record by primary key, or ``None`` when absent."""

        query = {"$select": select} if select else None
        try:
            data = await self.client.get(
                f"{_table_path(table)}/{int(record_id)}", query, timeout=timeout
            )
        except Exception as exc:
            logger.error("Error fetching record %s from table %s: %s", record_id, table, exc)
            raise
        if isinstance(data, list):
            return cast(TableRecord, data[0]) if data else None
        return cast(TableRecord | None, data)

    async def create_table_records(
        self,
        table: str,
        records: Sequence[TableRecord],
        params: TableQueryParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[TableRecord]:
        """Create ``records`` and return them with their platform-assigned keys."""

        query = params.only("select", "user_id").to_query() if params else None
        try:
            data = await self.client.post(
                _table_path(table), {"records": list(records)}, query, timeout=timeout
            )
        except Exception as exc:
            logger.error("Error creating records in table %s: %s", table, exc)
            raise
        return cast(list[TableRecord], data or [])

    async def update_table_records(
        self,
        table: str,
        records: Sequence[TableRecord],
        params: TableQueryParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[TableRecord]:
        """Update ``records``; each must carry its primary key.

        With ``allow_create`` the platform creates records whose key is unknown.
        """

        query = params.only("select", "user_id", "allow_create").to_query() if params else None
        try:
            data = await self.client.put(
                _table_path(table), {"records": list(records)}, query, timeout=timeout
            )
        except Exception as exc:
            logger.error("Error updating records in table %s: %s", table, exc)
            raise
        return cast(list[TableRecord], data or [])

    async def delete_table_records(
        self,
        table: str,
        ids: Sequence[int],
        params: TableQueryParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[TableRecord]:
        """Delete records by id and return them as they were before deletion."""

        query: dict[str, Any] = params.only("select", "user_id").to_query() if params else {}
        query["id"] = [int(i) for i in ids]
        try:
            data = await self.client.delete(_table_path(table), query, timeout=timeout)
        except Exception as exc:
            logger.error("Error deleting records from table %s: %s", table, exc)
            raise
        return cast(list[TableRecord], data or [])
