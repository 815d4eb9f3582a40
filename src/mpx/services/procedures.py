from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, cast
from urllib.parse import quote

from httpx import USE_CLIENT_DEFAULT

from ..client import MinistryPlatformClient
from ..models.platform import ProcedureInfo
from ..models.records import ResultSet
from ..query import QueryParams

logger = logging.getLogger(__name__)


def _proc_path(procedure: str) -> str:
    return f"/procs/{quote(procedure, safe='')}"


def deep_parse_json(value: Any) -> Any:
    """Decode JSON strings nested anywhere inside ``value``.

    Procedures that build their output with ``FOR JSON`` return it as a string
    column, sometimes with further JSON strings inside. Strings that are not
    JSON are returned unchanged.
    """

    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return value
        return deep_parse_json(parsed)
    if isinstance(value, list):
        return [deep_parse_json(item) for item in value]
    if isinstance(value, dict):
        return {key: deep_parse_json(item) for key, item in value.items()}
    return value


class ProcedureService:
    """Execute stored procedures exposed under ``/procs``.

    Results come back as a list of result sets; callers know how many sets a
    procedure returns and what each one means.
    """

    def __init__(self, client: MinistryPlatformClient) -> None:
        self.client = client

    async def get_procedures(
        self, search: str | None = None, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> list[ProcedureInfo]:
        """List procedures available to the current user."""

        try:
            data = await self.client.get(
                "/procs", {"$search": search} if search else None, timeout=timeout
            )
        except Exception as exc:
            logger.error("Error getting procedures: %s", exc)
            raise
        return [ProcedureInfo.model_validate(item) for item in data or []]

    async def execute_procedure(
        self,
        procedure: str,
        params: QueryParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[ResultSet]:
        """Run ``procedure`` with parameters taken from the query string."""

        try:
            data = await self.client.get(_proc_path(procedure), params, timeout=timeout)
        except Exception as exc:
            logger.error("Error executing procedure %s: %s", procedure, exc)
            raise
        return cast(list[ResultSet], data or [])

    async def execute_procedure_with_body(
        self,
        procedure: str,
        parameters: Mapping[str, Any],
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[ResultSet]:
        """Run ``procedure`` with parameters sent as a JSON body."""

        try:
            data = await self.client.post(
                _proc_path(procedure), dict(parameters), timeout=timeout
            )
        except Exception as exc:
            logger.error("Error executing procedure %s with body: %s", procedure, exc)
            raise
        return cast(list[ResultSet], data or [])

    async def execute_json_procedure(
        self,
        procedure: str,
        parameters: Mapping[str, Any] | None = None,
        *,
        column: str = "JsonResult",
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> Any:
        """Run a procedure whose first row carries a JSON document in ``column``.

        Returns the decoded document, or ``None`` when the procedure produced
        no such row.
        """

        result_sets = await self.execute_procedure_with_body(
            procedure, parameters or {}, timeout=timeout
        )
        if not result_sets or not isinstance(result_sets[0], list) or not result_sets[0]:
            logger.debug("Procedure %s returned no %s row", procedure, column)
            return None
        first_row = result_sets[0][0]
        if not isinstance(first_row, dict) or first_row.get(column) is None:
            logger.debug("Procedure %s returned no %s row", procedure, column)
            return None
        return deep_parse_json(first_row[column])
