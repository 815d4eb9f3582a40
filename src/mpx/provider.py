from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import Any

import httpx
from httpx import USE_CLIENT_DEFAULT

from .client import MinistryPlatformClient
from .config import MinistryPlatformSettings, resolve_settings
from .models.platform import (
    Communication,
    CommunicationInfo,
    DomainInfo,
    FileDescription,
    GlobalFilterItem,
    MessageInfo,
    ProcedureInfo,
    TableMetadata,
)
from .models.records import ResultSet, TableRecord
from .query import QueryParams, TableQueryParams
from .services import (
    CommunicationService,
    DomainService,
    FileService,
    FileUpdateParams,
    FileUploadParams,
    MetadataService,
    ProcedureService,
    TableService,
    UploadFile,
)


class MinistryPlatformProvider:
    """All platform services sharing one injected :class:`MinistryPlatformClient`."""

    def __init__(self, client: MinistryPlatformClient) -> None:
        self.client = client
        self.tables = TableService(client)
        self.procedures = ProcedureService(client)
        self.files = FileService(client)
        self.domain = DomainService(client)
        self.metadata = MetadataService(client)
        self.communications = CommunicationService(client)

    async def aclose(self) -> None:
        await self.client.aclose()


class MPHelper:
    """Application-facing call surface over :class:`MinistryPlatformProvider`.

    Build one per process (or per delegated user token) and pass it to the
    code that needs it::

        async with MPHelper.from_env() as mp:
            contacts = await mp.get_table_records(
                table="Contacts",
                select="Contact_ID,Display_Name",
                filter="Contact_Status_ID=1",
                top=10,
            )
    """

    def __init__(self, provider: MinistryPlatformProvider) -> None:
        self.provider = provider

    @classmethod
    def from_settings(
        cls,
        settings: MinistryPlatformSettings,
        access_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> MPHelper:
        client = MinistryPlatformClient.from_settings(
            settings, access_token=access_token, transport=transport
        )
        return cls(MinistryPlatformProvider(client))

    @classmethod
    def from_env(cls, access_token: str | None = None) -> MPHelper:
        """Build from ``MINISTRY_PLATFORM_*`` variables and ``.env`` files.

        Raises:
            ConfigError: A required variable is missing.
        """

        return cls.from_settings(resolve_settings(), access_token=access_token)

    @property
    def client(self) -> MinistryPlatformClient:
        return self.provider.client

    async def aclose(self) -> None:
        await self.provider.aclose()

    async def __aenter__(self) -> MPHelper:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ---- Tables ----
    async def get_table_records(
        self,
        *,
        table: str,
        select: str | None = None,
        filter: str | None = None,
        order_by: str | None = None,
        group_by: str | None = None,
        having: str | None = None,
        top: int | None = None,
        skip: int | None = None,
        distinct: bool | None = None,
        user_id: int | None = None,
        global_filter_id: int | None = None,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[TableRecord]:
        """Query ``table`` using the platform's query options.

        Args:
            table: Table name, e.g. ``Contacts``.
            select: Comma-separated columns, e.g. ``Contact_ID,Display_Name``.
            filter: Platform filter expression, e.g. ``Contact_Status_ID=1``.
            order_by: ``ORDER BY`` expression, e.g. ``Last_Name,First_Name``.
            group_by: ``GROUP BY`` expression.
            having: ``HAVING`` expression for grouped queries.
            top: Maximum number of records.
            skip: Records to skip; combine with ``top`` for paging.
            distinct: Remove duplicate rows.
            user_id: Acting user recorded for auditing.
            global_filter_id: Global filter to scope the query by.
            timeout: Seconds to wait for this call; defaults to the client's timeout.

        Returns:
            The records exactly as returned by the platform; ``[]`` when none match.
        """

        params = TableQueryParams(
            select=select,
            filter=filter,
            orderby=order_by,
            groupby=group_by,
            having=having,
            top=top,
            skip=skip,
            distinct=distinct,
            user_id=user_id,
            global_filter_id=global_filter_id,
        )
        return await self.provider.tables.get_table_records(table, params, timeout=timeout)

    async def get_table_record(
        self,
        table: str,
        record_id: int,
        *,
        select: str | None = None,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> TableRecord | None:
        return await self.provider.tables.get_table_record(
            table, record_id, select=select, timeout=timeout
        )

    async def create_table_records(
        self,
        table: str,
        records: Sequence[TableRecord],
        *,
        select: str | None = None,
        user_id: int | None = None,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[TableRecord]:
        return await self.provider.tables.create_table_records(
            table, records, TableQueryParams(select=select, user_id=user_id), timeout=timeout
        )

    async def update_table_records(
        self,
        table: str,
        records: Sequence[TableRecord],
        *,
        select: str | None = None,
        user_id: int | None = None,
        allow_create: bool | None = None,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[TableRecord]:
        return await self.provider.tables.update_table_records(
            table,
            records,
            TableQueryParams(select=select, user_id=user_id, allow_create=allow_create),
            timeout=timeout,
        )

    async def delete_table_records(
        self,
        table: str,
        ids: Sequence[int],
        *,
        select: str | None = None,
        user_id: int | None = None,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[TableRecord]:
        return await self.provider.tables.delete_table_records(
            table, ids, TableQueryParams(select=select, user_id=user_id), timeout=timeout
        )

    # ---- Procedures ----
    async def get_procedures(
        self, search: str | None = None, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> list[ProcedureInfo]:
        return await self.provider.procedures.get_procedures(search, timeout=timeout)

    async def execute_procedure(
        self,
        procedure: str,
        params: QueryParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[ResultSet]:
        return await self.provider.procedures.execute_procedure(
            procedure, params, timeout=timeout
        )

    async def execute_procedure_with_body(
        self,
        procedure: str,
        parameters: Mapping[str, Any],
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[ResultSet]:
        return await self.provider.procedures.execute_procedure_with_body(
            procedure, parameters, timeout=timeout
        )

    async def execute_json_procedure(
        self,
        procedure: str,
        parameters: Mapping[str, Any] | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> Any:
        return await self.provider.procedures.execute_json_procedure(
            procedure, parameters, timeout=timeout
        )

    # ---- Files ----
    async def get_files_by_record(
        self,
        table: str,
        record_id: int,
        default_only: bool | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[FileDescription]:
        return await self.provider.files.get_files_by_record(
            table, record_id, default_only, timeout=timeout
        )

    async def upload_files(
        self,
        table: str,
        record_id: int,
        files: Sequence[UploadFile],
        params: FileUploadParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[FileDescription]:
        return await self.provider.files.upload_files(
            table, record_id, files, params, timeout=timeout
        )

    async def update_file(
        self,
        file_id: int,
        file: UploadFile | None = None,
        params: FileUpdateParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> FileDescription:
        return await self.provider.files.update_file(file_id, file, params, timeout=timeout)

    async def delete_file(
        self, file_id: int, user_id: int | None = None, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> None:
        await self.provider.files.delete_file(file_id, user_id, timeout=timeout)

    async def get_file_content_by_unique_id(
        self,
        unique_file_id: str,
        thumbnail: bool | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> bytes:
        return await self.provider.files.get_file_content_by_unique_id(
            unique_file_id, thumbnail, timeout=timeout
        )

    async def get_file_metadata(
        self, file_id: int, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> FileDescription:
        return await self.provider.files.get_file_metadata(file_id, timeout=timeout)

    async def get_file_metadata_by_unique_id(
        self, unique_file_id: str, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> FileDescription:
        return await self.provider.files.get_file_metadata_by_unique_id(
            unique_file_id, timeout=timeout
        )

    # ---- Domain & metadata ----
    async def get_domain_info(self, *, timeout: Any = USE_CLIENT_DEFAULT) -> DomainInfo:
        return await self.provider.domain.get_domain_info(timeout=timeout)

    async def get_global_filters(
        self,
        *,
        ignore_permissions: bool | None = None,
        user_id: int | None = None,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[GlobalFilterItem]:
        return await self.provider.domain.get_global_filters(
            ignore_permissions=ignore_permissions, user_id=user_id, timeout=timeout
        )

    async def get_tables(
        self, search: str | None = None, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> list[TableMetadata]:
        return await self.provider.metadata.get_tables(search, timeout=timeout)

    async def refresh_metadata(self, *, timeout: Any = USE_CLIENT_DEFAULT) -> None:
        await self.provider.metadata.refresh_metadata(timeout=timeout)

    # ---- Communications ----
    async def create_communication(
        self,
        communication: CommunicationInfo,
        attachments: Sequence[UploadFile] | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> Communication:
        return await self.provider.communications.create_communication(
            communication, attachments, timeout=timeout
        )

    async def send_message(
        self,
        message: MessageInfo,
        attachments: Sequence[UploadFile] | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> Communication:
        return await self.provider.communications.send_message(
            message, attachments, timeout=timeout
        )
