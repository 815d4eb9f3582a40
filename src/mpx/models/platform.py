from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PlatformModel(BaseModel):
    """Base for platform payloads; unknown columns are preserved."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class FileDescription(PlatformModel):
    FileId: int
    FileName: str | None = None
    FileExtension: str | None = None
    Description: str | None = None
    IsDefaultImage: bool = False
    FileSize: int | None = None
    ImageWidth: int | None = None
    ImageHeight: int | None = None
    UniqueFileId: str | None = None
    TableName: str | None = None
    RecordId: int | None = None
    LastUpdated: str | None = None


class ColumnMetadata(PlatformModel):
    Name: str
    DataType: str = "Unknown"
    Size: int = 0
    IsRequired: bool = False
    IsPrimaryKey: bool = False
    IsForeignKey: bool = False
    ReferencedTable: str | None = None
    ReferencedColumn: str | None = None
    IsReadOnly: bool = False
    IsComputed: bool = False
    HasDefault: bool = False


class TableMetadata(PlatformModel):
    Id: int | None = None
    Name: str | None = None
    DisplayName: str | None = None
    AccessLevel: str | None = None
    SpecialPermissions: str | None = None
    Columns: list[ColumnMetadata] | None = None


class ProcedureParameter(PlatformModel):
    Name: str
    Direction: str | None = None
    DataType: str | None = None
    Size: int | None = None


class ProcedureInfo(PlatformModel):
    Name: str
    Parameters: list[ProcedureParameter] = Field(default_factory=list)


class DomainInfo(PlatformModel):
    DisplayName: str | None = None
    CultureName: str | None = None
    TimeZoneName: str | None = None
    IsSmsEnabled: bool | None = None
    GlobalFilterFieldName: str | None = None


class GlobalFilterItem(PlatformModel):
    """Global filter lookup; ``Key`` 0 marks records with no filter assigned."""

    Key: int
    Value: str


class MessageAddress(PlatformModel):
    DisplayName: str | None = None
    Address: str


class CommunicationInfo(PlatformModel):
    AuthorUserId: int
    Subject: str
    Body: str
    FromContactId: int | None = None
    ReplyToContactId: int | None = None
    Contacts: list[int] = Field(default_factory=list)
    CommunicationType: str = "Email"
    StartDate: str | None = None
    IsBulkEmail: bool | None = None
    SendToContactParents: bool | None = None
    TextPhoneNumberId: int | None = None


class MessageInfo(PlatformModel):
    FromAddress: MessageAddress
    ToAddresses: list[MessageAddress]
    Subject: str
    Body: str
    ReplyToAddress: MessageAddress | None = None
    StartDate: str | None = None


class Communication(PlatformModel):
    CommunicationId: int | None = None
    Subject: str | None = None
    Body: str | None = None
    AuthorUserId: int | None = None
    StartDate: str | None = None
    Messages: list[dict[str, Any]] | None = None
