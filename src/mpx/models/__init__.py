"""Re-export typed models for the mpx SDK."""

from __future__ import annotations

from .platform import (
    ColumnMetadata,
    Communication,
    CommunicationInfo,
    DomainInfo,
    FileDescription,
    GlobalFilterItem,
    MessageAddress,
    MessageInfo,
    PlatformModel,
    ProcedureInfo,
    ProcedureParameter,
    TableMetadata,
)
from .records import ResultSet, TableRecord, parse_record, parse_records

__all__ = [
    "ColumnMetadata",
    "Communication",
    "CommunicationInfo",
    "DomainInfo",
    "FileDescription",
    "GlobalFilterItem",
    "MessageAddress",
    "MessageInfo",
    "PlatformModel",
    "ProcedureInfo",
    "ProcedureParameter",
    "ResultSet",
    "TableMetadata",
    "TableRecord",
    "parse_record",
    "parse_records",
]
