from __future__ import annotations

from .communications import CommunicationService
from .domain import DomainService
from .files import FileService, FileUpdateParams, FileUploadParams, UploadFile
from .metadata import MetadataService
from .procedures import ProcedureService, deep_parse_json
from .tables import TableService

__all__ = [
    "CommunicationService",
    "DomainService",
    "FileService",
    "FileUpdateParams",
    "FileUploadParams",
    "MetadataService",
    "ProcedureService",
    "TableService",
    "UploadFile",
    "deep_parse_json",
]
