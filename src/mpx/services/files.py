from __future__ import annotations

import logging
import mimetypes
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Union
from urllib.parse import quote

from httpx import USE_CLIENT_DEFAULT

from ..client import MinistryPlatformClient
from ..http_client import FileField
from ..models.platform import FileDescription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadFile:
    """A file part for multipart uploads."""

    name: str
    content: Union[bytes, IO[bytes]]
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path) -> UploadFile:
        file_path = Path(path)
        guessed, _ = mimetypes.guess_type(file_path.name)
        return cls(file_path.name, file_path.read_bytes(), guessed or "application/octet-stream")

    def as_part(self, field_name: str) -> FileField:
        return (field_name, (self.name, self.content, self.content_type))


@dataclass(frozen=True)
class FileUploadParams:
    description: str | None = None
    is_default_image: bool | None = None
    longest_dimension: int | None = None
    user_id: int | None = None


@dataclass(frozen=True)
class FileUpdateParams:
    file_name: str | None = None
    description: str | None = None
    is_default_image: bool | None = None
    longest_dimension: int | None = None
    user_id: int | None = None


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _metadata(
    params: FileUploadParams | FileUpdateParams | None,
) -> tuple[dict[str, str], dict[str, Any]]:
    """Split ``params`` into form fields and ``$``-prefixed query options.

    The platform reads the options from the query string; the form copies are
    kept for older API builds that read them from the body.
    """

    form: dict[str, str] = {}
    query: dict[str, Any] = {}
    if params is None:
        return form, query
    file_name = getattr(params, "file_name", None)
    if file_name:
        form["fileName"] = file_name
        query["$fileName"] = file_name
    if params.description:
        form["description"] = params.description
        query["$description"] = params.description
    if params.is_default_image is not None:
        form["isDefaultImage"] = _bool(params.is_default_image)
        query["$default"] = _bool(params.is_default_image)
    if params.longest_dimension:
        form["longestDimension"] = str(params.longest_dimension)
        query["$longestDimension"] = params.longest_dimension
    if params.user_id:
        query["$userId"] = params.user_id
    return form, query


class FileService:
    """Attach, replace, fetch and remove files stored by the platform.

    Blobs are never cached locally. A multi-file upload is a single multipart
    request and succeeds or fails as a whole.
    """

    def __init__(self, client: MinistryPlatformClient) -> None:
        self.client = client

    async def get_files_by_record(
        self,
        table: str,
        record_id: int,
        default_only: bool | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[FileDescription]:
        """Return descriptions of the files attached to one record."""

        query = {"$default": default_only} if default_only is not None else None
        try:
            data = await self.client.get(
                f"/files/{quote(table, safe='')}/{int(record_id)}", query, timeout=timeout
            )
        except Exception as exc:
            logger.error("Error getting files for %s/%s: %s", table, record_id, exc)
            raise
        return [FileDescription.model_validate(item) for item in data or []]

    async def upload_files(
        self,
        table: str,
        record_id: int,
        files: Sequence[UploadFile],
        params: FileUploadParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> list[FileDescription]:
        """Upload ``files`` and attach them to ``table``/``record_id``."""

        if not files:
            raise ValueError("upload_files requires at least one file")
        form, query = _metadata(params)
        parts = [upload.as_part(f"file-{index}") for index, upload in enumerate(files)]
        try:
            data = await self.client.post_form(
                f"/files/{quote(table, safe='')}/{int(record_id)}",
                parts,
                form,
                query,
                timeout=timeout,
            )
        except Exception as exc:
            logger.error("Error uploading files to %s/%s: %s", table, record_id, exc)
            raise
        return [FileDescription.model_validate(item) for item in data or []]

    async def update_file(
        self,
        file_id: int,
        file: UploadFile | None = None,
        params: FileUpdateParams | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> FileDescription:
        """Replace the content and/or metadata of an existing file."""

        form, query = _metadata(params)
        parts = [file.as_part("file")] if file is not None else []
        try:
            data = await self.client.put_form(
                f"/files/{int(file_id)}", parts, form, query, timeout=timeout
            )
        except Exception as exc:
            logger.error("Error updating file %s: %s", file_id, exc)
            raise
        return FileDescription.model_validate(data)

    async def delete_file(
        self, file_id: int, user_id: int | None = None, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> None:
        query = {"$userId": user_id} if user_id else None
        try:
            await self.client.delete(f"/files/{int(file_id)}", query, timeout=timeout)
        except Exception as exc:
            logger.error("Error deleting file %s: %s", file_id, exc)
            raise

    async def get_file_content_by_unique_id(
        self,
        unique_file_id: str,
        thumbnail: bool | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> bytes:
        """Download file content by its globally unique id.

        This is the only read that needs no token, so it never triggers a
        token exchange.
        """

        query = {"$thumbnail": thumbnail} if thumbnail is not None else None
        try:
            return await self.client.get_bytes_unauthenticated(
                f"/files/{quote(unique_file_id, safe='')}", query, timeout=timeout
            )
        except Exception as exc:
            logger.error("Error getting file content for %s: %s", unique_file_id, exc)
            raise

    async def get_file_metadata(
        self, file_id: int, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> FileDescription:
        try:
            data = await self.client.get(f"/files/{int(file_id)}/metadata", timeout=timeout)
        except Exception as exc:
            logger.error("Error getting metadata for file %s: %s", file_id, exc)
            raise
        return FileDescription.model_validate(data)

    async def get_file_metadata_by_unique_id(
        self, unique_file_id: str, *, timeout: Any = USE_CLIENT_DEFAULT
    ) -> FileDescription:
        try:
            data = await self.client.get(
                f"/files/{quote(unique_file_id, safe='')}/metadata", timeout=timeout
            )
        except Exception as exc:
            logger.error("Error getting metadata for file %s: %s", unique_file_id, exc)
            raise
        return FileDescription.model_validate(data)
