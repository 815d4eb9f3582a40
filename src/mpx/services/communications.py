from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from httpx import USE_CLIENT_DEFAULT

from ..client import MinistryPlatformClient
from ..models.platform import Communication, CommunicationInfo, MessageInfo
from .files import UploadFile

logger = logging.getLogger(__name__)


class CommunicationService:
    """Create platform communications and send ad-hoc email messages."""

    def __init__(self, client: MinistryPlatformClient) -> None:
        self.client = client

    async def create_communication(
        self,
        communication: CommunicationInfo,
        attachments: Sequence[UploadFile] | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> Communication:
        """Create a communication, render it and schedule it for delivery."""

        try:
            data = await self._send(
                "/communications", "communication", communication, attachments, timeout
            )
        except Exception as exc:
            logger.error("Error creating communication: %s", exc)
            raise
        return Communication.model_validate(data or {})

    async def send_message(
        self,
        message: MessageInfo,
        attachments: Sequence[UploadFile] | None = None,
        *,
        timeout: Any = USE_CLIENT_DEFAULT,
    ) -> Communication:
        """Create email messages and schedule them for immediate delivery."""

        try:
            data = await self._send("/messages", "message", message, attachments, timeout)
        except Exception as exc:
            logger.error("Error sending message: %s", exc)
            raise
        return Communication.model_validate(data or {})

    async def _send(
        self,
        endpoint: str,
        field_name: str,
        payload: CommunicationInfo | MessageInfo,
        attachments: Sequence[UploadFile] | None,
        timeout: Any,
    ) -> object:
        body = payload.model_dump(mode="json", exclude_none=True)
        if not attachments:
            return await self.client.post(endpoint, body, timeout=timeout)
        parts = [upload.as_part(f"file-{index}") for index, upload in enumerate(attachments)]
        form = {field_name: payload.model_dump_json(exclude_none=True)}
        return await self.client.post_form(endpoint, parts, form, timeout=timeout)
