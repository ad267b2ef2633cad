# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""HTTP client for the FileFlow delivery gateway.

The client performs exactly one request per call and never retries: a
failed send is reported to the caller, who may resubmit explicitly.

Example:
    Sending an assembled request::

        client = GatewayClient("http://localhost:8000", token="secret")
        result = await client.send_files(request)
        print(result.message)
"""

from __future__ import annotations

import asyncio
import base64
import json
from typing import Any

import aiohttp

from .errors import TransportError
from .logger import get_logger
from .models import FilesTransferRequest, GatewayResult, SourceMetadata, TextTransferRequest

API_TOKEN_HEADER_NAME = "X-API-Token"
UPLOAD_PATH = "/api/upload"
SEND_TEXT_PATH = "/api/send-text"

FILES_FAILURE_MESSAGE = "Upload failed"
TEXT_FAILURE_MESSAGE = "Failed to send content"

logger = get_logger("GatewayClient")


def _metadata_dict(metadata: SourceMetadata | None) -> dict[str, Any] | None:
    if metadata is None:
        return None
    return metadata.model_dump(mode="json", exclude_none=True)


def build_upload_form(request: FilesTransferRequest) -> aiohttp.FormData:
    """Encode a files request as the multipart form expected by ``/api/upload``."""
    form = aiohttp.FormData()
    form.add_field("recipients", json.dumps(request.recipients))
    form.add_field("compressed", "true" if request.compressed else "false")
    metadata = _metadata_dict(request.source_metadata)
    if metadata:
        form.add_field("source", json.dumps(metadata))
    for index, att in enumerate(request.attachments):
        form.add_field(
            f"file-{index}",
            att.raw_bytes,
            filename=att.filename,
            content_type=att.mime_type,
        )
        if request.compressed:
            form.add_field(f"original-name-{index}", att.original_filename or att.filename)
            form.add_field(f"original-size-{index}", str(att.original_size))
            form.add_field(f"compressed-size-{index}", str(att.final_size))
            form.add_field(f"file-type-{index}", att.original_mime_type or att.mime_type)
    return form


def build_text_body(request: TextTransferRequest) -> dict[str, Any]:
    """Encode a text request as the JSON body expected by ``/api/send-text``."""
    body: dict[str, Any] = {
        "recipients": request.recipients,
        "content": request.content,
        "language": request.language,
        "filename": request.filename,
        "compressed": request.compressed,
    }
    if request.compressed and request.compressed_payload is not None:
        body["compressedContent"] = base64.b64encode(request.compressed_payload).decode("ascii")
        body["originalSize"] = request.original_size
        body["compressedSize"] = request.compressed_size
    metadata = _metadata_dict(request.source_metadata)
    if metadata:
        body["source"] = metadata
    return body


class GatewayClient:
    """Client for the ``/api/upload`` and ``/api/send-text`` endpoints.

    Attributes:
        url: Base URL of the FileFlow server.
        token: Optional API token sent in the ``X-API-Token`` header.
        timeout: Total request timeout in seconds.
    """

    def __init__(self, url: str = "http://localhost:8000", token: str | None = None, timeout: float = 60.0):
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.token:
            headers[API_TOKEN_HEADER_NAME] = self.token
        return headers

    async def send_files(self, request: FilesTransferRequest) -> GatewayResult:
        """Send file attachments to the recipients of ``request``.

        Raises:
            TransportError: If the gateway is unreachable or answers with an
                error status.
        """
        logger.info(
            "Sending %d file(s) to %d recipient(s) (compressed=%s)",
            len(request.attachments),
            len(request.recipients),
            request.compressed,
        )
        return await self._post(UPLOAD_PATH, FILES_FAILURE_MESSAGE, data=build_upload_form(request))

    async def send_text(self, request: TextTransferRequest) -> GatewayResult:
        """Send text or code as a single attachment.

        Raises:
            TransportError: If the gateway is unreachable or answers with an
                error status.
        """
        logger.info(
            "Sending %s (%s) to %d recipient(s) (compressed=%s)",
            request.filename,
            request.language,
            len(request.recipients),
            request.compressed,
        )
        return await self._post(SEND_TEXT_PATH, TEXT_FAILURE_MESSAGE, json=build_text_body(request))

    async def _post(self, path: str, fallback_message: str, **kwargs: Any) -> GatewayResult:
        url = f"{self.url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, headers=self._headers() or None, **kwargs) as resp:
                    try:
                        payload = await resp.json(content_type=None)
                    except (aiohttp.ContentTypeError, json.JSONDecodeError, ValueError):
                        logger.warning("Gateway %s returned a non-JSON response", url)
                        payload = {}
                    status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Gateway %s not reachable: %s", url, exc)
            raise TransportError(fallback_message) from exc

        if not isinstance(payload, dict):
            payload = {}
        if status >= 400 or not payload.get("success"):
            message = payload.get("error") or fallback_message
            logger.error("Gateway %s failed with status %s: %s", url, status, message)
            raise TransportError(message, status=status)
        return GatewayResult.model_validate(payload)
