"""FastAPI application factory and HTTP schemas for the FileFlow relay.

This module exposes the delivery gateway used by ``GatewayClient``:

- ``POST /api/upload``: multipart form with recipients and files
- ``POST /api/send-text``: JSON body with pasted text or code
- ``GET /health``: liveness probe, never authenticated
- ``GET /metrics``: Prometheus exposition

Requests are re-validated server-side with ``TransferRequestBuilder`` and
relayed to SMTP through ``Mailer``. Nothing is written to disk.

Example:
    Creating and running the API application::

        from fileflow.api import create_app
        from fileflow.config_loader import load_settings
        from fileflow.mailer import Mailer

        settings = load_settings()
        app = create_app(Mailer(settings.smtp), api_token=settings.api_token)

        # Run with uvicorn
        uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from .compression import get_compression_ratio
from .errors import ValidationError
from .mailer import Mailer
from .models import Attachment, GatewayResult, SourceMetadata
from .prometheus import FileFlowMetrics
from .size_guard import MAX_SIZE_BYTES, MAX_SIZE_LABEL
from .templates import text_kind
from .transfer import TransferRequestBuilder

logger = logging.getLogger(__name__)

API_TOKEN_HEADER_NAME = "X-API-Token"
api_key_scheme = APIKeyHeader(name=API_TOKEN_HEADER_NAME, auto_error=False)

UPLOAD_FAILURE_MESSAGE = "Failed to process files and send email"
TEXT_FAILURE_MESSAGE = "Failed to send content"

# Worst-case gzip expansion of a 20 MiB part is a few KiB.
COMPRESSION_OVERHEAD_BYTES = 64 * 1024


class SendTextPayload(BaseModel):
    """Body accepted by ``/api/send-text``."""

    model_config = ConfigDict(populate_by_name=True)

    recipients: list[str] = Field(default_factory=list)
    content: str = ""
    language: str = "plaintext"
    filename: Optional[str] = None
    compressed: bool = False
    compressed_content: Optional[str] = Field(default=None, alias="compressedContent")
    original_size: Optional[int] = Field(default=None, alias="originalSize")
    compressed_size: Optional[int] = Field(default=None, alias="compressedSize")
    source: Optional[dict[str, Any]] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _source_metadata(request: Request, declared: Any) -> SourceMetadata:
    """Provenance from the client's ``source`` field, else from the request."""
    if isinstance(declared, str):
        try:
            declared = json.loads(declared)
        except json.JSONDecodeError:
            declared = None
    if isinstance(declared, dict):
        try:
            return SourceMetadata.model_validate(declared)
        except PydanticValidationError as exc:
            logger.warning(f"Ignoring malformed source metadata: {exc}")
    return SourceMetadata(
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        locale=request.headers.get("accept-language"),
        referrer=request.headers.get("referer"),
    )


def _parse_recipients(raw: Any) -> list[str]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                "Recipients required", "Recipients must be a JSON list of email addresses."
            ) from exc
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ValidationError("Recipients required", "Recipients must be a JSON list of email addresses.")
    return raw


async def _read_uploads(form: Any, compressed: bool) -> list[Attachment]:
    """Collect ``file-0``, ``file-1``, ... until the first missing index.

    For compressed uploads the declared ``original-size-{i}`` is only trusted
    within what the received bytes allow: the payload itself must fit the
    limit, and a losslessly compressed part cannot be much larger than the
    file it came from.
    """
    attachments: list[Attachment] = []
    index = 0
    while isinstance(form.get(f"file-{index}"), UploadFile):
        upload: UploadFile = form[f"file-{index}"]
        filename = upload.filename or f"file-{index}"
        data = await upload.read()
        original_size = len(data)
        if compressed:
            try:
                original_size = int(form.get(f"original-size-{index}", original_size))
            except (TypeError, ValueError) as exc:
                raise ValidationError(
                    "Invalid upload", f"original-size-{index} is not a number."
                ) from exc
            if original_size < 0:
                raise ValidationError("Invalid upload", f"original-size-{index} must not be negative.")
            if len(data) > MAX_SIZE_BYTES + COMPRESSION_OVERHEAD_BYTES:
                raise ValidationError("File too large", f"{filename} exceeds the {MAX_SIZE_LABEL} limit.")
            original_type = str(form.get(f"file-type-{index}") or upload.content_type or "")
            if not original_type.startswith("image/") and len(data) > original_size + COMPRESSION_OVERHEAD_BYTES:
                raise ValidationError(
                    "Invalid upload", f"original-size-{index} is smaller than the uploaded {filename}."
                )
        attachments.append(
            Attachment(
                filename=filename,
                mime_type=upload.content_type or "application/octet-stream",
                raw_bytes=data,
                original_size=original_size,
                compressed_size=len(data) if compressed else None,
                original_filename=form.get(f"original-name-{index}") if compressed else None,
                original_mime_type=form.get(f"file-type-{index}") if compressed else None,
            )
        )
        index += 1
    return attachments


def create_app(
    mailer: Mailer,
    api_token: str | None = None,
    metrics: FileFlowMetrics | None = None,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    mailer:
        SMTP relay used to deliver every accepted transfer.
    api_token:
        Optional shared secret. When provided, the ``X-API-Token`` header
        must match it on the ``/api`` endpoints.
    metrics:
        Metrics collector; a private one is created when omitted.
    lifespan:
        Optional lifespan context manager for startup/shutdown events.

    Returns
    -------
    FastAPI
        A configured application ready to be served by Uvicorn.
    """
    api = FastAPI(title="FileFlow", lifespan=lifespan)
    api.state.api_token = api_token
    api.state.metrics = metrics or FileFlowMetrics()
    builder = TransferRequestBuilder()

    async def require_token(token: str | None = Depends(api_key_scheme)) -> None:
        expected = api.state.api_token
        if expected is None:
            return
        if not token or token != expected:
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or missing API token")

    auth_dependency = Depends(require_token)

    @api.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Log validation errors and answer in the relay's error shape."""
        logger.error(f"Validation error on {request.method} {request.url.path}")
        logger.error(f"Validation errors: {exc.errors()}")
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    @api.get("/health")
    async def health():
        """Health check endpoint (no authentication required)."""
        return {"status": "ok"}

    @api.get("/metrics")
    async def metrics_endpoint():
        """Expose Prometheus metrics in text exposition format."""
        return Response(content=api.state.metrics.generate_latest(), media_type="text/plain; version=0.0.4")

    @api.post("/api/upload", dependencies=[auth_dependency])
    async def upload(request: Request):
        """Relay uploaded files as attachments of a single email."""
        collector: FileFlowMetrics = api.state.metrics
        try:
            form = await request.form()
            compressed = str(form.get("compressed", "false")).lower() == "true"
            transfer = builder.build_files_request(
                _parse_recipients(form.get("recipients", "[]")),
                await _read_uploads(form, compressed),
                compressed,
                source_metadata=_source_metadata(request, form.get("source")),
            )
            await mailer.send_files(transfer.recipients, transfer.attachments)
        except ValidationError as exc:
            collector.inc_error("files")
            logger.info(f"Upload rejected: {exc.description}")
            return _error(status.HTTP_400_BAD_REQUEST, exc.description)
        except Exception:
            collector.inc_error("files")
            logger.exception("Upload/Email error")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, UPLOAD_FAILURE_MESSAGE)

        collector.inc_sent("files", len(transfer.recipients))
        if transfer.compressed:
            for att in transfer.attachments:
                collector.add_saved_bytes(att.original_size, att.final_size)
        result = GatewayResult(
            success=True,
            message=f"Successfully sent {len(transfer.attachments)} file(s) to {', '.join(transfer.recipients)}",
        )
        return result.model_dump(by_alias=True, exclude_none=True)

    @api.post("/api/send-text", dependencies=[auth_dependency])
    async def send_text(payload: SendTextPayload, request: Request):
        """Relay pasted text or code as a single attachment."""
        collector: FileFlowMetrics = api.state.metrics
        try:
            compressed_payload = None
            if payload.compressed:
                if not payload.compressed_content:
                    raise ValidationError("Compression failed", "Compressed content is missing.")
                try:
                    compressed_payload = base64.b64decode(payload.compressed_content, validate=True)
                except (binascii.Error, ValueError) as exc:
                    raise ValidationError("Compression failed", "Compressed content is not valid base64.") from exc
            transfer = builder.build_text_request(
                payload.recipients,
                payload.content,
                language=payload.language,
                filename=payload.filename,
                compressed=payload.compressed,
                compressed_payload=compressed_payload,
                source_metadata=_source_metadata(request, payload.source),
            )
            await mailer.send_text(
                transfer.recipients,
                transfer.content,
                transfer.language,
                transfer.filename,
                compressed_payload=transfer.compressed_payload,
            )
        except ValidationError as exc:
            collector.inc_error("text")
            logger.info(f"Send-text rejected: {exc.description}")
            return _error(status.HTTP_400_BAD_REQUEST, exc.description)
        except Exception:
            collector.inc_error("text")
            logger.exception("Send text error")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, TEXT_FAILURE_MESSAGE)

        collector.inc_sent("text", len(transfer.recipients))
        ratio = None
        if transfer.compressed and transfer.compressed_size is not None:
            collector.add_saved_bytes(transfer.original_size, transfer.compressed_size)
            ratio = get_compression_ratio(transfer.original_size, transfer.compressed_size)
        result = GatewayResult(
            success=True,
            message=f"{text_kind(transfer.language)} sent successfully to {', '.join(transfer.recipients)}",
            compression_ratio=ratio,
        )
        return result.model_dump(by_alias=True, exclude_none=True)

    return api
