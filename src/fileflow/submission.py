# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Submission flow for file uploads and text/code shares.

A submission collects user input (files or text, recipients), rejects what
cannot be sent with a notice, and performs a single gateway call per
``submit``. Every outcome is reported as a ``Notice``; nothing raises out of
``submit``.

Rules enforced here:

- oversized files are rejected at intake and never reach the request
- validation failures produce a notice before any network call
- a submit while another is running is refused
- the ``busy`` flag is always cleared, whatever the outcome
- no automatic retry; the user resubmits explicitly

Example:
    Driving a text share::

        submission = TextSubmission(GatewayClient(url))
        submission.add_text("print('hello')")
        submission.language = "python"
        submission.add_recipient("dev@example.com")
        result = await submission.submit(compress=True)
        for notice in submission.notices:
            print(notice.title, notice.description)
"""

from __future__ import annotations

import mimetypes
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .compression import AttachmentKind, CompressionEngine, classify
from .errors import TransportError, ValidationError
from .logger import get_logger
from .models import (
    PLAINTEXT,
    Attachment,
    FilesTransferRequest,
    GatewayResult,
    SourceMetadata,
    TextTransferRequest,
    is_plain_text,
)
from .recipients import AddOutcome, ParseReport, RecipientSet
from .size_guard import MAX_SIZE_LABEL, is_within_limit, text_size
from .transfer import TransferRequestBuilder

logger = get_logger("Submission")


class DeliveryGateway(Protocol):
    """Anything able to deliver an assembled transfer request."""

    async def send_files(self, request: FilesTransferRequest) -> GatewayResult: ...

    async def send_text(self, request: TextTransferRequest) -> GatewayResult: ...


@dataclass(frozen=True)
class Notice:
    """User-facing message produced by a submission."""

    title: str
    description: str
    variant: str = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


def guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"


def describe_recipients(recipients: list[str]) -> str:
    if len(recipients) == 1:
        return recipients[0]
    return f"{len(recipients)} recipients"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class SubmissionBase:
    """State and behaviour shared by file and text submissions.

    Attributes:
        gateway: Delivery gateway used for the single send.
        engine: Compression engine.
        builder: Transfer request builder.
        recipients: Recipients entered so far.
        notices: Notices emitted, oldest first.
        busy: True while a submit is in flight.
        compressing: True while a compressed submit is in flight.
    """

    failure_title = "Send failed"

    def __init__(
        self,
        gateway: DeliveryGateway,
        engine: CompressionEngine | None = None,
        builder: TransferRequestBuilder | None = None,
        on_notice: Callable[[Notice], None] | None = None,
        source_metadata: SourceMetadata | None = None,
    ):
        self.gateway = gateway
        self.engine = engine or CompressionEngine()
        self.builder = builder or TransferRequestBuilder()
        self.recipients = RecipientSet()
        self.notices: list[Notice] = []
        self.busy = False
        self.compressing = False
        self.source_metadata = source_metadata
        self._on_notice = on_notice

    def notify(self, title: str, description: str, variant: str = "default") -> Notice:
        notice = Notice(title, description, variant)
        self.notices.append(notice)
        if self._on_notice is not None:
            self._on_notice(notice)
        return notice

    def _error(self, title: str, description: str) -> Notice:
        return self.notify(title, description, "destructive")

    # ------------------------------------------------------------ recipients
    def add_recipient(self, candidate: str) -> AddOutcome:
        """Commit a typed address (Enter, comma, semicolon or focus loss)."""
        outcome = self.recipients.add(candidate)
        email = candidate.strip().lower()
        if outcome is AddOutcome.INVALID:
            self._error("Invalid email format", f'"{email}" is not a valid email address.')
        elif outcome is AddOutcome.DUPLICATE:
            self._error("Duplicate email", f'"{email}" is already in the recipients list.')
        return outcome

    def paste_recipients(self, blob: str) -> ParseReport:
        """Commit every address found in pasted text."""
        report = self.recipients.parse_many(blob)
        for email in report.invalid:
            self._error("Invalid email format", f'"{email}" is not a valid email address.')
        for email in report.duplicates:
            self._error("Duplicate email", f'"{email}" is already in the recipients list.')
        return report

    # ---------------------------------------------------------------- submit
    def _validate(self) -> None:
        raise NotImplementedError

    async def _send(self, compress: bool) -> GatewayResult:
        raise NotImplementedError

    def _on_success(self, result: GatewayResult, compress: bool) -> None:
        raise NotImplementedError

    async def submit(self, compress: bool = True) -> GatewayResult | None:
        """Validate, optionally compress, and send once.

        Returns:
            The gateway result on success, None otherwise. The reason for a
            None result is the last entry of ``notices``.
        """
        if self.busy:
            self._error("Submission in progress", "Please wait for the current send to finish.")
            return None
        try:
            self._validate()
        except ValidationError as exc:
            self._error(exc.title, exc.description)
            return None

        self.busy = True
        self.compressing = compress
        try:
            result = await self._send(compress)
        except ValidationError as exc:
            self._error(exc.title, exc.description)
        except TransportError as exc:
            self._error(self.failure_title, exc.message)
        except Exception as exc:
            logger.exception("Unexpected error while submitting: %s", exc)
            self._error(self.failure_title, str(exc) or "Something went wrong")
        else:
            self._on_success(result, compress)
            return result
        finally:
            self.busy = False
            self.compressing = False
        return None


class FileSubmission(SubmissionBase):
    """Upload form: a list of files sent as attachments."""

    failure_title = "Upload failed"

    def __init__(self, gateway: DeliveryGateway, **kwargs):
        super().__init__(gateway, **kwargs)
        self.attachments: list[Attachment] = []

    def _reject_oversized(self, filename: str) -> None:
        self._error("File too large", f"{filename} exceeds the {MAX_SIZE_LABEL} limit and was not added.")

    def add_files(self, attachments: Iterable[Attachment]) -> list[Attachment]:
        """Add selected, dropped or pasted files, rejecting oversized ones.

        Returns:
            The attachments actually added.
        """
        accepted: list[Attachment] = []
        for att in attachments:
            if not is_within_limit(att.original_size):
                self._reject_oversized(att.filename)
                continue
            accepted.append(att)
        self.attachments.extend(accepted)
        return accepted

    def add_paths(self, paths: Iterable[str | Path]) -> list[Attachment]:
        """Add files from disk; oversized files are rejected before reading."""
        accepted: list[Attachment] = []
        for raw_path in paths:
            path = Path(raw_path)
            if not is_within_limit(path.stat().st_size):
                self._reject_oversized(path.name)
                continue
            accepted.extend(
                self.add_files([Attachment.from_bytes(path.name, path.read_bytes(), guess_mime_type(path.name))])
            )
        return accepted

    def add_pasted_files(self, attachments: Iterable[Attachment]) -> list[Attachment]:
        """Clipboard variant of ``add_files`` with a confirmation notice."""
        accepted = self.add_files(attachments)
        if accepted:
            self.notify("Files added from clipboard", f"{len(accepted)} file(s) added via paste")
        return accepted

    def remove_file(self, index: int) -> None:
        if 0 <= index < len(self.attachments):
            del self.attachments[index]

    @property
    def total_size(self) -> int:
        return sum(att.original_size for att in self.attachments)

    def _validate(self) -> None:
        if not self.attachments:
            raise ValidationError("No files selected", "Please select at least one file to upload.")
        if not self.recipients:
            raise ValidationError("Recipients required", "Please add at least one email recipient.")

    async def _send(self, compress: bool) -> GatewayResult:
        attachments = list(self.attachments)
        if compress:
            attachments = await self.engine.compress_all(attachments)
        request = self.builder.build_files_request(
            self.recipients.as_list(),
            attachments,
            compressed=compress,
            source_metadata=self.source_metadata,
        )
        return await self.gateway.send_files(request)

    def _compression_info(self) -> str:
        kinds = [classify(att.mime_type) for att in self.attachments]
        images = kinds.count(AttachmentKind.IMAGE)
        pdfs = kinds.count(AttachmentKind.PDF)
        if not images and not pdfs:
            return " (compressed)"
        info = f"{_plural(images, 'image')} optimized"
        if pdfs:
            info += f", {_plural(pdfs, 'PDF')} compressed"
        return f" ({info})"

    def _on_success(self, result: GatewayResult, compress: bool) -> None:
        info = self._compression_info() if compress else ""
        recipient_text = describe_recipients(self.recipients.as_list())
        self.notify(
            "Files sent successfully!",
            f"{len(self.attachments)} file(s) have been sent to {recipient_text}{info}",
        )
        self.attachments = []
        self.recipients.clear()


class TextSubmission(SubmissionBase):
    """Text/code form: pasted content sent as a single attachment."""

    def __init__(self, gateway: DeliveryGateway, **kwargs):
        super().__init__(gateway, **kwargs)
        self.content = ""
        self.language = PLAINTEXT
        self.filename = ""

    def add_text(self, text: str) -> bool:
        """Append text to the content; blank input is ignored."""
        if not text or not text.strip():
            return False
        self.content += text
        return True

    def paste_text(self, text: str) -> bool:
        """Clipboard variant of ``add_text`` with a confirmation notice."""
        added = self.add_text(text)
        if added:
            self.notify("Text added from clipboard", "Content pasted")
        return added

    @property
    def content_size(self) -> int:
        return text_size(self.content)

    @property
    def kind_label(self) -> str:
        return "text" if is_plain_text(self.language) else "code"

    def _validate(self) -> None:
        if not self.content.strip():
            raise ValidationError("Content required", "Please enter some text or code to share.")
        if not self.recipients:
            raise ValidationError("Recipients required", "Please add at least one email recipient.")
        if not is_within_limit(self.content_size):
            raise ValidationError(
                "Content too large",
                f"Your content exceeds the {MAX_SIZE_LABEL} limit. Please reduce the content size.",
            )

    async def _send(self, compress: bool) -> GatewayResult:
        payload = None
        if compress:
            compressed_text = await self.engine.compress_text(self.content)
            if compressed_text.compressed:
                payload = compressed_text.payload
        request = self.builder.build_text_request(
            self.recipients.as_list(),
            self.content,
            language=self.language,
            filename=self.filename,
            compressed=payload is not None,
            compressed_payload=payload,
            source_metadata=self.source_metadata,
        )
        return await self.gateway.send_text(request)

    def _on_success(self, result: GatewayResult, compress: bool) -> None:
        info = ""
        if compress and result.compression_ratio:
            info = f" ({result.compression_ratio}% smaller)"
        recipient_text = describe_recipients(self.recipients.as_list())
        self.notify(
            "Content sent successfully!",
            f"Your {self.kind_label} has been sent to {recipient_text}{info}",
        )
        self.content = ""
        self.filename = ""
        self.language = PLAINTEXT
        self.recipients.clear()
