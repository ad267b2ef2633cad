# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Assembly of outbound transfer requests.

The builder is the last check before anything leaves the process: it refuses
empty recipient lists and empty content, and applies the size limit again
even when intake already did.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .errors import ValidationError
from .logger import get_logger
from .models import (
    Attachment,
    FilesTransferRequest,
    SourceMetadata,
    TextTransferRequest,
    is_plain_text,
    language_extension,
)
from .recipients import RecipientSet, validate
from .size_guard import MAX_SIZE_LABEL, is_within_limit, text_size

DEFAULT_TEXT_BASENAME = "shared-text"
DEFAULT_CODE_BASENAME = "shared-code"

logger = get_logger("TransferRequestBuilder")


def default_basename(language: str) -> str:
    return DEFAULT_TEXT_BASENAME if is_plain_text(language) else DEFAULT_CODE_BASENAME


def resolve_filename(language: str, filename: str | None = None) -> str:
    """Build the attachment filename for a text submission.

    The user-supplied base name (or ``shared-text`` / ``shared-code``) gets the
    canonical extension of ``language``. A name already ending with that
    extension is kept as-is.

    Example:
        >>> resolve_filename("python")
        'shared-code.py'
        >>> resolve_filename("plaintext", "notes")
        'notes.txt'
    """
    extension = language_extension(language)
    base = (filename or "").strip() or default_basename(language)
    if base.lower().endswith(f".{extension}"):
        return base
    return f"{base}.{extension}"


class TransferRequestBuilder:
    """Package recipients and content into a transfer request."""

    def __init__(self, source_metadata: SourceMetadata | None = None):
        self.source_metadata = source_metadata

    def _check_recipients(self, recipients: Iterable[str]) -> list[str]:
        emails = [email for email in recipients if email.strip()]
        if not emails:
            raise ValidationError(
                "Recipients required",
                "Please add at least one email recipient.",
                code="no_recipients",
            )
        for email in emails:
            if not validate(email):
                raise ValidationError(
                    "Invalid email format",
                    f'"{email}" is not a valid email address.',
                    code="invalid_recipient",
                )
        return RecipientSet(emails).as_list()

    def build_files_request(
        self,
        recipients: Iterable[str],
        attachments: Sequence[Attachment],
        compressed: bool,
        source_metadata: SourceMetadata | None = None,
    ) -> FilesTransferRequest:
        """Build a request emailing ``attachments``.

        Raises:
            ValidationError: No recipients, no attachments, or an attachment
                whose original size exceeds the limit.
        """
        emails = self._check_recipients(recipients)
        if not attachments:
            raise ValidationError(
                "No files selected",
                "Please select at least one file to upload.",
                code="no_files",
            )
        for att in attachments:
            if not is_within_limit(att.original_size):
                raise ValidationError(
                    "File too large",
                    f"{att.filename} exceeds the {MAX_SIZE_LABEL} limit.",
                    code="file_too_large",
                )
        logger.debug("Built files request: %d file(s) for %d recipient(s)", len(attachments), len(emails))
        return FilesTransferRequest(
            recipients=emails,
            attachments=list(attachments),
            compressed=compressed,
            source_metadata=source_metadata or self.source_metadata,
        )

    def build_text_request(
        self,
        recipients: Iterable[str],
        content: str,
        language: str = "plaintext",
        filename: str | None = None,
        compressed: bool = False,
        compressed_payload: bytes | None = None,
        source_metadata: SourceMetadata | None = None,
    ) -> TextTransferRequest:
        """Build a request emailing ``content`` as a single attachment.

        Args:
            recipients: Validated recipient addresses.
            content: Text or source code to send.
            language: Content kind, selects the filename extension.
            filename: Optional base name chosen by the user.
            compressed: Whether ``compressed_payload`` should be sent.
            compressed_payload: Gzip bytes of ``content`` when compressed.
            source_metadata: Optional sender provenance.

        Raises:
            ValidationError: No recipients, blank content, content over the
                size limit, or ``compressed`` without a payload.
        """
        emails = self._check_recipients(recipients)
        if not content or not content.strip():
            raise ValidationError(
                "Content required",
                "Please enter some text or code to share.",
                code="no_content",
            )
        size = text_size(content)
        if not is_within_limit(size):
            raise ValidationError(
                "Content too large",
                f"Your content exceeds the {MAX_SIZE_LABEL} limit. Please reduce the content size.",
                code="content_too_large",
            )
        if compressed and compressed_payload is None:
            raise ValidationError(
                "Compression failed",
                "Compressed content is missing.",
                code="missing_compressed_payload",
            )
        return TextTransferRequest(
            recipients=emails,
            content=content,
            language=language,
            filename=resolve_filename(language, filename),
            compressed=compressed,
            compressed_payload=compressed_payload if compressed else None,
            original_size=size,
            compressed_size=len(compressed_payload) if compressed and compressed_payload is not None else None,
            source_metadata=source_metadata or self.source_metadata,
        )
