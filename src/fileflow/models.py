# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for FileFlow transfers.

Models:
    - Attachment: A selected file, optionally replaced by its compressed form
    - SourceMetadata: Sender provenance captured at submit time
    - FilesTransferRequest: Outbound request carrying file attachments
    - TextTransferRequest: Outbound request carrying pasted text or code
    - GatewayResult: Success payload returned by the delivery gateway
    - LanguageOption: Content-kind label with its canonical extension
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class Attachment(BaseModel):
    """A file selected, pasted or dropped by the user.

    Instances are frozen. Compression returns a new Attachment whose
    ``raw_bytes`` hold the compressed payload while ``original_size`` keeps
    the size of the file the user picked.

    Attributes:
        filename: File name as sent to recipients.
        mime_type: MIME type of ``raw_bytes``.
        raw_bytes: Content to attach.
        original_size: Size in bytes of the file as selected.
        compressed_size: Size in bytes after compression, None when the
            attachment was never compressed.
        original_filename: Name of the selected file when compression
            renamed it.
        original_mime_type: MIME type of the selected file when compression
            changed it.
    """

    model_config = ConfigDict(frozen=True)

    filename: Annotated[
        str,
        Field(min_length=1, max_length=255, description="Attachment filename")
    ]
    mime_type: Annotated[
        str,
        Field(default="application/octet-stream", description="MIME type of the payload")
    ]
    raw_bytes: Annotated[
        bytes,
        Field(repr=False, description="Attachment payload")
    ]
    original_size: Annotated[
        int,
        Field(ge=0, description="Size of the selected file in bytes")
    ]
    compressed_size: Annotated[
        int | None,
        Field(default=None, ge=0, description="Size after compression in bytes")
    ]
    original_filename: Annotated[
        str | None,
        Field(default=None, description="Filename before compression")
    ]
    original_mime_type: Annotated[
        str | None,
        Field(default=None, description="MIME type before compression")
    ]

    @classmethod
    def from_bytes(cls, filename: str, data: bytes, mime_type: str | None = None) -> Attachment:
        """Build an uncompressed attachment from raw content."""
        return cls(
            filename=filename,
            mime_type=mime_type or "application/octet-stream",
            raw_bytes=data,
            original_size=len(data),
        )

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def final_size(self) -> int:
        """Size of the payload that will actually be sent."""
        if self.compressed_size is not None:
            return self.compressed_size
        return len(self.raw_bytes)


class SourceMetadata(BaseModel):
    """Sender provenance attached to a transfer.

    All fields are optional; they describe where a submission came from and
    are never used for authorization.
    """

    model_config = ConfigDict(frozen=True)

    ip: str | None = None
    user_agent: str | None = None
    locale: str | None = None
    referrer: str | None = None
    timestamp: Annotated[
        datetime,
        Field(default_factory=lambda: datetime.now(timezone.utc))
    ]


class FilesTransferRequest(BaseModel):
    """Request to email one or more files.

    Attributes:
        recipients: Validated, duplicate-free recipient addresses.
        attachments: Files in user-selection order.
        compressed: Whether the attachments went through compression.
        source_metadata: Optional sender provenance.
    """

    model_config = ConfigDict(frozen=True)

    recipients: Annotated[list[str], Field(min_length=1)]
    attachments: Annotated[list[Attachment], Field(min_length=1)]
    compressed: bool = False
    source_metadata: SourceMetadata | None = None

    @property
    def total_original_size(self) -> int:
        return sum(att.original_size for att in self.attachments)


class TextTransferRequest(BaseModel):
    """Request to email pasted text or source code as a single attachment.

    When ``compressed`` is True, ``compressed_payload`` carries the gzip
    bytes of ``content`` and ``compressed_size`` their length.
    """

    model_config = ConfigDict(frozen=True)

    recipients: Annotated[list[str], Field(min_length=1)]
    content: Annotated[str, Field(min_length=1)]
    language: str = "plaintext"
    filename: Annotated[str, Field(min_length=1, max_length=255)]
    compressed: bool = False
    compressed_payload: Annotated[bytes | None, Field(default=None, repr=False)]
    original_size: Annotated[int, Field(ge=0)]
    compressed_size: Annotated[int | None, Field(default=None, ge=0)]
    source_metadata: SourceMetadata | None = None


class GatewayResult(BaseModel):
    """Successful answer from the delivery gateway."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = ""
    compression_ratio: Annotated[
        int | None,
        Field(default=None, alias="compressionRatio")
    ]


class LanguageOption(BaseModel):
    """A content-kind choice for text submissions."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str
    extension: str


PLAINTEXT = "plaintext"
DEFAULT_EXTENSION = "txt"

LANGUAGE_OPTIONS: tuple[LanguageOption, ...] = (
    LanguageOption(value=PLAINTEXT, label="Plain Text", extension="txt"),
    LanguageOption(value="javascript", label="JavaScript", extension="js"),
    LanguageOption(value="typescript", label="TypeScript", extension="ts"),
    LanguageOption(value="python", label="Python", extension="py"),
    LanguageOption(value="java", label="Java", extension="java"),
    LanguageOption(value="c", label="C", extension="c"),
    LanguageOption(value="cpp", label="C++", extension="cpp"),
    LanguageOption(value="csharp", label="C#", extension="cs"),
    LanguageOption(value="html", label="HTML", extension="html"),
    LanguageOption(value="css", label="CSS", extension="css"),
    LanguageOption(value="json", label="JSON", extension="json"),
    LanguageOption(value="xml", label="XML", extension="xml"),
    LanguageOption(value="sql", label="SQL", extension="sql"),
    LanguageOption(value="markdown", label="Markdown", extension="md"),
    LanguageOption(value="yaml", label="YAML", extension="yml"),
    LanguageOption(value="shell", label="Shell Script", extension="sh"),
)

_LANGUAGES_BY_VALUE = {option.value: option for option in LANGUAGE_OPTIONS}


def get_language(value: str) -> LanguageOption | None:
    """Look up a language option by its value."""
    return _LANGUAGES_BY_VALUE.get(value)


def language_extension(value: str) -> str:
    """Return the canonical extension for a language, ``txt`` if unknown."""
    option = _LANGUAGES_BY_VALUE.get(value)
    return option.extension if option else DEFAULT_EXTENSION


def language_label(value: str) -> str:
    """Return the display label for a language, the raw value if unknown."""
    option = _LANGUAGES_BY_VALUE.get(value)
    return option.label if option else value


def is_plain_text(value: str) -> bool:
    """True for the plain-text content kind (``plaintext`` or legacy ``text``)."""
    return value in (PLAINTEXT, "text")
