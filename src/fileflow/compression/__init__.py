# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Content compression with per-kind strategies.

This module provides the CompressionEngine class, which picks a strategy from
the attachment MIME type and produces a compressed attachment plus its size.

Strategy selection (first match wins):
- ``image/*`` - downscale and re-encode as JPEG (see ``image``)
- ``application/pdf`` - lossless compression, PDF name and MIME kept
- anything else - lossless compression, ``.gz`` suffix, ``application/gzip``

Compression never aborts a submission: undecodable images fall back to
generic compression, a missing compressor means pass-through, and any other
failure returns the original bytes.

Example:
    Compressing a user selection::

        from fileflow.compression import CompressionEngine

        engine = CompressionEngine()
        compressed = await engine.compress_all(attachments)
        for original, result in zip(attachments, compressed):
            print(result.filename, get_compression_ratio(original.original_size, result.final_size))
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ..logger import get_logger
from ..models import Attachment
from ..size_guard import text_size
from .base import CompressionStrategyBase, Compressor, gzip_compress, pass_through
from .generic import GZIP_MIME_TYPE, GenericStrategy
from .image import ImageStrategy, MAX_HEIGHT, MAX_WIDTH
from .pdf import PDF_MIME_TYPE, PdfStrategy

__all__ = [
    "AttachmentKind",
    "CompressedText",
    "CompressionEngine",
    "CompressionStrategyBase",
    "classify",
    "get_compression_ratio",
    "gzip_compress",
]

TEXT_MIME_TYPE = "text/plain"

logger = get_logger("Compression")


class AttachmentKind(str, Enum):
    """Attachment category driving strategy selection."""

    IMAGE = "image"
    PDF = "pdf"
    GENERIC = "generic"


def classify(mime_type: str | None) -> AttachmentKind:
    """Map a MIME type to the strategy that handles it."""
    mime = (mime_type or "").lower()
    if mime.startswith("image/"):
        return AttachmentKind.IMAGE
    if mime == PDF_MIME_TYPE:
        return AttachmentKind.PDF
    return AttachmentKind.GENERIC


def get_compression_ratio(original_size: int, compressed_size: int) -> int:
    """Percentage saved by compression, rounded half up; 0 for empty input."""
    if original_size == 0:
        return 0
    return math.floor((original_size - compressed_size) / original_size * 100 + 0.5)


@dataclass(frozen=True)
class CompressedText:
    """Pasted text after compression.

    Attributes:
        payload: Bytes to send, gzip data or the UTF-8 text itself.
        mime_type: ``application/gzip`` or ``text/plain`` on pass-through.
        original_size: UTF-8 byte length of the text.
        compressed_size: Length of ``payload``.
    """

    payload: bytes
    mime_type: str
    original_size: int
    compressed_size: int

    @property
    def compressed(self) -> bool:
        return self.mime_type == GZIP_MIME_TYPE

    @property
    def ratio(self) -> int:
        return get_compression_ratio(self.original_size, self.compressed_size)


class CompressionEngine:
    """Select and run compression strategies.

    Attributes:
        compressor: Lossless byte compressor, or None when unavailable.
        generic: Strategy for files that are neither images nor PDFs.
        pdf: Strategy for PDF files.
        image: Strategy for images, falling back to ``generic``.
    """

    def __init__(
        self,
        compressor: Compressor | None = gzip_compress,
        max_width: int = MAX_WIDTH,
        max_height: int = MAX_HEIGHT,
    ):
        """Initialize the engine.

        Args:
            compressor: Callable compressing bytes. Pass None to model a
                runtime without a compression primitive; payloads then pass
                through unchanged.
            max_width: Maximum width for re-encoded images.
            max_height: Maximum height for re-encoded images.
        """
        self.compressor = compressor
        self.generic = GenericStrategy(compressor)
        self.pdf = PdfStrategy(compressor)
        self.image = ImageStrategy(self.generic, max_width=max_width, max_height=max_height)

    def strategy_for(self, kind: AttachmentKind) -> CompressionStrategyBase:
        match kind:
            case AttachmentKind.IMAGE:
                return self.image
            case AttachmentKind.PDF:
                return self.pdf
            case _:
                return self.generic

    async def compress(self, att: Attachment) -> Attachment:
        """Compress a single attachment, degrading to pass-through on failure."""
        kind = classify(att.mime_type)
        try:
            result = self.strategy_for(kind).compress(att)
        except Exception as exc:
            logger.warning("Compression of %s failed (%s), sending original bytes", att.filename, exc)
            result = pass_through(att)
        result = result.model_copy(
            update={"original_filename": att.filename, "original_mime_type": att.mime_type}
        )
        logger.debug(
            "Compressed %s (%s): %d -> %d bytes",
            att.filename,
            kind.value,
            att.original_size,
            result.final_size,
        )
        return result

    async def compress_all(self, attachments: Iterable[Attachment]) -> list[Attachment]:
        """Compress attachments one at a time, in selection order."""
        compressed: list[Attachment] = []
        for att in attachments:
            compressed.append(await self.compress(att))
            # let other tasks run between files
            await asyncio.sleep(0)
        return compressed

    async def compress_text(self, text: str) -> CompressedText:
        """Compress pasted text; pass through as ``text/plain`` if unavailable."""
        raw = text.encode("utf-8")
        original_size = text_size(text)
        if self.compressor is not None:
            try:
                data = self.compressor(raw)
            except Exception as exc:
                logger.warning("Text compression failed (%s), sending plain text", exc)
            else:
                return CompressedText(data, GZIP_MIME_TYPE, original_size, len(data))
        else:
            logger.warning("Compression unavailable, sending plain text")
        return CompressedText(raw, TEXT_MIME_TYPE, original_size, len(raw))
