# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""PDF compression.

PDFs go through the same lossless compressor as generic files but keep their
name and ``application/pdf`` MIME type. No minimum ratio is enforced: the
compressed bytes are returned whatever the achieved reduction.
"""

from __future__ import annotations

from ..logger import get_logger
from ..models import Attachment
from .base import CompressionStrategyBase, Compressor, gzip_compress, pass_through

PDF_MIME_TYPE = "application/pdf"

logger = get_logger("Compression")


class PdfStrategy(CompressionStrategyBase):
    """Compress PDF bytes, preserving filename and MIME type."""

    def __init__(self, compressor: Compressor | None = gzip_compress):
        self.compressor = compressor

    def compress(self, att: Attachment) -> Attachment:
        if self.compressor is None:
            logger.warning("Compression unavailable, sending %s uncompressed", att.filename)
            return pass_through(att)
        data = self.compressor(att.raw_bytes)
        if att.original_size:
            logger.debug(
                "PDF %s compressed to %.0f%% of its size",
                att.filename,
                100 * len(data) / att.original_size,
            )
        return Attachment(
            filename=att.filename,
            mime_type=PDF_MIME_TYPE,
            raw_bytes=data,
            original_size=att.original_size,
            compressed_size=len(data),
        )
