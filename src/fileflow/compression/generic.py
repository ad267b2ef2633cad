# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Generic lossless compression for arbitrary files."""

from __future__ import annotations

from ..logger import get_logger
from ..models import Attachment
from .base import CompressionStrategyBase, Compressor, gzip_compress, pass_through

GZIP_MIME_TYPE = "application/gzip"
GZIP_SUFFIX = ".gz"

logger = get_logger("Compression")


class GenericStrategy(CompressionStrategyBase):
    """Gzip the bytes and append ``.gz`` to the filename.

    When no compressor is configured the attachment passes through with its
    name and MIME type unchanged.
    """

    def __init__(self, compressor: Compressor | None = gzip_compress):
        self.compressor = compressor

    def compress(self, att: Attachment) -> Attachment:
        if self.compressor is None:
            logger.warning("Compression unavailable, sending %s uncompressed", att.filename)
            return pass_through(att)
        data = self.compressor(att.raw_bytes)
        return Attachment(
            filename=f"{att.filename}{GZIP_SUFFIX}",
            mime_type=GZIP_MIME_TYPE,
            raw_bytes=data,
            original_size=att.original_size,
            compressed_size=len(data),
        )
