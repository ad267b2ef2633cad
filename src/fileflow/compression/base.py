# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base interface for compression strategies.

Each strategy turns an ``Attachment`` into a new ``Attachment`` holding the
compressed payload. Strategies are synchronous and side-effect free so the
engine can run them one after the other, or later fan them out, behind the
same interface.
"""

from __future__ import annotations

import gzip
from collections.abc import Callable

from ..models import Attachment

Compressor = Callable[[bytes], bytes]


def gzip_compress(data: bytes) -> bytes:
    """Default lossless byte compressor."""
    return gzip.compress(data)


def pass_through(att: Attachment) -> Attachment:
    """Return an attachment carrying the original bytes, name and MIME type."""
    return Attachment(
        filename=att.filename,
        mime_type=att.mime_type,
        raw_bytes=att.raw_bytes,
        original_size=att.original_size,
        compressed_size=len(att.raw_bytes),
    )


class CompressionStrategyBase:
    """Abstract base class for compression strategies."""

    def compress(self, att: Attachment) -> Attachment:
        """Compress ``att`` and return the resulting attachment.

        Args:
            att: The attachment as selected by the user.

        Returns:
            A new attachment with ``compressed_size`` set.

        Raises:
            NotImplementedError: If called on the base class directly.
        """
        raise NotImplementedError
