# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Per-item size limit for files and pasted text.

Every file and every text blob is checked against ``MAX_SIZE_BYTES`` at
intake and once more when the transfer request is built. The boundary is
inclusive: an item of exactly 20 MiB is accepted.
"""

from __future__ import annotations

MAX_SIZE_BYTES = 20 * 1024 * 1024
MAX_SIZE_LABEL = "20MB"

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def is_within_limit(size_bytes: int) -> bool:
    """Return True when ``size_bytes`` does not exceed the 20 MiB limit."""
    return size_bytes <= MAX_SIZE_BYTES


def text_size(text: str) -> int:
    """Return the serialized (UTF-8) byte length of ``text``."""
    return len(text.encode("utf-8"))


def format_file_size(size_bytes: int) -> str:
    """Render a byte count for display.

    Uses 1024 steps and at most two decimals with trailing zeros removed.

    Example:
        >>> format_file_size(0)
        '0 Bytes'
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size_bytes <= 0:
        return "0 Bytes"
    index = 0
    while size_bytes >= 1024 ** (index + 1) and index < len(_SIZE_UNITS) - 1:
        index += 1
    value = round(size_bytes / 1024 ** index, 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"
