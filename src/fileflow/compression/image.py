# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Image re-encoding with Pillow.

Images are decoded, scaled down to fit inside 1920x1080 (aspect ratio
preserved, never scaled up) and re-encoded as JPEG. The JPEG quality depends
on the size of the file the user selected:

- larger than 5 MiB: 0.6
- larger than 2 MiB: 0.7
- otherwise: 0.8

Quality factors are on a 0.0-1.0 scale and map to Pillow's JPEG quality as
``round(factor * 100)``. Images Pillow cannot decode are handed to the
fallback strategy instead.
"""

from __future__ import annotations

import io
from pathlib import PurePath

from PIL import Image

from ..logger import get_logger
from ..models import Attachment
from .base import CompressionStrategyBase

MAX_WIDTH = 1920
MAX_HEIGHT = 1080
JPEG_MIME_TYPE = "image/jpeg"
JPEG_EXTENSION = ".jpg"

logger = get_logger("Compression")


def quality_for_size(size_bytes: int) -> float:
    """Return the JPEG quality factor used for a file of ``size_bytes``."""
    if size_bytes > 5 * 1024 * 1024:
        return 0.6
    if size_bytes > 2 * 1024 * 1024:
        return 0.7
    return 0.8


def fit_within(width: int, height: int, max_width: int = MAX_WIDTH, max_height: int = MAX_HEIGHT) -> tuple[int, int]:
    """Scale ``(width, height)`` down to fit the bounding box, never up."""
    if width <= max_width and height <= max_height:
        return width, height
    ratio = min(max_width / width, max_height / height)
    return (
        min(max_width, max(1, round(width * ratio))),
        min(max_height, max(1, round(height * ratio))),
    )


def jpeg_filename(filename: str) -> str:
    """Replace the extension of ``filename`` with ``.jpg``."""
    path = PurePath(filename)
    if path.suffix:
        return str(path.with_suffix(JPEG_EXTENSION))
    return f"{filename}{JPEG_EXTENSION}"


class ImageStrategy(CompressionStrategyBase):
    """Downscale and re-encode images as JPEG.

    Attributes:
        fallback: Strategy used when the image cannot be decoded.
        max_width: Maximum output width in pixels.
        max_height: Maximum output height in pixels.
    """

    def __init__(
        self,
        fallback: CompressionStrategyBase,
        max_width: int = MAX_WIDTH,
        max_height: int = MAX_HEIGHT,
    ):
        self.fallback = fallback
        self.max_width = max_width
        self.max_height = max_height

    def compress(self, att: Attachment) -> Attachment:
        quality = quality_for_size(att.original_size)
        try:
            data = self._reencode(att.raw_bytes, quality)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            logger.warning("Cannot decode image %s (%s), using generic compression", att.filename, exc)
            return self.fallback.compress(att)
        return Attachment(
            filename=jpeg_filename(att.filename),
            mime_type=JPEG_MIME_TYPE,
            raw_bytes=data,
            original_size=att.original_size,
            compressed_size=len(data),
        )

    def _reencode(self, raw: bytes, quality: float) -> bytes:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            size = fit_within(img.width, img.height, self.max_width, self.max_height)
            surface = img if size == img.size else img.resize(size, Image.Resampling.LANCZOS)
            # JPEG has no alpha channel or palette
            if surface.mode not in ("RGB", "L"):
                surface = surface.convert("RGB")
            buffer = io.BytesIO()
            surface.save(buffer, format="JPEG", quality=round(quality * 100))
        return buffer.getvalue()
