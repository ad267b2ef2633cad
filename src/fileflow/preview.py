# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Temporary files backing image previews.

At most one preview is open at a time. Opening a new preview releases the
previous one, and ``close`` (or leaving the ``with`` block, error or not)
deletes the current file.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path, PurePath

from .logger import get_logger
from .models import Attachment
from .submission import Notice

logger = get_logger("Preview")


class PreviewManager:
    """Owns the temporary file of the image currently being previewed."""

    def __init__(self, directory: str | Path | None = None, on_notice: Callable[[Notice], None] | None = None):
        self.directory = str(directory) if directory is not None else None
        self._on_notice = on_notice
        self.current: Path | None = None
        self.current_name: str | None = None

    def open(self, att: Attachment) -> Path | None:
        """Write ``att`` to a temporary file and return its path.

        Non-image attachments are refused and return None; any preview that
        was open is released either way.
        """
        self.close()
        if not att.is_image:
            logger.info("Preview not available for %s (%s)", att.filename, att.mime_type)
            if self._on_notice is not None:
                self._on_notice(Notice("Preview not available", f"{att.filename} is not an image."))
            return None
        fd, name = tempfile.mkstemp(prefix="fileflow-preview-", suffix=PurePath(att.filename).suffix, dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(att.raw_bytes)
        except BaseException:
            os.unlink(name)
            raise
        self.current = Path(name)
        self.current_name = att.filename
        return self.current

    def replace(self, att: Attachment) -> Path | None:
        return self.open(att)

    def close(self) -> None:
        """Release the current preview file, if any."""
        path, self.current, self.current_name = self.current, None, None
        if path is None:
            return
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Preview file %s already removed", path)

    def __enter__(self) -> PreviewManager:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
