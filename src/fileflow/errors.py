# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception types shared by the FileFlow core, client and API.

- ``ValidationError``: user-correctable input problems (no recipients,
  malformed address, empty content, oversized item). Raised before any
  network call.
- ``TransportError``: the delivery gateway failed or answered with a
  non-success status.

Compression problems never surface as exceptions; strategies degrade to a
less compressed or pass-through payload and log the event.
"""

from __future__ import annotations


class FileFlowError(Exception):
    """Base class for FileFlow errors."""


class ValidationError(FileFlowError):
    """Raised when user input cannot be sent as-is.

    Attributes:
        title: Short notice title, e.g. "Recipients required".
        description: Human readable explanation.
        code: Stable machine-readable identifier.
    """

    def __init__(self, title: str, description: str, code: str = "invalid_input"):
        super().__init__(description)
        self.title = title
        self.description = description
        self.code = code


class TransportError(FileFlowError):
    """Raised when the delivery gateway call fails.

    Attributes:
        status: HTTP status returned by the gateway, or None when the request
            never got an answer.
        message: Server-provided error message or a generic fallback.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
        self.message = message
