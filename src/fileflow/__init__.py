# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Send files or pasted text/code by email without storing them.

This package provides the pieces of the FileFlow service:

- Size enforcement for files and pasted text (20 MiB per item)
- Client-side compression with image, PDF and generic strategies
- Validated, duplicate-free recipient lists
- Transfer request assembly and a single-shot gateway client
- FastAPI relay endpoints that deliver the content through SMTP

Example:
    Sending two files from Python::

        from fileflow.client import GatewayClient
        from fileflow.submission import FileSubmission

        submission = FileSubmission(GatewayClient("http://localhost:8000"))
        submission.add_paths(["report.pdf", "photo.png"])
        submission.recipients.parse_many("alice@example.com; bob@example.com")
        await submission.submit(compress=True)

    Previewing a selected image before sending::

        from fileflow import PreviewManager

        with PreviewManager() as previews:
            path = previews.open(submission.attachments[0])
"""

__version__ = "0.1.0"

from .client import GatewayClient
from .compression import CompressionEngine
from .preview import PreviewManager
from .recipients import RecipientSet
from .submission import FileSubmission, Notice, TextSubmission
from .transfer import TransferRequestBuilder

__all__ = [
    "CompressionEngine",
    "FileSubmission",
    "GatewayClient",
    "Notice",
    "PreviewManager",
    "RecipientSet",
    "TextSubmission",
    "TransferRequestBuilder",
]
