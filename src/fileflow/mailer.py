# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP relay for FileFlow transfers.

Builds one ``EmailMessage`` per transfer, addressed to every recipient, with
an HTML body and the content as attachments, and delivers it through
aiosmtplib. A fresh connection is opened for each send and closed
afterwards; nothing about the transfer is kept once the send returns.

TLS behaviour based on port and ``use_tls``:
- port 465 with ``use_tls``: implicit TLS
- any other port with ``use_tls``: STARTTLS
- ``use_tls`` disabled: plain SMTP
"""

from __future__ import annotations

import asyncio
from email.message import EmailMessage

import aiosmtplib

from . import templates
from .config_loader import SmtpConfig
from .logger import get_logger
from .models import Attachment

GZIP_MIME_TYPE = "application/gzip"
DEFAULT_MIME_TYPE = "application/octet-stream"


class MailerConfigurationError(RuntimeError):
    """Raised when the relay has no sender address configured."""

    def __init__(self, message: str = "Missing SMTP sender configuration"):
        super().__init__(message)
        self.code = "missing_sender_configuration"


def _split_mime(mime_type: str | None) -> tuple[str, str]:
    if mime_type and "/" in mime_type:
        maintype, subtype = mime_type.split("/", 1)
        return maintype, subtype.split(";", 1)[0].strip()
    return tuple(DEFAULT_MIME_TYPE.split("/", 1))  # type: ignore[return-value]


class Mailer:
    """Build and send FileFlow emails.

    Attributes:
        config: SMTP connection and sender settings.
        timeout: Socket timeout passed to aiosmtplib.
        send_timeout: Upper bound for connect + login + send.
    """

    def __init__(self, config: SmtpConfig, timeout: float = 10.0, send_timeout: float = 60.0):
        self.config = config
        self.timeout = timeout
        self.send_timeout = send_timeout
        self.logger = get_logger("Mailer")

    # ------------------------------------------------------------ messages
    def _base_message(self, recipients: list[str], subject: str, html: str) -> EmailMessage:
        from_header = self.config.from_header
        if not from_header:
            raise MailerConfigurationError()
        msg = EmailMessage()
        msg["From"] = from_header
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg.set_content(html, subtype="html")
        return msg

    def build_files_message(self, recipients: list[str], attachments: list[Attachment]) -> EmailMessage:
        """Message carrying uploaded files as attachments."""
        msg = self._base_message(
            recipients,
            templates.files_subject(len(attachments)),
            templates.files_body([att.filename for att in attachments]),
        )
        for att in attachments:
            maintype, subtype = _split_mime(att.mime_type)
            msg.add_attachment(att.raw_bytes, maintype=maintype, subtype=subtype, filename=att.filename)
        return msg

    def build_text_message(
        self,
        recipients: list[str],
        content: str,
        language: str,
        filename: str,
        compressed_payload: bytes | None = None,
    ) -> EmailMessage:
        """Message carrying pasted text/code as a single attachment.

        When ``compressed_payload`` is given it is attached as gzip data named
        ``<filename>.gz``; otherwise the UTF-8 text is attached as
        ``text/plain``.
        """
        msg = self._base_message(
            recipients,
            templates.text_subject(language, filename),
            templates.text_body(content, language, filename),
        )
        if compressed_payload is not None:
            maintype, subtype = _split_mime(GZIP_MIME_TYPE)
            msg.add_attachment(compressed_payload, maintype=maintype, subtype=subtype, filename=f"{filename}.gz")
        else:
            msg.add_attachment(content.encode("utf-8"), maintype="text", subtype="plain", filename=filename)
        return msg

    # ---------------------------------------------------------------- SMTP
    def _client(self) -> aiosmtplib.SMTP:
        host, port = self.config.host, self.config.port
        if self.config.use_tls and port == 465:
            return aiosmtplib.SMTP(hostname=host, port=port, start_tls=False, use_tls=True, timeout=self.timeout)
        if self.config.use_tls:
            return aiosmtplib.SMTP(hostname=host, port=port, start_tls=True, use_tls=False, timeout=self.timeout)
        return aiosmtplib.SMTP(hostname=host, port=port, start_tls=False, use_tls=False, timeout=self.timeout)

    async def send(self, msg: EmailMessage) -> None:
        """Deliver ``msg`` over a new SMTP connection.

        Raises:
            asyncio.TimeoutError: If the whole exchange exceeds ``send_timeout``.
            aiosmtplib.SMTPException: If connection, login or delivery fails.
        """
        smtp = self._client()
        user, password = self.config.user, self.config.password
        sender = self.config.from_address

        async def _do_send() -> None:
            await smtp.connect()
            try:
                if user and password:
                    await smtp.login(user, password)
                await smtp.send_message(msg, sender=sender)
            finally:
                try:
                    await smtp.quit()
                except aiosmtplib.SMTPException as exc:
                    self.logger.debug("SMTP quit failed: %s", exc)

        await asyncio.wait_for(_do_send(), timeout=self.send_timeout)
        self.logger.info("Delivered %r to %s", msg["Subject"], msg["To"])

    async def send_files(self, recipients: list[str], attachments: list[Attachment]) -> None:
        await self.send(self.build_files_message(recipients, attachments))

    async def send_text(
        self,
        recipients: list[str],
        content: str,
        language: str,
        filename: str,
        compressed_payload: bytes | None = None,
    ) -> None:
        await self.send(self.build_text_message(recipients, content, language, filename, compressed_payload))
