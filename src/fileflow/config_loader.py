# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Settings loader for the FileFlow server and client.

Configuration comes from an INI file (default: ``config.ini``, overridden by
``FF_CONFIG``) with environment variables as fallbacks. Values from the file
win over the environment.

Example:
    Configuration file format (config.ini)::

        [server]
        host = 0.0.0.0
        port = 8000
        api_token = change-me

        [smtp]
        host = smtp.zoho.com
        port = 587
        user = sender@example.com
        password = secret
        use_tls = true
        sender_name = FileFlow

        [client]
        gateway_url = http://localhost:8000
        timeout_seconds = 60

        [logging]
        level = INFO

Environment variables (all prefixed with FF_):
    FF_CONFIG, FF_HOST, FF_PORT, FF_API_TOKEN, FF_SMTP_HOST, FF_SMTP_PORT,
    FF_SMTP_USER, FF_SMTP_PASSWORD, FF_SMTP_USE_TLS, FF_SMTP_SENDER,
    FF_SMTP_SENDER_NAME, FF_GATEWAY_URL, FF_GATEWAY_TIMEOUT, FF_LOG_LEVEL
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from email.utils import formataddr
from pathlib import Path

from .logger import get_logger

logger = get_logger("ConfigLoader")


@dataclass
class SmtpConfig:
    """SMTP relay settings.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port.
        user: Username for SMTP authentication.
        password: Password for SMTP authentication.
        use_tls: Implicit TLS on port 465, STARTTLS on other ports.
        sender: Envelope and From address, defaults to ``user``.
        sender_name: Display name used in the From header.
    """

    host: str = "smtp.zoho.com"
    port: int = 587
    user: str | None = None
    password: str | None = None
    use_tls: bool = True
    sender: str | None = None
    sender_name: str = "FileFlow"

    @property
    def from_address(self) -> str | None:
        return self.sender or self.user

    @property
    def from_header(self) -> str | None:
        address = self.from_address
        if not address:
            return None
        if self.sender_name:
            return formataddr((self.sender_name, address))
        return address


@dataclass
class Settings:
    """Complete FileFlow configuration."""

    http_host: str = "0.0.0.0"
    http_port: int = 8000
    api_token: str | None = None
    smtp: SmtpConfig | None = None
    gateway_url: str = "http://localhost:8000"
    gateway_timeout: float = 60.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.smtp is None:
            self.smtp = SmtpConfig()


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    logger.warning(f"Invalid boolean value {value!r}, using default {default}")
    return default


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from an INI file with ``FF_*`` environment fallbacks.

    Args:
        config_path: Path to the INI file. Defaults to ``FF_CONFIG`` or
            ``config.ini``. A missing file is not an error.

    Returns:
        A populated ``Settings`` instance.

    Raises:
        ValueError: If a numeric option cannot be parsed.
    """
    path = Path(config_path or os.getenv("FF_CONFIG", "config.ini"))
    parser = configparser.ConfigParser()
    if path.exists():
        parser.read(path)
    else:
        logger.debug(f"Config file {path} not found, using environment and defaults")

    def get(section: str, option: str, env: str, default: str | None = None) -> str | None:
        if parser.has_option(section, option):
            value = parser.get(section, option).strip()
            return value or None
        value = os.getenv(env)
        if value is not None:
            return value.strip() or None
        return default

    def get_int(section: str, option: str, env: str, default: int) -> int:
        value = get(section, option, env)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise ValueError(f"Invalid integer for [{section}] {option}: {value!r}") from exc

    def get_float(section: str, option: str, env: str, default: float) -> float:
        value = get(section, option, env)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError as exc:
            raise ValueError(f"Invalid number for [{section}] {option}: {value!r}") from exc

    smtp = SmtpConfig(
        host=get("smtp", "host", "FF_SMTP_HOST", "smtp.zoho.com"),
        port=get_int("smtp", "port", "FF_SMTP_PORT", 587),
        user=get("smtp", "user", "FF_SMTP_USER"),
        password=get("smtp", "password", "FF_SMTP_PASSWORD"),
        use_tls=_parse_bool(get("smtp", "use_tls", "FF_SMTP_USE_TLS"), True),
        sender=get("smtp", "sender", "FF_SMTP_SENDER"),
        sender_name=get("smtp", "sender_name", "FF_SMTP_SENDER_NAME", "FileFlow") or "",
    )
    return Settings(
        http_host=get("server", "host", "FF_HOST", "0.0.0.0"),
        http_port=get_int("server", "port", "FF_PORT", 8000),
        api_token=get("server", "api_token", "FF_API_TOKEN"),
        smtp=smtp,
        gateway_url=get("client", "gateway_url", "FF_GATEWAY_URL", "http://localhost:8000"),
        gateway_timeout=get_float("client", "timeout_seconds", "FF_GATEWAY_TIMEOUT", 60.0),
        log_level=(get("logging", "level", "FF_LOG_LEVEL", "INFO") or "INFO").upper(),
    )
