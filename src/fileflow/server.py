# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ASGI application entry point for uvicorn.

This module builds a FastAPI application from ``load_settings()`` so the
relay can be served directly.

Usage:
    uvicorn fileflow.server:app --host 0.0.0.0 --port 8000

Environment variables:
    FF_CONFIG: Path to the INI configuration (default: config.ini)
    FF_SMTP_*, FF_API_TOKEN: see ``fileflow.config_loader``
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import create_app
from .config_loader import Settings, load_settings
from .logger import get_logger
from .mailer import Mailer
from .prometheus import FileFlowMetrics

logger = get_logger("Server")


def build_app(settings: Settings | None = None) -> FastAPI:
    """Create the relay application for ``settings`` (loaded when omitted)."""
    settings = settings or load_settings()
    mailer = Mailer(settings.smtp)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Log relay start and stop; SMTP connections are opened per send."""
        logger.info(
            "FileFlow relay using SMTP %s:%s (tls=%s)",
            settings.smtp.host,
            settings.smtp.port,
            settings.smtp.use_tls,
        )
        if not settings.smtp.from_address:
            logger.warning("No SMTP sender configured, every send will fail")
        yield
        logger.info("FileFlow relay stopped")

    return create_app(mailer, api_token=settings.api_token, metrics=FileFlowMetrics(), lifespan=lifespan)


app = build_app()
