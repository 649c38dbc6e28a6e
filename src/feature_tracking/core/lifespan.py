"""Application lifecycle management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import cv2

from feature_tracking.config import get_settings
from feature_tracking.core.state import init_app_state
from feature_tracking.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    # === STARTUP ===
    settings = get_settings()

    setup_logging(settings.server.log_level, settings.service.name)
    logger = get_logger("lifespan")

    state = init_app_state()

    logger.info(
        "Service starting",
        extra={
            "service": settings.service.name,
            "version": settings.service.version,
            "host": settings.server.host,
            "port": settings.server.port,
            "opencv_version": cv2.__version__,
        },
    )

    logger.info(
        "Algorithm configuration",
        extra={
            "shi_tomasi_block_size": settings.shi_tomasi.block_size,
            "harris_min_response": settings.harris.min_response,
            "brisk_threshold": settings.brisk.threshold,
            "ratio_threshold": settings.matching.ratio_threshold,
        },
    )

    logger.info("Service ready to accept requests")

    yield

    # === SHUTDOWN ===
    logger.info(
        "Service shutting down",
        extra={
            "uptime_seconds": state.uptime_seconds,
            "uptime": state.uptime_formatted,
            "operations": dict(state.operations),
        },
    )
