"""Loguru sink configuration for command-line use."""

from __future__ import annotations

import sys

from loguru import logger

from config import get_settings


def configure_logging(level: str | None = None) -> None:
    """
    Replace loguru's default sink with the configured ones.

    Args:
        level: Overrides `settings.log_level` when given
    """
    settings = get_settings()
    level = level or settings.log_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=level,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
        )
