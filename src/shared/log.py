"""
Loguru sink configuration shared by the CLI entry points.
"""

import sys
from typing import Optional

from loguru import logger

from shared.config import Settings, get_settings

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(settings: Optional[Settings] = None, verbose: bool = False):
    """Configure loguru logging."""
    settings = settings or get_settings()
    level = "DEBUG" if verbose else settings.log_level
    logger.remove()

    if settings.log_format == "json":
        logger.add(sys.stderr, format="{message}", level=level, serialize=True)
    else:
        logger.add(sys.stderr, format=TEXT_FORMAT, level=level)
