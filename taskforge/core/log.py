"""Loguru setup for command line runs.

Library modules only emit through ``loguru.logger``; sinks are installed here.
"""

import sys
from pathlib import Path

from loguru import logger

from taskforge.core.config import Settings, get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(
    settings: Settings | None = None,
    log_dir: str | Path = "logs",
) -> None:
    """Configure loguru based on settings.

    Args:
        settings: Optional settings override. Uses cached settings if not provided.
        log_dir: Directory for the rotated log files.
    """
    settings = settings or get_settings()
    logger.remove()  # Remove default handler

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(logs_dir / "taskforge_{time:YYYY-MM-DD}.log"),
        rotation="1 day",
        retention="7 days",
        level=settings.taskforge_log_level,
        format=LOG_FORMAT,
    )

    if settings.taskforge_debug:
        logger.add(sys.stderr, level="DEBUG", format=LOG_FORMAT, colorize=True)
    else:
        logger.add(sys.stderr, level="WARNING", format=LOG_FORMAT, colorize=True)

    logger.debug(f"Logging configured (level={settings.taskforge_log_level})")
