"""Loguru setup for the CLI."""

import sys

from loguru import logger

FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(log_level: str = "WARNING") -> None:
    """Replace loguru's default sink with a stderr sink at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper(), format=FORMAT)
    logger.debug(f"Logging configured at level {log_level}")
