"""Logging utilities."""
import logging
import sys
from typing import Optional

from ..config import settings


def setup_logger(
    name: str = "openslots", level: Optional[int] = None
) -> logging.Logger:
    """Set up and configure a logger.

    Args:
        name: Logger name
        level: Logging level (defaults to settings.log_level)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is None:
        level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logger.setLevel(level)

    # Check if logger already has handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)

    return logger


# Global logger instance
logger = setup_logger()
