"""Logger configuration for the HEC exporter."""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger


def setup_logging(level: str = "INFO", log_file: Optional[Union[str, Path]] = None, rotation: str = "10 MB", retention: str = "7 days") -> None:
    """Configure loguru logger for console and optional file output.

    Sets up logging with:
    - Console output with colored output at the given level
    - Optional file output with rotation, retention and compression
    """

    # Remove default loguru handler
    logger.remove()

    logger.add(
        sink=sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file:
        logger.add(
            sink=str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=level,
            rotation=rotation,
            retention=retention,
            compression="gz",  # Compress rotated logs
            enqueue=True,  # Thread-safe logging
        )

        logger.info(f"File logging enabled: {log_file}")
