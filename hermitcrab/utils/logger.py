"""Logging setup."""

import logging
from pathlib import Path
from typing import Optional, Union


def setup_logging(level: Union[str, int] = logging.INFO, log_file: Optional[Path] = None):
    """Setup logging configuration."""
    logger = logging.getLogger()
    logger.setLevel(level)

    # File handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_formatter = logging.Formatter('%(levelname)s: %(message)s')
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # Silence per-request access lines
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
