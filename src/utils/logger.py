"""Structured logging setup for RetailPulse.

Provides a consistent logging configuration with both console
and optional file output in a structured format.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from src.utils.config import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: str = "INFO",
) -> logging.Logger:
    """Create and configure a structured logger.

    Calling this again for a logger that already has handlers returns it
    unchanged.

    Args:
        name: Logger name, typically ``"src"`` or the module ``__name__``.
        log_file: Optional path to a log file. Creates parent directories
            if they do not exist.
        level: Logging level as a string (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Returns:
        Configured logging.Logger instance.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def setup_logger_from_config(
    name: str, config: LoggingConfig, verbose: bool = False
) -> logging.Logger:
    """Configure a logger from the ``logging`` section of the app config.

    Args:
        name: Logger name.
        config: Logging section of the loaded AppConfig.
        verbose: Force DEBUG regardless of the configured level.

    Returns:
        Configured logging.Logger instance.
    """
    level = "DEBUG" if verbose else config.level
    return setup_logger(name, log_file=config.file, level=level)
