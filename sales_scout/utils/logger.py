"""Logging setup for the CLI, scheduler and API processes."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import LoggingConfig, get_config

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> "
    "<cyan>{name}</cyan> {message}"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level: <7} {name}:{line} {message}"


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    settings: Optional[LoggingConfig] = None,
) -> None:
    """Replace loguru's default sink with the configured ones.

    Args:
        log_level: Overrides ``logging.level``
        log_file: Overrides ``logging.file``; an empty string keeps output
            on the console only (one-off CLI commands)
        settings: Logging section to use instead of the loaded config
    """
    settings = settings or get_config().logging
    level = (log_level or settings.level).upper()
    log_file = settings.file if log_file is None else log_file
    as_json = settings.format == "json"

    logger.remove()

    if as_json:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            format=FILE_FORMAT,
            serialize=as_json,
            rotation=settings.rotation,
            retention=settings.retention,
            compression=settings.compression,
        )

    logger.debug(f"Logging to stderr{f' and {log_file}' if log_file else ''} at {level}")
