"""
Handler setup for the docpager logger tree.

docpager.paging only calls ``logging.getLogger(__name__)``. Handlers are
attached here, by the CLI or by an application that wants docpager's
defaults. At DEBUG the engine logs every sort plan, directional predicate,
compiled pipeline and window size, which is what ``docpager-page --verbose``
prints to stderr.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

from docpager.config.settings import LoggingSettings

LOGGER_NAME = "docpager"


def _level(value: Union[int, str]) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(value.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {value!r}")
    return resolved


def setup_logging(
    log_dir: Optional[Path] = None,
    settings: Optional[LoggingSettings] = None,
    level: Union[int, str, None] = None,
) -> logging.Logger:
    """
    Send docpager logs to stderr and, with *log_dir*, to a rotating file.

    *level* overrides ``settings.level``. Calling again only changes the
    levels; handlers are attached once. Returns the ``docpager`` logger.
    """
    settings = settings or LoggingSettings()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_level(level if level is not None else settings.level))
    logging.getLogger("pymongo").setLevel(_level(settings.driver_level))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=settings.format, datefmt=settings.date_format)

    # stdout carries the page JSON
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_dir / settings.log_file,
                maxBytes=settings.max_bytes,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning("Could not open log file in %s: %s", log_dir, e)
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
