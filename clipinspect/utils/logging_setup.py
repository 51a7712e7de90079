"""Shared helpers for configuring the application's logging setup."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import IO, List, Optional, Union

from clipinspect.config.constants import LOG_BACKUP_COUNT, LOG_MAX_BYTES


LOG_FORMAT = "%(origin)s%(asctime)s - %(levelname)s - %(name)s - %(message)s"


class OriginFilter(logging.Filter):
    """Ensure every record exposes an ``origin`` attribute.

    Parse cycles pass ``extra={"origin": "[paste] "}``; everything else gets
    the default so the shared format string never fails.
    """

    def __init__(self, default_origin: str = "") -> None:
        super().__init__()
        self._default_origin = default_origin

    def filter(self, record: logging.LogRecord) -> bool:
        current = getattr(record, "origin", None)
        if not current:
            record.origin = self._default_origin
        return True


def _create_formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT)


def create_stream_handler(stream: IO[str], *, default_origin: str = "") -> logging.Handler:
    """Create the default stream handler with filtering applied."""

    handler = logging.StreamHandler(stream)
    handler.setFormatter(_create_formatter())
    handler.addFilter(OriginFilter(default_origin))
    return handler


def create_file_handler(log_file_path: str, *, default_origin: str = "") -> RotatingFileHandler:
    """Return a rotating file handler writing UTF-8 log lines."""

    directory = os.path.dirname(os.path.abspath(log_file_path))
    os.makedirs(directory, exist_ok=True)
    handler = RotatingFileHandler(
        log_file_path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(_create_formatter())
    handler.addFilter(OriginFilter(default_origin))
    return handler


def resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if isinstance(resolved, int):
        return resolved
    logging.warning("Unknown log level %r, using INFO", level)
    return logging.INFO


def configure_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    *,
    stream: Optional[IO[str]] = None,
) -> List[logging.Handler]:
    """Replace the root logger's handlers with the stream (and file) pipeline."""

    handlers: List[logging.Handler] = [create_stream_handler(stream or sys.stderr)]
    if log_file:
        handlers.append(create_file_handler(log_file))
    logging.basicConfig(level=resolve_level(level), handlers=handlers, force=True)
    return handlers
