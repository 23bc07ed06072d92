"""
Handler factories.

``build_handlers`` turns a LoggingConfig into the handlers a
WebServiceLogger owns; the two ``create_*`` helpers are usable on their own.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

from .config import ROTATE_AT_BYTES, LoggingConfig
from .filters import CorrelationIdFilter, ExtraFieldsFilter
from .formatters import get_formatter


def _attach(
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
    filters: Optional[Iterable[logging.Filter]],
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    for record_filter in filters or ():
        handler.addFilter(record_filter)
    return handler


def create_console_handler(
    level: int,
    formatter: logging.Formatter,
    filters: Optional[Iterable[logging.Filter]] = None,
    stream: Optional[TextIO] = None,
) -> logging.StreamHandler:
    """Handler writing to ``stream``, stdout by default."""
    return _attach(logging.StreamHandler(stream or sys.stdout), level, formatter, filters)


def create_file_handler(
    file_path: str,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int = ROTATE_AT_BYTES,
    backup_count: int = 5,
    filters: Optional[Iterable[logging.Filter]] = None,
) -> RotatingFileHandler:
    """
    Size-rotated UTF-8 file handler.

    Missing parent directories are created. Once ``file_path`` reaches
    ``max_bytes`` it is renamed to ``<file_path>.1`` and older files shift
    up to ``backup_count``.
    """
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        file_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
    )
    return _attach(handler, level, formatter, filters)


def build_handlers(config: LoggingConfig) -> List[logging.Handler]:
    """Console and/or file handlers for ``config``, sharing one formatter and filter set."""
    filters: List[logging.Filter] = []
    if config.enable_correlation_id:
        filters.append(CorrelationIdFilter())
    if config.extra_fields:
        filters.append(ExtraFieldsFilter(config.extra_fields))

    formatter = get_formatter(config.format)
    level = config.level.numeric

    handlers: List[logging.Handler] = []
    if config.enable_console:
        handlers.append(create_console_handler(level, formatter, filters))
    if config.enable_file:
        handlers.append(create_file_handler(
            config.file_path, level, formatter,
            max_bytes=config.max_bytes,
            backup_count=config.backup_count,
            filters=filters,
        ))
    return handlers
