"""
Record renderers.

Everything a caller passes as keyword arguments to WebServiceLogger ends up
as an attribute of the LogRecord; the formatters here print those
attributes next to the message. Access log lines are the main consumer,
e.g. in text form::

    [2024-01-15 10:30:45] [INFO] [webservice.http] GET /users/7 status=200 route=/users/{user_id} tags=http,users
"""

import json
import logging
import time
from typing import Any, Dict, Type, Union

from .config import LogFormat

# Attributes every LogRecord has; anything else came in through ``extra``
_BUILTIN_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {'message', 'asctime'}

_TEXT_LAYOUT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
_TEXT_DATEFMT = '%Y-%m-%d %H:%M:%S'


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to ``record`` through ``extra``, in insertion order."""
    return {
        key: value for key, value in vars(record).items()
        if key not in _BUILTIN_ATTRS and not key.startswith('_')
    }


def _utc_timestamp(created: float) -> str:
    seconds = time.strftime('%Y-%m-%dT%H:%M:%S', time.gmtime(created))
    return f"{seconds}.{int(created % 1 * 1000):03d}Z"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fixed keys come first (``timestamp`` in UTC, ``level``, ``logger``,
    ``message``), then the record fields, then ``exception`` when the record
    carries a traceback. Values JSON cannot encode are written with ``str()``.
    """

    def format(self, record: logging.LogRecord) -> str:
        document: Dict[str, Any] = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        document.update(record_fields(record))
        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)
        return json.dumps(document, default=str)


def _text_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return json.dumps(text)
    return text


class TextFormatter(logging.Formatter):
    """
    ``[time] [LEVEL] [logger] message key=value ...``

    Lists are joined with commas; values with spaces are quoted.
    """

    def __init__(self):
        super().__init__(fmt=_TEXT_LAYOUT, datefmt=_TEXT_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [f"{key}={_text_value(value)}" for key, value in record_fields(record).items()]
        return " ".join([line] + pairs) if pairs else line


class ColoredFormatter(TextFormatter):
    """TextFormatter with the level name colored for a terminal."""

    RESET = '\033[0m'
    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[1;31m',
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # other handlers may render the same record; color a copy
        painted = logging.makeLogRecord(vars(record))
        painted.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(painted)


_FORMATTERS: Dict[LogFormat, Type[logging.Formatter]] = {
    LogFormat.JSON: JSONFormatter,
    LogFormat.TEXT: TextFormatter,
    LogFormat.COLORED: ColoredFormatter,
}


def get_formatter(format_type: Union[str, LogFormat]) -> logging.Formatter:
    """
    Formatter for ``format_type`` (``json``, ``text`` or ``colored``).

    Raises:
        ValueError: Unknown format type
    """
    name = format_type.value if isinstance(format_type, LogFormat) else str(format_type).lower()
    try:
        formatter_class = _FORMATTERS[LogFormat(name)]
    except ValueError:
        known = ", ".join(fmt.value for fmt in LogFormat)
        raise ValueError(f"Unknown format type: {format_type}. Available: {known}") from None
    return formatter_class()
