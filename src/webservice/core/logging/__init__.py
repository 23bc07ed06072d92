"""
Structured logging for the client and the server.

A WebServiceLogger is built from a LoggingConfig; child loggers made with
``with_tags``/``bind`` share its handlers. The access log and panic
recovery write through a server logger tagged ``http``.

Example:
    >>> logger = WebServiceLogger(LoggingConfig.create(level="DEBUG", format="json"))
    >>> logger.with_tags("ALERT").error("panic recovered", error="boom")
"""

from .config import LogFormat, LoggingConfig, LogLevel
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)
from .formatters import ColoredFormatter, JSONFormatter, TextFormatter, get_formatter
from .handlers import build_handlers, create_console_handler, create_file_handler
from .logger import WebServiceLogger, configure_logging, get_logger

__all__ = [
    "LoggingConfig", "LogLevel", "LogFormat",
    "WebServiceLogger", "get_logger", "configure_logging",
    "JSONFormatter", "TextFormatter", "ColoredFormatter", "get_formatter",
    "CorrelationIdFilter", "ExtraFieldsFilter",
    "set_correlation_id", "get_correlation_id", "clear_correlation_id", "correlation_scope",
    "build_handlers", "create_console_handler", "create_file_handler",
]
