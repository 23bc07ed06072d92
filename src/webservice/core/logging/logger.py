"""
Main logger for webservice.

Structured logger used by the client (request failures) and by the server
(access log, panic recovery, lifecycle messages).
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .config import LoggingConfig
from .handlers import build_handlers
from ...utils.sanitizer import mask_sensitive_data


class WebServiceLogger:
    """
    Structured logger with tags and bound fields.

    Features:
    - Console and rotating file handlers
    - JSON, text and colored formatters
    - correlation_id of the request being served (see correlation_scope)
    - Tags (``with_tags``) and bound fields (``bind``) carried by child loggers
    - Sensitive fields masked before they reach a handler

    Child loggers share handlers with their parent; only the parent owns them
    and closes them.

    Example:
        >>> logger = WebServiceLogger(LoggingConfig.create(level="DEBUG"))
        >>> logger.with_tags("ACCESS").info("GET /users", status=200)
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = "webservice"):
        """
        Build the handlers described by ``config``.

        Args:
            config: Handler settings; LoggingConfig() when None
            name: Logger name; handlers of a previous logger with the same
                name are replaced. close() only removes the handlers this
                instance added, so a replaced logger closing later leaves
                the current handlers in place.
        """
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False
        self._owner = True
        self._tags: Tuple[str, ...] = ()
        self._fields: Mapping[str, Any] = MappingProxyType({})

        self._logger = logging.getLogger(name)
        self._logger.setLevel(self.config.level.numeric)
        self._logger.propagate = False

        for handler in self._logger.handlers[:]:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers: Tuple[logging.Handler, ...] = tuple(build_handlers(self.config))
        for handler in self._handlers:
            self._logger.addHandler(handler)

    # ==================== Дочерние логгеры ====================

    def _child(self, tags: Tuple[str, ...], fields: Mapping[str, Any]) -> 'WebServiceLogger':
        child = object.__new__(WebServiceLogger)
        child.config = self.config
        child.name = self.name
        child._closed = False
        child._owner = False
        child._handlers = ()
        child._logger = self._logger
        child._tags = tags
        child._fields = MappingProxyType(dict(fields))
        return child

    def with_tags(self, *tags: str) -> 'WebServiceLogger':
        """
        Child logger whose records carry ``tags`` in addition to this one's.

        Example:
            >>> logger.with_tags("ALERT").error("panic recovered")
        """
        merged = self._tags + tuple(t for t in tags if t not in self._tags)
        return self._child(merged, self._fields)

    def bind(self, **fields: Any) -> 'WebServiceLogger':
        """Child logger that adds ``fields`` to every record."""
        merged = dict(self._fields)
        merged.update(fields)
        return self._child(self._tags, merged)

    @property
    def tags(self) -> Tuple[str, ...]:
        return self._tags

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self._fields)

    @property
    def logger(self) -> logging.Logger:
        """Underlying ``logging.Logger``."""
        return self._logger

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    # ==================== Запись ====================

    def _extra(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        extra = dict(self._fields)
        extra.update(kwargs)
        if self._tags:
            # Call-site tags (e.g. X-Tags of a request) go after the logger's own
            extra["tags"] = list(self._tags) + [
                t for t in extra.get("tags") or () if t not in self._tags
            ]
        return mask_sensitive_data(extra)

    def log(self, level: int, message: str, **kwargs: Any) -> None:
        """Log ``message`` at an arbitrary numeric ``level``."""
        if self._logger.isEnabledFor(level):
            self._logger.log(level, message, extra=self._extra(kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        """
        Write a DEBUG record; keyword arguments become record fields.

        Example:
            >>> logger.debug("Request sent", method="GET", status=200)
        """
        self.log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """
        Write a WARNING record.

        Example:
            >>> logger.warning("Request failed", url="https://api.com/x", error="timeout")
        """
        self.log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self.log(logging.CRITICAL, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """
        Log ERROR with the current traceback.

        Call it inside an ``except`` block.
        """
        self._logger.exception(message, extra=self._extra(kwargs))

    # ==================== Управление жизненным циклом ====================

    def close(self) -> None:
        """
        Flush and close the handlers. Idempotent.

        Closing a child logger only marks the child closed; the handlers
        belong to the logger that created them. Handlers added to
        ``logger`` by other code are left alone.
        """
        if self._closed:
            return
        self._closed = True
        if not self._owner:
            return

        for handler in self._handlers:
            if handler in self._logger.handlers:
                handler.flush()
                self._logger.removeHandler(handler)
            handler.close()
        self._handlers = ()

    def __enter__(self):
        """``with WebServiceLogger(...) as logger:`` closes it on exit."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"WebServiceLogger(name={self.name!r}, tags={list(self._tags)})"


# Process-wide logger returned by get_logger()
_default_logger: Optional[WebServiceLogger] = None


def get_logger(config: Optional[LoggingConfig] = None) -> WebServiceLogger:
    """
    Process-wide WebServiceLogger, created on first use.

    ``config`` is only used when the logger does not exist yet.
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = WebServiceLogger(config)

    return _default_logger


def configure_logging(config: LoggingConfig) -> WebServiceLogger:
    """
    Replace the global logger with one built from ``config``.

    Example:
        >>> logger = configure_logging(LoggingConfig.create(level="DEBUG", format="json"))
    """
    global _default_logger
    if _default_logger is not None:
        _default_logger.close()
    _default_logger = WebServiceLogger(config)
    return _default_logger
