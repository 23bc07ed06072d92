"""
Logging settings shared by the client and the server.

``LoggingConfig`` is usually built by ``load_logging_config`` from
``WEBSERVICE_LOG_*`` variables; code can also build one directly with
``LoggingConfig.create(level="DEBUG", format="json")``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

ROTATE_AT_BYTES = 10 * 1024 * 1024


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def numeric(self) -> int:
        """Matching ``logging`` constant, e.g. ``logging.INFO``."""
        return logging.getLevelName(self.value)


class LogFormat(str, Enum):
    """How records are rendered: one JSON document per line, plain or ANSI-colored text."""
    JSON = "json"
    TEXT = "text"
    COLORED = "colored"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Where and how WebServiceLogger writes.

    Attributes:
        level: Records below this level are dropped
        format: Record rendering (see LogFormat)
        enable_console: Write to stdout
        enable_file: Write to ``file_path``, rotated at ``max_bytes``
            keeping ``backup_count`` old files
        enable_correlation_id: Stamp records with the request id bound to
            the current context (the access log binds X-Request-ID)
        extra_fields: Constant fields added to every record, e.g. the
            service name

    Strings are accepted for ``level`` and ``format`` in any case.
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = ROTATE_AT_BYTES
    backup_count: int = 5
    enable_correlation_id: bool = True
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # frozen: normalized values go through object.__setattr__
        object.__setattr__(self, 'level', LogLevel(_enum_value(self.level).upper()))
        object.__setattr__(self, 'format', LogFormat(_enum_value(self.format).lower()))
        object.__setattr__(self, 'extra_fields', dict(self.extra_fields or {}))

        if self.enable_file and not self.file_path:
            raise ValueError("file_path is required when enable_file=True")
        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {self.max_bytes}")
        if self.backup_count < 0:
            raise ValueError(f"backup_count must be non-negative, got {self.backup_count}")

    @classmethod
    def create(cls, level: str = "INFO", format: str = "text", **options: Any) -> "LoggingConfig":
        """
        Build a config from plain strings.

        Raises:
            ValueError: Unknown level or format, or inconsistent file options
        """
        return cls(level=level, format=format, **options)


def _enum_value(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)
