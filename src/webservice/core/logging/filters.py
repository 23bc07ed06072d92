"""
Filters that stamp records with context.

The correlation id is a ``ContextVar``: it follows asyncio tasks and the
threadpool Starlette runs sync endpoints in, so every line logged while a
request is served can carry that request's X-Request-ID.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Mapping, Optional


_correlation_id: ContextVar[Optional[str]] = ContextVar("webservice_correlation_id", default=None)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: Optional[str]) -> Iterator[None]:
    """
    Bind ``correlation_id`` for the duration of the block.

    The previous value is restored on exit, also when the block raises.

    Example:
        >>> with correlation_scope(request.headers.get("x-request-id")):
        ...     logger.info("charging card")  # correlation_id=<request id>
    """
    token = _correlation_id.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Adds ``correlation_id`` unless the record already has one."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = _correlation_id.get()
        if correlation_id and getattr(record, 'correlation_id', None) is None:
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds constant fields (service name, environment) to each record.

    A field given at the call site wins over the constant one.
    """

    def __init__(self, extra_fields: Mapping[str, Any]):
        super().__init__()
        self.extra_fields: Dict[str, Any] = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        missing = {k: v for k, v in self.extra_fields.items() if not hasattr(record, k)}
        record.__dict__.update(missing)
        return True
