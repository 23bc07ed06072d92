"""Call context carrying a deadline and request-scoped values."""

import time
import uuid
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class CallContext:
    """Immutable context passed to ``prepare``/``do`` and to client middlewares.

    Attributes:
        deadline: ``time.monotonic()`` value after which the call must fail,
            or None for no deadline
        request_id: Unique identifier for this call (used for log correlation)
        values: Read-only values shared with middlewares

    Example:
        >>> ctx = CallContext().with_timeout(2.5).with_value("tenant", "acme")
        >>> ctx.remaining() <= 2.5
        True
    """

    deadline: Optional[float] = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def with_timeout(self, timeout: float) -> "CallContext":
        """Derive a context whose deadline is ``now + timeout``.

        An existing earlier deadline is kept.
        """
        deadline = time.monotonic() + timeout
        if self.deadline is not None and self.deadline < deadline:
            deadline = self.deadline
        return replace(self, deadline=deadline)

    def with_value(self, key: str, value: Any) -> "CallContext":
        values = dict(self.values)
        values[key] = value
        return replace(self, values=MappingProxyType(values))

    def value(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline (may be negative), None if unbounded."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0


def background() -> CallContext:
    """Fresh context without deadline."""
    return CallContext()
