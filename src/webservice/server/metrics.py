"""
Metrics middleware.

Reports every request to a ``register(method, route, status, elapsed_seconds)``
callback, e.g. a Prometheus histogram ``observe``. ``route`` is the matched
route template so label cardinality stays bounded.
"""

import time
from typing import Callable

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .utils import route_template


ROUTE_NOT_FOUND = "ENOTFOUND"
ROUTE_METHOD_NOT_ALLOWED = "EMETHODNOTALLOWED"


class MetricsMiddleware:
    """
    ASGI metrics middleware.

    Example:
        >>> def register(method, route, status, elapsed):
        ...     REQUEST_LATENCY.labels(method, route, status).observe(elapsed)
        >>> ServerOptions(metrics_register=register)
    """

    def __init__(self, app: ASGIApp, register: Callable[[str, str, str, float], None]):
        self.app = app
        self.register = register

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            status = 500
            raise
        finally:
            route = route_template(scope)
            if status == 405:
                route = ROUTE_METHOD_NOT_ALLOWED
            elif status == 404 and not route:
                route = ROUTE_NOT_FOUND
            self.register(scope["method"], route, str(status), time.perf_counter() - start)
