"""
Access log middleware.

One log line per request, written after the response: ``"<METHOD> <URI>"``
with the request/response fields as extras. 5xx responses (and requests
that ended with an exception) are logged at ERROR, everything else at INFO.
While the request is served its X-Request-ID is the log correlation id.
"""

import re
import time
from enum import IntEnum
from typing import TYPE_CHECKING, Callable, Optional, Pattern, Union

from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging.filters import correlation_scope
from ..utils import mask_sensitive_data
from .utils import remote_ips, request_uri, route_template

if TYPE_CHECKING:
    from ..core.logging import WebServiceLogger


REQUEST_ID_HEADER = "x-request-id"
TAGS_HEADER = "x-tags"


class AccessLogLevel(IntEnum):
    """Минимальный уровень ответов, попадающих в access log."""
    VERBOSE = 0  # все ответы
    INFO = 1     # без 3xx и 404
    WARN = 2     # только 4xx (кроме 404) и 5xx
    ERROR = 3    # только 5xx


class AccessLogDiscarder:
    """
    Discarder by response status and request path.

    Args:
        level: Minimum AccessLogLevel to keep
        ignore_routes: Regex (searched in the request path) of requests to drop

    Example:
        >>> discarder = AccessLogDiscarder(AccessLogLevel.WARN, r"^/_/health$")
        >>> ServerOptions(access_log_discarder=discarder)
    """

    def __init__(
        self,
        level: AccessLogLevel = AccessLogLevel.VERBOSE,
        ignore_routes: Optional[Union[str, Pattern[str]]] = None,
    ):
        self.level = AccessLogLevel(level)
        self.ignore_routes = re.compile(ignore_routes) if isinstance(ignore_routes, str) else ignore_routes

    def discard(self, path: str, status: int) -> bool:
        if self.level == AccessLogLevel.ERROR:
            if status < 500:
                return True
        elif self.level == AccessLogLevel.WARN:
            if status == 404 or status < 400:
                return True
        elif self.level == AccessLogLevel.INFO:
            if status == 404 or 300 <= status < 400:
                return True

        if self.ignore_routes is not None and self.ignore_routes.search(path):
            return True
        return False

    def __call__(self, request: Request, status: int) -> bool:
        return self.discard(request.url.path, status)

    def __repr__(self) -> str:
        pattern = self.ignore_routes.pattern if self.ignore_routes is not None else None
        return f"AccessLogDiscarder(level={self.level.name}, ignore_routes={pattern!r})"


def tag_request(request: Request, *tags: str) -> None:
    """
    Add ``X-Tags`` values to the request, reported in its access log line.

    Example:
        >>> @app.get("/orders/{order_id}")
        ... def get_order(order_id: str, request: Request):
        ...     tag_request(request, "orders", "legacy")
    """
    headers = list(request.scope.get("headers", []))
    headers.extend((TAGS_HEADER.encode("latin-1"), tag.encode("latin-1")) for tag in tags)
    request.scope["headers"] = headers


def _content_length(value: Optional[str]) -> int:
    if not value:
        return 0
    try:
        return int(value, 0)
    except ValueError:
        return 0


class AccessLogMiddleware:
    """
    ASGI access log middleware.

    Args:
        app: Wrapped ASGI app
        logger: WebServiceLogger the lines are written to
        discarder: ``(request, status) -> bool``; True drops the line
    """

    def __init__(
        self,
        app: ASGIApp,
        logger: 'WebServiceLogger',
        discarder: Optional[Callable[[Request, int], bool]] = None,
    ):
        self.app = app
        self.logger = logger
        self.discarder = discarder

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter_ns()
        status = 500
        bytes_out = 0
        response_headers = Headers(raw=[])

        async def send_wrapper(message: Message) -> None:
            nonlocal status, bytes_out, response_headers
            if message["type"] == "http.response.start":
                status = message["status"]
                response_headers = Headers(raw=message.get("headers", []))
            elif message["type"] == "http.response.body":
                bytes_out += len(message.get("body", b""))
            await send(message)

        error: Optional[BaseException] = None
        with correlation_scope(Headers(scope=scope).get(REQUEST_ID_HEADER)):
            try:
                await self.app(scope, receive, send_wrapper)
            except Exception as exc:
                error = exc
                status = 500
                raise
            finally:
                elapsed = time.perf_counter_ns() - start
                self._write(scope, status, bytes_out, response_headers, elapsed, error)

    def _write(
        self,
        scope: Scope,
        status: int,
        bytes_out: int,
        response_headers: Headers,
        elapsed_ns: int,
        error: Optional[BaseException],
    ) -> None:
        if self.discarder is not None and self.discarder(Request(scope), status):
            return

        headers = Headers(scope=scope)
        method = scope["method"]
        uri = mask_sensitive_data(request_uri(scope))

        fields = dict(
            id=headers.get(REQUEST_ID_HEADER) or response_headers.get(REQUEST_ID_HEADER, ""),
            path=scope.get("path") or "/",
            method=method,
            uri=uri,
            bytes_in=_content_length(headers.get("content-length")),
            bytes_out=bytes_out,
            remote_ip=remote_ips(scope),
            status=status,
            host=headers.get("host", ""),
            referer=headers.get("referer", ""),
            ua=headers.get("user-agent", ""),
            route=route_template(scope),
            latency_ns=elapsed_ns,
            tags=headers.getlist(TAGS_HEADER),
        )

        if error is not None:
            self.logger.error(f"{method} {uri}: {error!r}", **fields)
        elif 500 <= status < 600:
            self.logger.error(f"{method} {uri}", **fields)
        else:
            self.logger.info(f"{method} {uri}", **fields)
