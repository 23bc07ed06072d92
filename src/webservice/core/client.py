"""
Client: factory for request builders bound to one host.

Automatically constructs the User-Agent from infrastructure information as
best as possible (see :func:`webservice.core.utils.user_agent`).
"""

import socket
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

import requests

from .config import ClientOptions, RequestMiddleware
from .conn import Connection
from .context import CallContext
from .headers import HeaderBag
from .request import JSON_CONTENT_TYPE, JSONRequester, Requester, StreamRequester
from .utils import combine_url, user_agent

if TYPE_CHECKING:
    from .logging import WebServiceLogger


RequestOption = Callable[[StreamRequester], StreamRequester]


@dataclass
class ClientStatusReport:
    """Result of :meth:`Client.ping`."""

    addresses: List[str] = field(default_factory=list)
    error: str = ""
    ping_duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.addresses:
            data["addresses"] = list(self.addresses)
        if self.error:
            data["error"] = self.error
        data["elapsed_ns"] = int(self.ping_duration * 1e9)
        return data


class Client:
    """
    HTTP client wrapper around a pooled ``requests`` connection.

    Features:
        - Default headers (User-Agent always included) cloned into every builder
        - Default request timeout applied through a timeout-scoped connection
        - Request middlewares run, in order, on every prepared request
        - Streaming, buffered and JSON builders

    Thread-safety: builders and ``do``/``prepare`` are safe to use from many
    threads. ``add_default_header``/``set_default_header``/``set_timeout``
    mutate the client and must not race with builder creation.

    Example:
        >>> with Client("https://api.example.com") as client:
        ...     status, body = client.new_json_request().do("POST", "/users", {"name": "Ann"})
    """

    def __init__(
        self,
        host: str,
        options: Optional[ClientOptions] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize client.

        Args:
            host: Base URL every endpoint is joined to
            options: ClientOptions (defaults for everything when None)
            environ: Environment snapshot for the User-Agent (``os.environ`` when None)
        """
        options = (options or ClientOptions()).sanitize()

        self._host = host
        self._conn: Connection = options.conn
        self._default_timeout: float = options.max_request_timeout
        self._dheaders = options.headers.clone()
        self._middlewares: Tuple[RequestMiddleware, ...] = tuple(options.middlewares)
        self._options = options

        self._dheaders.add("User-Agent", user_agent(environ))

        if self._default_timeout > 0 and self._conn.timeout != self._default_timeout:
            self._conn = self._conn.with_timeout(self._default_timeout)

        self._logger: Optional['WebServiceLogger'] = None
        if options.logging:
            from .logging import WebServiceLogger

            # Use host in logger name for uniqueness
            parsed = urlparse(host)
            domain = parsed.netloc or "unknown"
            self._logger = WebServiceLogger(config=options.logging, name=f"webservice.client.{domain}")

    # ==================== Свойства ====================

    @property
    def host(self) -> str:
        return self._host

    @property
    def conn(self) -> Connection:
        return self._conn

    @property
    def timeout(self) -> float:
        return self._default_timeout

    @property
    def middlewares(self) -> Tuple[RequestMiddleware, ...]:
        return self._middlewares

    @property
    def logger(self) -> Optional['WebServiceLogger']:
        return self._logger

    @property
    def default_headers(self) -> HeaderBag:
        """Copy of the default headers."""
        return self._dheaders.clone()

    def full_url(self, endpoint: str) -> str:
        return combine_url(self._host, endpoint)

    def clone(self) -> 'Client':
        """
        Client sharing the connection but with its own default headers.

        The clone logs through a child of this client's logger; closing the
        clone does not close the handlers.
        """
        other = object.__new__(Client)
        other.__dict__.update(self.__dict__)
        other._dheaders = self._dheaders.clone()
        other._logger = self._logger.bind() if self._logger is not None else None
        return other

    # ==================== Настройка клиента ====================

    def add_default_header(self, key: str, value: str) -> 'Client':
        """
        Add a default header to all requests.

        Use :meth:`set_default_header` to keep a single value.
        """
        self._dheaders.add(key, value)
        return self

    def set_default_header(self, key: str, value: str) -> 'Client':
        """Replace any default header with the same key."""
        self._dheaders.set(key, value)
        return self

    def set_timeout(self, timeout: float) -> 'Client':
        """Change the default request timeout (seconds; 0 or less disables)."""
        self._default_timeout = timeout
        if timeout > 0 and self._conn.timeout != timeout:
            self._conn = self._conn.with_timeout(timeout)
        return self

    # ==================== Опции запроса ====================

    @staticmethod
    def request_timeout(timeout: float) -> RequestOption:
        return lambda req: req.with_timeout(timeout)

    @staticmethod
    def request_headers(headers: Mapping[str, str]) -> RequestOption:
        """Set unique headers, overriding client defaults with the same name."""
        headers = dict(headers)
        return lambda req: req.with_headers(headers)

    @staticmethod
    def request_header(key: str, value: str) -> RequestOption:
        return lambda req: req.with_header(key, value)

    @staticmethod
    def request_unique_header(key: str, value: str) -> RequestOption:
        return lambda req: req.with_unique_header(key, value)

    @staticmethod
    def with_default_header(key: str, value: str) -> RequestOption:
        """Set ``key`` only when the builder has no non-empty value for it."""
        def option(req: StreamRequester) -> StreamRequester:
            if req.headers.get(key):
                return req
            return req.with_unique_header(key, value)
        return option

    # ==================== Фабрики запросов ====================

    def new_stream_request(self, *opts: RequestOption) -> StreamRequester:
        req = StreamRequester(self, self._dheaders)
        for opt in opts:
            req = opt(req)
        return req

    def new_request(self, *opts: RequestOption) -> Requester:
        return Requester(self.new_stream_request(*opts))

    def new_json_request(self, *opts: RequestOption) -> JSONRequester:
        core = self.new_stream_request(*opts).with_unique_header("Content-Type", JSON_CONTENT_TYPE)
        return JSONRequester(Requester(core))

    def request(
        self,
        method: str,
        endpoint: str,
        body: Optional[bytes] = None,
        ctx: Optional[CallContext] = None,
    ) -> Tuple[int, bytes]:
        """Send ``body`` and return ``(status, body)``."""
        return self.new_request().do(method, endpoint, body, ctx)

    def json_request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        ctx: Optional[CallContext] = None,
    ) -> Tuple[int, bytes]:
        """Send ``data`` encoded as JSON and return ``(status, body)``."""
        return self.new_json_request().do(method, endpoint, data, ctx)

    # ==================== Диагностика ====================

    def ping(self) -> ClientStatusReport:
        """
        Check connectivity to the host.

        Never raises: failures are recorded in ``report.error`` (the last
        failure wins).
        """
        start = time.monotonic()
        error = ""
        try:
            self._conn.get(self._host)
        except requests.exceptions.RequestException as exc:
            error = repr(exc)
        report = ClientStatusReport(ping_duration=time.monotonic() - start, error=error)

        hostname = urlparse(self._host).hostname
        if not hostname:
            report.error = f"invalid host {self._host!r}"
            return report

        try:
            infos = socket.getaddrinfo(hostname, None)
        except OSError as exc:
            report.error = repr(exc)
            return report

        for info in infos:
            address = info[4][0]
            if address not in report.addresses:
                report.addresses.append(address)
        return report

    # ==================== Управление жизненным циклом ====================

    def close(self) -> None:
        """Close the connection pool and the logger."""
        if self._logger is not None:
            self._logger.close()
        self._conn.close()

    def __enter__(self):
        """Поддержка контекстного менеджера"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"Client(host={self._host!r}, timeout={self._default_timeout})"


def new_client(host: str) -> Client:
    """Client with default options."""
    return Client(host)


def new_custom_client(host: str, options: ClientOptions) -> Client:
    """
    Client with explicit options.

    Mostly useful to pass custom connections and middlewares, e.g. in tests.
    """
    return Client(host, options)
