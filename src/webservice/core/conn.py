"""
Connection: a pooled ``requests.Session`` plus default timeouts.

The session (and its urllib3 pools) is the only mutable resource shared
between clients; ``with_timeout`` hands out views that share the pool but
carry their own request timeout.
"""

import copy
from typing import Optional, Tuple, Union

import requests
from requests.adapters import HTTPAdapter

from .config import ConnOptions, DEFAULT_CONN_OPTIONS


TimeoutArg = Union[float, Tuple[float, Optional[float]], None]


class Connection:
    """
    Transport used by clients to send prepared requests.

    Thread-safe for ``send``: urllib3 pools are safe for concurrent use and
    the session itself is never mutated after construction.

    Example:
        >>> conn = new_conn(DEFAULT_CONN_OPTIONS.with_request_timeout(3))
        >>> response = conn.send(requests.Request("GET", "https://example.com").prepare())
    """

    def __init__(
        self,
        session: requests.Session,
        timeout: float = 0,
        connect_timeout: Optional[float] = None,
    ):
        self._session = session
        self._timeout = timeout
        self._connect_timeout = connect_timeout

    @property
    def session(self) -> requests.Session:
        return self._session

    @property
    def timeout(self) -> float:
        """Whole-request timeout in seconds (0 = none)."""
        return self._timeout

    @property
    def connect_timeout(self) -> Optional[float]:
        return self._connect_timeout

    @property
    def max_redirects(self) -> int:
        return self._session.max_redirects

    def with_timeout(self, timeout: float) -> 'Connection':
        """Same pool, different request timeout."""
        other = copy.copy(self)
        other._timeout = timeout
        return other

    def _effective_timeout(self, timeout: Optional[float]) -> TimeoutArg:
        limits = [t for t in (timeout, self._timeout or None) if t is not None]
        read = min(limits) if limits else None
        connect = self._connect_timeout
        if read is not None and connect is not None:
            connect = min(connect, read)
        if connect is None and read is None:
            return None
        return (connect, read)

    def send(
        self,
        request: requests.PreparedRequest,
        timeout: Optional[float] = None,
        stream: bool = True,
    ) -> requests.Response:
        """
        Send a prepared request.

        Args:
            request: Request produced by ``requests.Request.prepare()``
            timeout: Per-call limit in seconds; the smaller of this and the
                connection timeout applies
            stream: Leave the body unread (caller must close the response)

        Raises:
            requests.exceptions.RequestException: on any transport failure
        """
        return self._session.send(
            request,
            timeout=self._effective_timeout(timeout),
            stream=stream,
        )

    def get(self, url: str, timeout: Optional[float] = None) -> requests.Response:
        request = requests.Request("GET", url).prepare()
        response = self.send(request, timeout=timeout, stream=False)
        response.close()
        return response

    def close(self) -> None:
        """Close all pooled connections."""
        self._session.close()

    def __enter__(self):
        """Поддержка контекстного менеджера"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"Connection(timeout={self._timeout}, connect_timeout={self._connect_timeout})"


def _create_session(options: ConnOptions) -> requests.Session:
    """Create configured session."""
    session = requests.Session()

    pool_maxsize = options.max_conns_per_host or options.max_idle_conns
    adapter = HTTPAdapter(
        pool_connections=options.max_idle_conns,
        pool_maxsize=max(pool_maxsize, options.max_idle_conns),
        pool_block=options.max_conns_per_host > 0,
        max_retries=0,  # one attempt per request
    )

    session.mount('http://', adapter)
    session.mount('https://', adapter)

    session.max_redirects = options.max_redirects
    session.verify = options.verify
    if options.cert is not None:
        session.cert = options.cert
    if options.proxies:
        session.proxies.update(options.proxies)

    return session


def new_conn(options: Optional[ConnOptions] = None) -> Connection:
    """
    Create a new pooled connection with decent defaults.

    Args:
        options: Connection options (``DEFAULT_CONN_OPTIONS`` when None)

    Returns:
        Connection instance
    """
    if options is None:
        options = DEFAULT_CONN_OPTIONS
    options = options.sanitize()

    return Connection(
        _create_session(options),
        timeout=options.request_timeout,
        connect_timeout=options.connect_timeout,
    )
