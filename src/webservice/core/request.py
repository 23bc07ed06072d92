"""
Immutable request builders.

Three layers, each wrapping the one below by value:

- StreamRequester: headers + timeout, returns the response body as a stream
- Requester: buffers the body in memory and always releases the stream
- JSONRequester: encodes payloads as JSON

Every ``with_*`` method returns a new builder backed by a fresh copy of the
headers, so builders can be shared between threads and replayed freely.

Example:
    >>> client = Client("https://api.example.com")
    >>> base = client.new_request().with_header("X-Team", "core")
    >>> status, body = base.with_timeout(2).do("GET", "/users")
"""

import json
import re
import time
from typing import TYPE_CHECKING, Any, IO, Iterator, Mapping, Optional, Tuple, Union

import requests
from requests.structures import CaseInsensitiveDict

from .context import CallContext, background
from .exceptions import (
    BodyReadError,
    EncodingError,
    InvalidBuilderError,
    MiddlewareError,
    RequestConstructionError,
    TimeoutError,
    classify_requests_exception,
)
from .headers import HeaderBag
from ..utils import mask_url

if TYPE_CHECKING:
    from .client import Client


Body = Union[bytes, str, IO[bytes], None]

JSON_CONTENT_TYPE = "application/json"

# RFC 9110 token
_METHOD_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

DEFAULT_CHUNK_SIZE = 64 * 1024


class ResponseStream:
    """
    Unread response body. The caller owns it and must close it.

    Example:
        >>> status, stream = client.new_stream_request().do("GET", "/export")
        >>> with stream:
        ...     for chunk in stream:
        ...         sink.write(chunk)
    """

    def __init__(self, response: requests.Response, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._response = response
        self._chunk_size = chunk_size
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> CaseInsensitiveDict:
        return self._response.headers

    @property
    def url(self) -> str:
        return self._response.url

    @property
    def closed(self) -> bool:
        return self._closed

    def iter_chunks(self, chunk_size: Optional[int] = None) -> Iterator[bytes]:
        """Yield decoded body chunks; read failures raise BodyReadError."""
        try:
            for chunk in self._response.iter_content(chunk_size or self._chunk_size):
                yield chunk
        except (requests.exceptions.RequestException, OSError) as exc:
            raise BodyReadError(self.status_code, self.url, str(exc)) from exc

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_chunks()

    def read(self) -> bytes:
        """Drain the whole body into memory."""
        return b"".join(self.iter_chunks())

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._response.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"ResponseStream(status_code={self.status_code}, closed={self._closed})"


class _Immutable:
    """Forbid attribute assignment after construction."""

    __slots__ = ()

    def __setattr__(self, name, value):
        raise AttributeError(
            f"Cannot modify '{name}' - {type(self).__name__} is immutable. "
            f"Use the with_* methods to derive a new builder."
        )

    def __delattr__(self, name):
        raise AttributeError(f"Cannot delete '{name}' - {type(self).__name__} is immutable.")


class StreamRequester(_Immutable):
    """
    Builder for requests whose response body is returned as a stream.

    Create it with ``Client.new_stream_request()``; a builder constructed
    directly has no client and fails on ``prepare``/``do``.
    """

    __slots__ = ("_client", "_headers", "_timeout")

    def __init__(
        self,
        client: Optional['Client'] = None,
        headers: Optional[HeaderBag] = None,
        timeout: float = 0,
    ):
        object.__setattr__(self, "_client", client)
        object.__setattr__(self, "_headers", headers.clone() if headers is not None else HeaderBag())
        object.__setattr__(self, "_timeout", timeout)

    @property
    def client(self) -> Optional['Client']:
        return self._client

    @property
    def headers(self) -> HeaderBag:
        """Copy of the headers this builder will send."""
        return self._headers.clone()

    @property
    def timeout(self) -> float:
        return self._timeout

    def clone(self) -> 'StreamRequester':
        return StreamRequester(self._client, self._headers, self._timeout)

    def with_header(self, key: str, value: str) -> 'StreamRequester':
        """Append ``value`` to the values of ``key``."""
        req = self.clone()
        req._headers.add(key, value)
        return req

    def with_unique_header(self, key: str, value: str) -> 'StreamRequester':
        """Replace all values of ``key`` with ``value``."""
        req = self.clone()
        req._headers.set(key, value)
        return req

    def with_headers(self, headers: Mapping[str, str]) -> 'StreamRequester':
        """Set every header in ``headers`` (replacing existing values)."""
        req = self.clone()
        for key, value in headers.items():
            req._headers.set(key, value)
        return req

    def with_timeout(self, timeout: float) -> 'StreamRequester':
        """Per-request timeout in seconds; 0 or less disables it."""
        return StreamRequester(self._client, self._headers, timeout)

    def context(self, parent: Optional[CallContext] = None) -> CallContext:
        """Wrap ``parent`` with this builder's timeout, if one is set."""
        if parent is None:
            parent = background()
        if self._timeout > 0:
            return parent.with_timeout(self._timeout)
        return parent

    def _validate(self) -> 'Client':
        if self._client is None or self._client.conn is None:
            raise InvalidBuilderError()
        return self._client

    def prepare(
        self,
        method: str,
        endpoint: str,
        body: Body = None,
        ctx: Optional[CallContext] = None,
    ) -> requests.PreparedRequest:
        """
        Build the request and run the client middlewares over it.

        The context is handed to the middlewares as is; the builder timeout
        is not applied here.

        Raises:
            InvalidBuilderError: builder not created from a Client
            RequestConstructionError: invalid method, URL or header
            MiddlewareError: a middleware raised
        """
        client = self._validate()
        if ctx is None:
            ctx = background()

        url = client.full_url(endpoint)
        if not isinstance(method, str) or not _METHOD_TOKEN.fullmatch(method):
            raise RequestConstructionError(f"invalid method {method!r}", url=url)

        try:
            request = requests.Request(
                method,
                url,
                headers=self._headers.to_dict(),
                data=body,
            ).prepare()
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise RequestConstructionError(str(exc), method=method, url=url) from exc

        for index, middleware in enumerate(client.middlewares):
            try:
                result = middleware(ctx, request)
            except Exception as exc:
                raise MiddlewareError(index, exc) from exc
            if result is not None:
                request = result

        return request

    def do(
        self,
        method: str,
        endpoint: str,
        body: Body = None,
        ctx: Optional[CallContext] = None,
    ) -> Tuple[int, ResponseStream]:
        """
        Send the request and return ``(status, stream)``.

        The caller must close the stream. The deadline of ``ctx`` bounds the
        connection setup and each socket read, not the time spent draining
        the body.

        Raises:
            TransportError: network, DNS, TLS or timeout failure
        """
        if ctx is None:
            ctx = background()
        request = self.prepare(method, endpoint, body, ctx)
        client = self._client
        logger = client.logger

        remaining = ctx.remaining()
        if remaining is not None and remaining <= 0:
            raise TimeoutError("context deadline exceeded", request.url)

        start_time = time.time()
        try:
            response = client.conn.send(request, timeout=remaining)
        except requests.exceptions.RequestException as exc:
            error = classify_requests_exception(exc, request.url, remaining)
            if logger:
                logger.warning(
                    "Request failed",
                    method=request.method,
                    url=mask_url(request.url),
                    request_id=ctx.request_id,
                    error=str(error),
                )
            raise error from exc

        if logger:
            logger.debug(
                "Request sent",
                method=request.method,
                url=mask_url(request.url),
                request_id=ctx.request_id,
                status_code=response.status_code,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )

        return response.status_code, ResponseStream(response)

    def __repr__(self) -> str:
        return f"StreamRequester(headers={self._headers!r}, timeout={self._timeout})"


class Requester(_Immutable):
    """Builder that buffers the whole response body."""

    __slots__ = ("_core",)

    def __init__(self, core: Optional[StreamRequester] = None):
        object.__setattr__(self, "_core", core if core is not None else StreamRequester())

    @property
    def core(self) -> StreamRequester:
        return self._core

    @property
    def headers(self) -> HeaderBag:
        return self._core.headers

    @property
    def timeout(self) -> float:
        return self._core.timeout

    def with_timeout(self, timeout: float) -> 'Requester':
        return Requester(self._core.with_timeout(timeout))

    def with_header(self, key: str, value: str) -> 'Requester':
        return Requester(self._core.with_header(key, value))

    def with_unique_header(self, key: str, value: str) -> 'Requester':
        return Requester(self._core.with_unique_header(key, value))

    def with_headers(self, headers: Mapping[str, str]) -> 'Requester':
        return Requester(self._core.with_headers(headers))

    def context(self, parent: Optional[CallContext] = None) -> CallContext:
        return self._core.context(parent)

    def prepare(
        self,
        method: str,
        endpoint: str,
        body: Optional[bytes] = None,
        ctx: Optional[CallContext] = None,
    ) -> requests.PreparedRequest:
        """Note that ``ctx`` is not wrapped with the configured timeout."""
        return self._core.prepare(method, endpoint, body, ctx)

    def do(
        self,
        method: str,
        endpoint: str,
        body: Optional[bytes] = None,
        ctx: Optional[CallContext] = None,
    ) -> Tuple[int, bytes]:
        """
        Send the request and return ``(status, body)``.

        Raises:
            BodyReadError: the body could not be drained; ``status_code``
                holds the status that was received
        """
        ctx = self._core.context(ctx)
        status, stream = self._core.do(method, endpoint, body, ctx)
        with stream:
            return status, stream.read()

    def __repr__(self) -> str:
        return f"Requester({self._core!r})"


def _encode_json(data: Any) -> bytes:
    try:
        return json.dumps(data, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodingError(str(exc)) from exc


class JSONRequester(_Immutable):
    """
    Builder whose payloads are JSON encoded.

    ``Content-Type: application/json`` is set once by
    ``Client.new_json_request``; derived builders inherit it with the rest
    of the headers.
    """

    __slots__ = ("_core",)

    def __init__(self, core: Optional[Requester] = None):
        object.__setattr__(self, "_core", core if core is not None else Requester())

    @property
    def core(self) -> Requester:
        return self._core

    @property
    def headers(self) -> HeaderBag:
        return self._core.headers

    @property
    def timeout(self) -> float:
        return self._core.timeout

    def with_timeout(self, timeout: float) -> 'JSONRequester':
        return JSONRequester(self._core.with_timeout(timeout))

    def with_header(self, key: str, value: str) -> 'JSONRequester':
        return JSONRequester(self._core.with_header(key, value))

    def with_unique_header(self, key: str, value: str) -> 'JSONRequester':
        return JSONRequester(self._core.with_unique_header(key, value))

    def with_headers(self, headers: Mapping[str, str]) -> 'JSONRequester':
        return JSONRequester(self._core.with_headers(headers))

    def context(self, parent: Optional[CallContext] = None) -> CallContext:
        return self._core.context(parent)

    def prepare(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        ctx: Optional[CallContext] = None,
    ) -> requests.PreparedRequest:
        """
        Raises:
            EncodingError: ``data`` is not JSON serializable
        """
        return self._core.prepare(method, endpoint, _encode_json(data), ctx)

    def do(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        ctx: Optional[CallContext] = None,
    ) -> Tuple[int, bytes]:
        """Encode ``data`` and send it; nothing is sent if encoding fails."""
        return self._core.do(method, endpoint, _encode_json(data), ctx)

    def __repr__(self) -> str:
        return f"JSONRequester({self._core._core!r})"
