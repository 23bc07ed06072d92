"""
HTTP сервер на FastAPI + uvicorn.

Middleware (снаружи внутрь): metrics, access log, panic recovery, gzip.

Example:
    >>> server = Server("0.0.0.0:8080")
    >>> server.register_health_routes("/_")
    >>>
    >>> @server.app.get("/users/{user_id}")
    ... def get_user(user_id: str):
    ...     raise HTTPError(404, f"user {user_id} not found")
    >>>
    >>> server.start()  # blocks until stop()
"""

import json
import math
import os
import threading
import time
import traceback
from typing import Optional, Sequence, Tuple

import uvicorn
from fastapi import FastAPI, params
from fastapi.responses import FileResponse, JSONResponse
from starlette.background import BackgroundTask
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.middleware.gzip import GZipMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..core.exceptions import HTTPError, ServerStateError
from ..core.logging import WebServiceLogger
from .access_log import AccessLogMiddleware
from .config import ServerOptions
from .debug import build_debug_router
from .metrics import MetricsMiddleware


DEFAULT_INFO_PATHS = ("/etc/build.properties", "./build.properties")


def _json(data) -> bytes:
    return json.dumps(data, separators=(",", ":"), default=str).encode("utf-8")


def error_response(request: Request, exc: Exception) -> Response:
    """
    Ответ клиенту для исключения обработчика.

    - ``HTTPException`` -> его статус, ``{"message": detail}``
    - ``HTTPError`` -> его код (вне 400-599 -> 500), ``{"code":..., "message":...}``
    - всё остальное -> 500, ``{"message": "Internal Server Error"}``

    На ``HEAD`` тело не отправляется.
    """
    headers = None
    if isinstance(exc, StarletteHTTPException):
        code = exc.status_code
        body = _json({"message": exc.detail})
        headers = exc.headers
    elif isinstance(exc, HTTPError):
        code = exc.code if 400 <= exc.code < 600 else 500
        body = exc.to_json().encode("utf-8")
    else:
        code = 500
        body = _json({"message": "Internal Server Error"})

    if request.method == "HEAD":
        return Response(status_code=code, headers=headers)
    return Response(body, status_code=code, headers=headers, media_type="application/json")


def _whole_seconds(timeout: float) -> Optional[int]:
    """uvicorn takes whole seconds; 0 means wait for connections without a limit."""
    return math.ceil(timeout) if timeout > 0 else None


class RecoverMiddleware(BaseHTTPMiddleware):
    """Logs uncaught handler exceptions with tag ALERT and answers them with a 500."""

    def __init__(self, app, logger: WebServiceLogger):
        super().__init__(app)
        self.logger = logger.with_tags("ALERT")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            self.logger.error(f"[PANIC RECOVER] {exc}", stack=traceback.format_exc())
            return error_response(request, exc)


def split_address(address: str) -> Tuple[str, int]:
    """``"host:port"`` -> ``(host, port)``; an empty host listens on all interfaces."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address {address!r}, expected host:port")
    return host.strip("[]") or "0.0.0.0", int(port)


class Server:
    """
    Wrapper around a FastAPI app and a uvicorn server.

    Routes are registered on :attr:`app` directly. ``start`` blocks the
    calling thread; ``stop`` may be called from any thread (or from a
    handler, see :meth:`register_admin_routes`).
    """

    def __init__(self, address: str, options: Optional[ServerOptions] = None):
        options = options or ServerOptions()

        self._address = address
        self._host, self._port = split_address(address)
        self._options = options
        self._log = options.logger or WebServiceLogger(name="webservice.server").with_tags("http")

        self._lock = threading.Lock()
        self._running = False
        self._uvicorn: Optional[uvicorn.Server] = None

        self.app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
        self.app.add_exception_handler(StarletteHTTPException, self._handle_error)
        self.app.add_exception_handler(HTTPError, self._handle_error)

        # add_middleware wraps the stack: the last one added runs first
        if not options.gzip_disabled:
            self.app.add_middleware(GZipMiddleware, minimum_size=options.gzip_minimum_size)
        self.app.add_middleware(RecoverMiddleware, logger=self._log)
        if options.access_log_middleware is not None:
            self.app.add_middleware(options.access_log_middleware)
        elif not options.access_log_disabled:
            self.app.add_middleware(
                AccessLogMiddleware,
                logger=self._log,
                discarder=options.access_log_discarder,
            )
        if options.metrics_register is not None:
            self.app.add_middleware(MetricsMiddleware, register=options.metrics_register)

    # ==================== Свойства ====================

    @property
    def address(self) -> str:
        return self._address

    @property
    def options(self) -> ServerOptions:
        return self._options

    @property
    def logger(self) -> WebServiceLogger:
        return self._log

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    # ==================== Обработка ошибок ====================

    async def _handle_error(self, request: Request, exc: Exception) -> Response:
        return error_response(request, exc)

    # ==================== Жизненный цикл ====================

    def _uvicorn_config(self) -> uvicorn.Config:
        options = self._options
        return uvicorn.Config(
            self.app,
            host=self._host,
            port=self._port,
            timeout_keep_alive=max(1, int(options.idle_timeout)),
            timeout_graceful_shutdown=_whole_seconds(options.graceful_shutdown_timeout),
            ssl_certfile=options.tls_cert_file,
            ssl_keyfile=options.tls_key_file,
            log_config=None,
            access_log=False,
        )

    def start(self) -> None:
        """
        Run the server until :meth:`stop` is called.

        Raises:
            ServerStateError: Server is already running or failed to bind
        """
        with self._lock:
            if self._running:
                raise ServerStateError("server is not in pre-running state")
            self._running = True
            self._uvicorn = uvicorn.Server(self._uvicorn_config())
            server = self._uvicorn

        self._log.info(f"webserver: starting [address:{self._address}]", tls=self._options.tls_enabled)
        try:
            server.run()
        except SystemExit as exc:
            # uvicorn exits the process when it cannot bind
            raise ServerStateError(f"webserver failed to start [address:{self._address}]") from exc
        finally:
            self._log.info(f"webserver: shutting down [address:{self._address}]")
            with self._lock:
                self._running = False
                self._uvicorn = None

    def stop(self) -> None:
        """Request a graceful shutdown. No-op when the server is not running."""
        with self._lock:
            if not self._running or self._uvicorn is None:
                return
            self._uvicorn.should_exit = True

    def wait_started(self, timeout: float = 5.0) -> bool:
        """Block until the server accepts connections; False on timeout."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            server = self._uvicorn
            if server is not None and server.started:
                return True
            time.sleep(0.01)
        return False

    # ==================== Служебные маршруты ====================

    def register_admin_routes(self, prefix: str = "") -> None:
        """``POST <prefix>/admin/shutdown``: 204 and a graceful shutdown."""
        self.app.add_api_route(
            f"{prefix}/admin/shutdown",
            self._handle_shutdown,
            methods=["POST"],
            status_code=204,
            include_in_schema=False,
        )

    def _handle_shutdown(self) -> Response:
        return Response(status_code=204, background=BackgroundTask(self.stop))

    def register_health_routes(self, prefix: str = "", info_paths: Sequence[str] = DEFAULT_INFO_PATHS) -> None:
        """
        ``GET <prefix>/health`` -> 200 ``null``; ``GET <prefix>/info`` serves the
        first existing file of ``info_paths`` (no route when none exists).
        """
        self.app.add_api_route(f"{prefix}/health", _health, methods=["GET"], include_in_schema=False)

        for path in info_paths:
            if os.path.isfile(path):
                self.app.add_api_route(
                    f"{prefix}/info", _file_endpoint(path), methods=["GET"], include_in_schema=False
                )
                break

    def register_debug_routes(
        self,
        prefix: str = "",
        dependencies: Optional[Sequence[params.Depends]] = None,
    ) -> None:
        """``<prefix>/debug/threads`` and ``<prefix>/debug/vars``."""
        self.app.include_router(build_debug_router(prefix, dependencies))

    def __repr__(self) -> str:
        return f"Server(address={self._address!r}, running={self._running})"


def _health() -> JSONResponse:
    return JSONResponse(None)


def _file_endpoint(path: str):
    def serve_file() -> FileResponse:
        return FileResponse(path, media_type="text/plain")
    return serve_file
