"""HTTP сервер: FastAPI приложение с access log, метриками, recovery и gzip."""

from .access_log import AccessLogDiscarder, AccessLogLevel, AccessLogMiddleware, tag_request
from .config import ServerOptions, server_options_from_settings
from .debug import build_debug_router, process_vars, thread_dump
from .metrics import ROUTE_METHOD_NOT_ALLOWED, ROUTE_NOT_FOUND, MetricsMiddleware
from .server import DEFAULT_INFO_PATHS, RecoverMiddleware, Server, error_response, split_address

__all__ = [
    "Server",
    "ServerOptions",
    "server_options_from_settings",
    "error_response",
    "split_address",
    "DEFAULT_INFO_PATHS",
    "RecoverMiddleware",
    "AccessLogMiddleware",
    "AccessLogDiscarder",
    "AccessLogLevel",
    "tag_request",
    "MetricsMiddleware",
    "ROUTE_NOT_FOUND",
    "ROUTE_METHOD_NOT_ALLOWED",
    "build_debug_router",
    "thread_dump",
    "process_vars",
]
