"""webservice - immutable HTTP request builders and a batteries-included HTTP server."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.client import Client, ClientStatusReport, new_client, new_custom_client
from .core.config import DEFAULT_CONN_OPTIONS, ClientOptions, ConnOptions
from .core.conn import Connection, new_conn
from .core.context import CallContext, background
from .core.headers import HeaderBag
from .core.request import JSONRequester, Requester, ResponseStream, StreamRequester
from .core.exceptions import (
    WebServiceException,
    InvalidBuilderError,
    RequestConstructionError,
    MiddlewareError,
    EncodingError,
    TransportError,
    TimeoutError,
    ConnectionError,
    ProxyError,
    SSLError,
    BodyReadError,
    ConfigurationError,
    ServerStateError,
    HTTPError,
)
from .core.logging import LoggingConfig, WebServiceLogger
from .core.env_config import load_client_options, load_server_settings
from .server import (
    AccessLogDiscarder,
    AccessLogLevel,
    Server,
    ServerOptions,
    server_options_from_settings,
    tag_request,
)

# Library loggers stay silent unless the application configures logging
logging.getLogger('webservice').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("webservice-kit")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__license__ = "MIT"

__all__ = [
    # Client
    "Client",
    "ClientStatusReport",
    "new_client",
    "new_custom_client",
    "StreamRequester",
    "Requester",
    "JSONRequester",
    "ResponseStream",
    "HeaderBag",
    "CallContext",
    "background",

    # Config
    "ClientOptions",
    "ConnOptions",
    "DEFAULT_CONN_OPTIONS",
    "Connection",
    "new_conn",
    "LoggingConfig",
    "load_client_options",
    "load_server_settings",

    # Server
    "Server",
    "ServerOptions",
    "server_options_from_settings",
    "AccessLogDiscarder",
    "AccessLogLevel",
    "tag_request",

    # Logging
    "WebServiceLogger",

    # Exceptions
    "WebServiceException",
    "InvalidBuilderError",
    "RequestConstructionError",
    "MiddlewareError",
    "EncodingError",
    "TransportError",
    "TimeoutError",
    "ConnectionError",
    "ProxyError",
    "SSLError",
    "BodyReadError",
    "ConfigurationError",
    "ServerStateError",
    "HTTPError",
]
