"""Клиентская часть: Client, билдеры запросов, соединения, конфиги, ошибки."""

from .client import Client, ClientStatusReport, RequestOption, new_client, new_custom_client
from .config import (
    DEFAULT_CONN_OPTIONS,
    DEFAULT_REQUEST_TIMEOUT,
    ClientOptions,
    ConnOptions,
    RequestMiddleware,
)
from .conn import Connection, new_conn
from .context import CallContext, background
from .headers import HeaderBag
from .request import JSON_CONTENT_TYPE, JSONRequester, Requester, ResponseStream, StreamRequester

__all__ = [
    "Client",
    "ClientStatusReport",
    "RequestOption",
    "new_client",
    "new_custom_client",
    "ClientOptions",
    "ConnOptions",
    "DEFAULT_CONN_OPTIONS",
    "DEFAULT_REQUEST_TIMEOUT",
    "RequestMiddleware",
    "Connection",
    "new_conn",
    "CallContext",
    "background",
    "HeaderBag",
    "JSON_CONTENT_TYPE",
    "StreamRequester",
    "Requester",
    "JSONRequester",
    "ResponseStream",
]
