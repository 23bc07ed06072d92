"""Helpers for reading ASGI scopes."""

from typing import List

from starlette.datastructures import Headers
from starlette.types import Scope


def route_template(scope: Scope) -> str:
    """Path template of the matched route (``/users/{id}``), "" when none matched."""
    route = scope.get("route")
    return getattr(route, "path", "") if route is not None else ""


def request_uri(scope: Scope) -> str:
    """Raw request target: path plus query string."""
    raw_path = scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


def remote_ips(scope: Scope) -> List[str]:
    """Client addresses: X-Forwarded-For chain, X-Real-IP, or the peer."""
    headers = Headers(scope=scope)
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return [ip.strip() for ip in forwarded.split(",")]
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return [real_ip.strip()]
    client = scope.get("client")
    return [client[0]] if client else [""]
