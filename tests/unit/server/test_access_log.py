"""
Tests for the access log middleware and discarders.
"""

import asyncio
import logging
import re

import pytest
from fastapi import Request

from webservice.core.env_config import ServerSettings
from webservice.core.logging import CorrelationIdFilter, get_correlation_id
from webservice.server import (
    AccessLogDiscarder,
    AccessLogLevel,
    AccessLogMiddleware,
    server_options_from_settings,
    tag_request,
)


def access_records(handler):
    return [r for r in handler.records if hasattr(r, "latency_ns")]


class TestAccessLogLine:

    def test_fields(self, make_server, log_handler):
        server, client = make_server()

        @server.app.post("/users/{user_id}")
        def update_user(user_id: str):
            return {"id": user_id}

        client.post(
            "/users/7?dry_run=1",
            content=b"12345",
            headers={
                "X-Request-Id": "req-1",
                "User-Agent": "tests",
                "Referer": "https://ref.example.com",
                "X-Forwarded-For": "10.0.0.1, 10.0.0.2",
            },
        )

        (record,) = access_records(log_handler)
        assert record.getMessage() == "POST /users/7?dry_run=1"
        assert record.levelno == logging.INFO
        assert record.id == "req-1"
        assert record.path == "/users/7"
        assert record.method == "POST"
        assert record.uri == "/users/7?dry_run=1"
        assert record.bytes_in == 5
        assert record.bytes_out == len(b'{"id":"7"}')
        assert record.remote_ip == ["10.0.0.1", "10.0.0.2"]
        assert record.status == 200
        assert record.host == "testserver"
        assert record.referer == "https://ref.example.com"
        assert record.ua == "tests"
        assert record.route == "/users/{user_id}"
        assert record.latency_ns > 0
        assert record.tags == ["http"]

    def test_remote_ip_falls_back_to_peer(self, make_server, log_handler):
        server, client = make_server()
        server.app.get("/")(lambda: None)

        client.get("/")

        (record,) = access_records(log_handler)
        assert record.remote_ip == ["testclient"]
        assert record.id == ""

    def test_real_ip_header(self, make_server, log_handler):
        server, client = make_server()
        server.app.get("/")(lambda: None)

        client.get("/", headers={"X-Real-IP": "192.168.1.9"})

        assert access_records(log_handler)[0].remote_ip == ["192.168.1.9"]

    def test_server_errors_logged_at_error(self, make_server, log_handler):
        server, client = make_server()

        @server.app.get("/panic")
        def panic():
            raise RuntimeError("boom")

        client.get("/panic")

        (record,) = access_records(log_handler)
        assert record.status == 500
        assert record.levelno == logging.ERROR

    def test_not_found_has_empty_route(self, make_server, log_handler):
        _, client = make_server()

        client.get("/missing")

        (record,) = access_records(log_handler)
        assert record.status == 404
        assert record.route == ""
        assert record.levelno == logging.INFO

    def test_tag_request(self, make_server, log_handler):
        server, client = make_server()

        @server.app.get("/orders/{order_id}")
        def get_order(order_id: str, request: Request):
            tag_request(request, "orders", "legacy")
            return {"id": order_id}

        client.get("/orders/1", headers={"X-Tags": "canary"})

        (record,) = access_records(log_handler)
        assert record.tags == ["http", "canary", "orders", "legacy"]

    def test_sensitive_query_is_masked(self, make_server, log_handler):
        server, client = make_server()
        server.app.get("/login")(lambda: None)

        client.get("/login?token=abc")

        (record,) = access_records(log_handler)
        assert record.uri == "/login?token=***REDACTED***"
        assert record.getMessage() == "GET /login?token=***REDACTED***"

    def test_request_id_is_correlation_id(self, make_server):
        server, client = make_server()

        @server.app.get("/whoami")
        async def whoami():
            return {"correlation_id": get_correlation_id()}

        response = client.get("/whoami", headers={"X-Request-Id": "req-9"})

        assert response.json() == {"correlation_id": "req-9"}
        assert get_correlation_id() is None

    def test_panic_record_carries_request_id(self, make_server, log_handler):
        log_handler.addFilter(CorrelationIdFilter())
        server, client = make_server()

        @server.app.get("/panic")
        def panic():
            raise RuntimeError("boom")

        client.get("/panic", headers={"X-Request-Id": "req-10"})

        alerts = [r for r in log_handler.records if "ALERT" in getattr(r, "tags", ())]
        assert alerts and alerts[0].correlation_id == "req-10"

    def test_disabled(self, make_server, log_handler):
        server, client = make_server(access_log_disabled=True)
        server.app.get("/")(lambda: None)

        client.get("/")

        assert access_records(log_handler) == []

    def test_custom_middleware_replaces_builtin(self, make_server, log_handler):
        seen = []

        def custom(app):
            async def middleware(scope, receive, send):
                if scope["type"] == "http":
                    seen.append(scope["path"])
                await app(scope, receive, send)
            return middleware

        server, client = make_server(access_log_middleware=custom)
        server.app.get("/x")(lambda: None)

        client.get("/x")

        assert seen == ["/x"]
        assert access_records(log_handler) == []


class TestDiscarder:

    @pytest.mark.parametrize("level,status,discarded", [
        (AccessLogLevel.VERBOSE, 200, False),
        (AccessLogLevel.VERBOSE, 404, False),
        (AccessLogLevel.INFO, 200, False),
        (AccessLogLevel.INFO, 301, True),
        (AccessLogLevel.INFO, 404, True),
        (AccessLogLevel.INFO, 400, False),
        (AccessLogLevel.WARN, 200, True),
        (AccessLogLevel.WARN, 404, True),
        (AccessLogLevel.WARN, 429, False),
        (AccessLogLevel.WARN, 503, False),
        (AccessLogLevel.ERROR, 499, True),
        (AccessLogLevel.ERROR, 500, False),
    ])
    def test_levels(self, level, status, discarded):
        assert AccessLogDiscarder(level).discard("/x", status) is discarded

    def test_ignore_routes(self):
        discarder = AccessLogDiscarder(ignore_routes=r"^/_/(health|info)$")

        assert discarder.discard("/_/health", 200) is True
        assert discarder.discard("/_/info", 500) is True
        assert discarder.discard("/users", 200) is False

    def test_ignore_routes_accepts_compiled_pattern(self):
        discarder = AccessLogDiscarder(AccessLogLevel.INFO, re.compile("metrics"))

        assert discarder.discard("/metrics", 200) is True
        assert "metrics" in repr(discarder)

    def test_discarder_in_server(self, make_server, log_handler):
        server, client = make_server(
            access_log_discarder=AccessLogDiscarder(AccessLogLevel.WARN, r"^/_/")
        )
        server.register_health_routes("/_")
        server.app.get("/ok")(lambda: None)

        client.get("/_/health")
        client.get("/ok")
        client.get("/missing")
        client.post("/ok")

        assert [r.status for r in access_records(log_handler)] == [405]

    def test_callable_discarder(self, make_server, log_handler):
        server, client = make_server(access_log_discarder=lambda request, status: request.method == "GET")
        server.app.api_route("/x", methods=["GET", "PUT"])(lambda: None)

        client.get("/x")
        client.put("/x")

        assert [r.method for r in access_records(log_handler)] == ["PUT"]

    def test_from_settings(self):
        options = server_options_from_settings(
            ServerSettings(access_log_level="ERROR", access_log_ignore_routes="^/_/")
        )

        assert options.access_log_discarder.level == AccessLogLevel.ERROR
        assert options.access_log_discarder.discard("/_/health", 500) is True

    def test_no_discarder_for_verbose_settings(self):
        assert server_options_from_settings(ServerSettings()).access_log_discarder is None


def test_non_http_scopes_pass_through(server_logger, log_handler):
    calls = []

    async def app(scope, receive, send):
        calls.append(scope["type"])

    asyncio.run(AccessLogMiddleware(app, server_logger)({"type": "websocket"}, None, None))

    assert calls == ["websocket"]
    assert access_records(log_handler) == []
