"""
Tests for ASGI scope helpers and debug information.
"""

import types

from webservice.server import process_vars, thread_dump
from webservice.server.utils import remote_ips, request_uri, route_template


def make_scope(headers=(), **kwargs):
    scope = {
        "type": "http",
        "path": "/a b",
        "raw_path": b"/a%20b",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers],
        "client": ("10.1.1.1", 5555),
    }
    scope.update(kwargs)
    return scope


class TestScopeHelpers:

    def test_route_template(self):
        assert route_template(make_scope()) == ""
        assert route_template(make_scope(route=types.SimpleNamespace(path="/users/{id}"))) == "/users/{id}"

    def test_request_uri_uses_raw_path(self):
        assert request_uri(make_scope(query_string=b"q=1&x=2")) == "/a%20b?q=1&x=2"

    def test_request_uri_without_raw_path(self):
        assert request_uri(make_scope(raw_path=None)) == "/a b"

    def test_remote_ips(self):
        assert remote_ips(make_scope()) == ["10.1.1.1"]
        assert remote_ips(make_scope(headers=[("X-Forwarded-For", "1.1.1.1,2.2.2.2")])) == ["1.1.1.1", "2.2.2.2"]
        assert remote_ips(make_scope(headers=[("X-Real-IP", " 3.3.3.3 ")])) == ["3.3.3.3"]
        assert remote_ips(make_scope(client=None)) == [""]


class TestDebugInfo:

    def test_thread_dump_lists_current_thread(self):
        dump = thread_dump()

        assert "MainThread" in dump
        assert "test_thread_dump_lists_current_thread" in dump

    def test_process_vars(self):
        data = process_vars()

        assert data["pid"] > 0
        assert data["threads"] >= 1
        assert len(data["gc"]["counts"]) == 3
        assert data["uptime_seconds"] >= 0
