"""
Tests for the metrics middleware.
"""

import pytest

from webservice.server import ROUTE_METHOD_NOT_ALLOWED, ROUTE_NOT_FOUND


@pytest.fixture
def observed():
    return []


@pytest.fixture
def metrics_server(make_server, observed):
    def register(method, route, status, elapsed):
        observed.append((method, route, status, elapsed))

    return make_server(metrics_register=register)


class TestMetrics:

    def test_route_template_is_reported(self, metrics_server, observed):
        server, client = metrics_server
        server.app.get("/users/{user_id}")(lambda user_id: {"id": user_id})

        client.get("/users/1")
        client.get("/users/2")

        assert [(m, r, s) for m, r, s, _ in observed] == [
            ("GET", "/users/{user_id}", "200"),
            ("GET", "/users/{user_id}", "200"),
        ]
        assert all(elapsed >= 0 for *_, elapsed in observed)

    def test_not_found(self, metrics_server, observed):
        _, client = metrics_server

        client.get("/nowhere")

        assert observed[0][:3] == ("GET", ROUTE_NOT_FOUND, "404")

    def test_handler_404_keeps_route(self, metrics_server, observed):
        from webservice.core.exceptions import HTTPError

        server, client = metrics_server

        @server.app.get("/items/{item_id}")
        def get_item(item_id: str):
            raise HTTPError(404, "no such item")

        client.get("/items/9")

        assert observed[0][:3] == ("GET", "/items/{item_id}", "404")

    def test_method_not_allowed(self, metrics_server, observed):
        server, client = metrics_server
        server.app.get("/only-get")(lambda: None)

        client.delete("/only-get")

        assert observed[0][:3] == ("DELETE", ROUTE_METHOD_NOT_ALLOWED, "405")

    def test_panic_is_reported_as_500(self, metrics_server, observed):
        server, client = metrics_server

        @server.app.get("/panic")
        def panic():
            raise RuntimeError("boom")

        client.get("/panic")

        assert observed[0][:3] == ("GET", "/panic", "500")

    def test_no_metrics_without_register(self, make_server):
        from webservice.server import MetricsMiddleware

        server, _ = make_server()

        assert all(m.cls is not MetricsMiddleware for m in server.app.user_middleware)
