"""
Server Example.

Runs a small API with health, admin and debug routes, an access log that
skips the service routes, and a metrics callback that prints every request.

    python examples/03_server.py
    curl localhost:8080/users/1
    curl -X POST localhost:8080/_/admin/shutdown
"""

from fastapi import Request

from webservice import (
    AccessLogDiscarder,
    AccessLogLevel,
    HTTPError,
    LoggingConfig,
    Server,
    ServerOptions,
    WebServiceLogger,
    tag_request,
)


USERS = {"1": {"id": "1", "name": "Ann"}}


def print_metrics(method: str, route: str, status: str, elapsed: float) -> None:
    print(f"metric: {method} {route} {status} {elapsed * 1000:.2f}ms")


def build_server() -> Server:
    logger = WebServiceLogger(
        LoggingConfig.create(level="INFO", format="json"),
        name="example.server",
    ).with_tags("http")

    options = ServerOptions(
        logger=logger,
        access_log_discarder=AccessLogDiscarder(AccessLogLevel.VERBOSE, r"^/_/"),
        metrics_register=print_metrics,
    )
    server = Server("127.0.0.1:8080", options)
    server.register_health_routes("/_")
    server.register_admin_routes("/_")
    server.register_debug_routes("/_")

    @server.app.get("/users/{user_id}")
    def get_user(user_id: str, request: Request):
        tag_request(request, "users")
        if user_id not in USERS:
            raise HTTPError(404, f"user {user_id} not found")
        return USERS[user_id]

    @server.app.get("/panic")
    def panic():
        raise RuntimeError("something went very wrong")

    return server


if __name__ == "__main__":
    build_server().start()
