"""
Basic Client Usage Examples

Demonstrates request builders, per-request options, middlewares and ping.
"""

from webservice import (
    CallContext,
    Client,
    ClientOptions,
    HTTPError,
    LoggingConfig,
    TimeoutError,
    TransportError,
    new_client,
)


BASE_URL = "https://httpbin.org"


def buffered_request():
    """GET with a buffered body."""
    print("\n=== Buffered GET ===")

    with new_client(BASE_URL) as client:
        status, body = client.new_request().do("GET", "/get")

    print(f"Status: {status}")
    print(f"Body: {body[:120]!r}...")


def json_request():
    """POST a JSON document."""
    print("\n=== JSON POST ===")

    with new_client(BASE_URL) as client:
        status, body = client.new_json_request().do("POST", "/post", {"name": "Ann", "age": 33})

    print(f"Status: {status}")
    print(f"Echoed: {body[:120]!r}...")


def derived_builders():
    """Builders are immutable: every with_* returns a new one."""
    print("\n=== Derived builders ===")

    with new_client(BASE_URL) as client:
        base = client.new_request().with_header("X-Team", "billing")
        fast = base.with_timeout(1)
        traced = base.with_unique_header("X-Trace", "on")

        print(f"base headers:   {base.headers!r}")
        print(f"traced headers: {traced.headers!r}")
        print(f"timeouts: base={base.timeout} fast={fast.timeout}")

        try:
            fast.do("GET", "/delay/3")
        except TimeoutError as exc:
            print(f"Timed out as expected: {exc}")


def request_options():
    """Options applied when the builder is created."""
    print("\n=== Request options ===")

    with new_client(BASE_URL) as client:
        req = client.new_request(
            Client.request_timeout(2),
            Client.request_header("Accept", "application/json"),
            Client.with_default_header("X-Tenant", "acme"),
        )
        status, _ = req.do("GET", "/headers")
        print(f"Status: {status}")


def streaming():
    """Read a body in chunks; the stream must be closed."""
    print("\n=== Streaming ===")

    with new_client(BASE_URL) as client:
        status, stream = client.new_stream_request().do("GET", "/bytes/4096")
        with stream:
            size = sum(len(chunk) for chunk in stream.iter_chunks(chunk_size=1024))

    print(f"Status: {status}, read {size} bytes")


def middlewares():
    """Middlewares see every prepared request before it is sent."""
    print("\n=== Middlewares ===")

    def add_request_id(ctx, request):
        request.headers["X-Request-Id"] = ctx.request_id

    options = ClientOptions(
        middlewares=[add_request_id],
        logging=LoggingConfig.create(level="DEBUG", format="colored"),
    )
    with Client(BASE_URL, options) as client:
        ctx = CallContext(request_id="example-1")
        status, _ = client.new_request().do("GET", "/headers", ctx=ctx)

    print(f"Status: {status}")


def ping():
    """Connectivity report; never raises."""
    print("\n=== Ping ===")

    with new_client(BASE_URL) as client:
        print(client.ping().to_dict())

    with new_client("http://does-not-exist.invalid") as client:
        print(client.ping().to_dict())


def errors():
    """Transport failures are exceptions, HTTP statuses are not."""
    print("\n=== Errors ===")

    with new_client(BASE_URL) as client:
        status, _ = client.request("GET", "/status/418")
        print(f"418 is just a status: {status}")

    with new_client("http://127.0.0.1:1") as client:
        try:
            client.request("GET", "/")
        except TransportError as exc:
            print(f"{type(exc).__name__}: {exc}")

    print(HTTPError(404, "user not found").to_json())


if __name__ == "__main__":
    buffered_request()
    json_request()
    derived_builders()
    request_options()
    streaming()
    middlewares()
    ping()
    errors()
