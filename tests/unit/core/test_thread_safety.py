"""
Tests for thread-safety of request builders.

One parent builder is shared between threads; every thread derives its own
builder with ``with_header`` and sends it. The parent must stay untouched and
no header may leak between the derived builders.
"""
import json
from concurrent.futures import ThreadPoolExecutor

import responses

from webservice.core.config import ClientOptions

WORKERS = 8
TASKS = 40


def _echo_worker_headers(request):
    """Return the X-Worker-* headers the server received."""
    seen = {k.lower(): v for k, v in request.headers.items() if k.lower().startswith("x-worker")}
    return 200, {}, json.dumps(seen)


class TestBuilderThreadSafety:
    """Builders shared between threads."""

    def test_concurrent_with_header_keeps_parent(self, make_client):
        client = make_client(ClientOptions().add_headers({"X-Base": "1"}))
        parent = client.new_request().with_header("X-Shared", "parent")
        before = dict(parent.headers.items())

        def derive(i: int):
            return parent.with_header(f"X-Worker-{i}", str(i))

        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            children = list(pool.map(derive, range(TASKS)))

        assert dict(parent.headers.items()) == before
        for i, child in enumerate(children):
            assert child.headers.get(f"X-Worker-{i}") == str(i)
            assert child.headers.get("X-Shared") == "parent"
            others = [name for name, _ in child.headers.items() if name.lower().startswith("x-worker")]
            assert len(others) == 1

    @responses.activate
    def test_concurrent_do_sends_own_headers(self, client, base_url):
        responses.add_callback(responses.GET, f"{base_url}/echo", callback=_echo_worker_headers)
        parent = client.new_request().with_header("X-Shared", "parent")
        before = dict(parent.headers.items())

        def send(i: int):
            status, body = parent.with_header(f"X-Worker-{i}", str(i)).do("GET", "/echo")
            return i, status, json.loads(body)

        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            results = list(pool.map(send, range(TASKS)))

        assert dict(parent.headers.items()) == before
        assert len(responses.calls) == TASKS
        for i, status, seen in results:
            assert status == 200
            assert seen == {f"x-worker-{i}": str(i)}
        for call in responses.calls:
            assert call.request.headers["X-Shared"] == "parent"

    @responses.activate
    def test_concurrent_json_requests(self, client, base_url):
        responses.add_callback(responses.POST, f"{base_url}/items", callback=_echo_worker_headers)
        parent = client.new_json_request()

        def send(i: int):
            status, body = parent.with_unique_header("X-Worker", str(i)).do("POST", "/items", {"n": i})
            return i, json.loads(body)

        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            results = list(pool.map(send, range(TASKS)))

        assert "X-Worker" not in parent.headers
        for i, seen in results:
            assert seen == {"x-worker": str(i)}
        sent = sorted(json.loads(call.request.body)["n"] for call in responses.calls)
        assert sent == list(range(TASKS))
