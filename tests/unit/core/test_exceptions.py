"""
Tests for the exception hierarchy and requests exception classification.
"""

import json

import pytest
import requests

from webservice.core.exceptions import (
    BodyReadError,
    ConnectionError,
    EncodingError,
    HTTPError,
    InvalidBuilderError,
    MiddlewareError,
    ProxyError,
    RequestConstructionError,
    SSLError,
    TimeoutError,
    TransportError,
    WebServiceException,
    classify_requests_exception,
)


class TestBuilderErrors:

    def test_invalid_builder_default_message(self):
        exc = InvalidBuilderError()

        assert str(exc) == "request must be created from a Client"
        assert isinstance(exc, WebServiceException)

    def test_request_construction_error(self):
        exc = RequestConstructionError("bad url", method="GET", url="nope")

        assert str(exc) == "error creating request; bad url (GET nope)"
        assert exc.method == "GET"
        assert exc.url == "nope"

    def test_middleware_error_carries_index_and_cause(self):
        cause = ValueError("puff")
        exc = MiddlewareError(2, cause)

        assert exc.index == 2
        assert exc.cause is cause
        assert str(exc) == "failed to run middleware [2]; puff"

    def test_encoding_error(self):
        assert str(EncodingError("not serializable")) == "invalid request body; not serializable"


class TestTransportErrors:

    def test_transport_error_message(self):
        exc = TransportError("boom", "https://x.io")

        assert str(exc) == "error running request; boom (url: https://x.io)"
        assert exc.url == "https://x.io"

    def test_timeout_error(self):
        exc = TimeoutError("request timeout", "https://x.io", 2.5)

        assert exc.timeout == 2.5
        assert "timeout: 2.5s" in str(exc)
        assert isinstance(exc, TransportError)

    def test_hierarchy(self):
        assert issubclass(ConnectionError, TransportError)
        assert issubclass(ProxyError, ConnectionError)
        assert issubclass(SSLError, ConnectionError)


class TestBodyReadError:

    def test_keeps_status(self):
        exc = BodyReadError(200, "https://x.io", "connection reset")

        assert exc.status_code == 200
        assert "error reading http body; connection reset" in str(exc)
        assert "status: 200" in str(exc)


class TestHTTPError:

    def test_str_without_internal(self):
        assert str(HTTPError(404, "user not found")) == "code=404, message=user not found"

    def test_str_with_internal(self):
        try:
            try:
                raise KeyError("id")
            except KeyError as inner:
                raise ValueError("lookup failed") from inner
        except ValueError as exc:
            err = HTTPError(409, exc)

        assert err.internal is not None
        assert str(err) == "code=409, message=lookup failed, internal='id'"

    def test_to_json(self):
        err = HTTPError(400, 'bad "input"')

        assert err.to_json() == '{"code":400,"message":"bad \\"input\\""}'
        assert json.loads(err.to_json()) == {"code": 400, "message": 'bad "input"'}

    def test_to_dict(self):
        assert HTTPError(500, "x").to_dict() == {"code": 500, "message": "x"}


class TestClassifyRequestsException:

    @pytest.mark.parametrize("exc,expected", [
        (requests.exceptions.ConnectTimeout(), TimeoutError),
        (requests.exceptions.ReadTimeout(), TimeoutError),
        (requests.exceptions.ProxyError(), ProxyError),
        (requests.exceptions.SSLError(), SSLError),
        (requests.exceptions.ConnectionError(), ConnectionError),
        (requests.exceptions.MissingSchema(), RequestConstructionError),
        (requests.exceptions.InvalidURL(), RequestConstructionError),
        (requests.exceptions.ChunkedEncodingError(), TransportError),
        (RuntimeError("odd"), TransportError),
    ])
    def test_classification(self, exc, expected):
        result = classify_requests_exception(exc, "https://x.io", 1.0)

        assert type(result) is expected

    def test_timeout_keeps_timeout_value(self):
        result = classify_requests_exception(requests.exceptions.ReadTimeout(), "https://x.io", 3.0)

        assert result.timeout == 3.0
