"""
Pytest configuration and fixtures for webservice-kit tests.
"""

import pytest
import responses as responses_lib

from webservice.core.client import Client
from webservice.core.config import ClientOptions


TEST_ENVIRON = {"USER_AGENT": "tests"}


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def client(base_url):
    """Client with a fixed User-Agent."""
    client = Client(base_url, environ=TEST_ENVIRON)
    yield client
    client.close()


@pytest.fixture
def make_client(base_url):
    """Factory for clients with custom options; all are closed after the test."""
    created = []

    def factory(options=None, host=None):
        client = Client(host or base_url, options or ClientOptions(), environ=TEST_ENVIRON)
        created.append(client)
        return client

    yield factory
    for client in created:
        client.close()

