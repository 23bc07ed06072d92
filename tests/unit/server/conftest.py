"""
Fixtures for server tests: a Server whose log records are captured.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from webservice.core.logging import LoggingConfig, WebServiceLogger
from webservice.server import Server, ServerOptions


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)

    def messages(self):
        return [r.getMessage() for r in self.records]


@pytest.fixture
def log_handler():
    return ListHandler()


@pytest.fixture
def server_logger(log_handler):
    logger = WebServiceLogger(
        LoggingConfig.create(level="DEBUG", enable_console=False),
        name="webservice.test.server",
    )
    logger.logger.addHandler(log_handler)
    yield logger.with_tags("http")
    logger.close()


@pytest.fixture
def make_server(server_logger):
    """Factory: ``make_server(**server_options)`` -> (server, test client)."""

    def factory(**kwargs):
        kwargs.setdefault("logger", server_logger)
        server = Server(":0", ServerOptions(**kwargs))
        return server, TestClient(server.app)

    return factory
