"""
Environment Configuration Examples.

Demonstrates loading client and server configuration from .env files and
WEBSERVICE_* environment variables.
"""

import os

from webservice import (
    Client,
    Server,
    load_client_options,
    load_server_settings,
    server_options_from_settings,
)
from webservice.core.env_config import load_logging_config


def example_1_load_from_default_env():
    """Example 1: Load from .env."""
    print("\n" + "=" * 60)
    print("EXAMPLE 1: Load from .env")
    print("=" * 60 + "\n")

    with open('.env', 'w') as f:
        f.write("WEBSERVICE_CLIENT_TIMEOUT=2.5\n")
        f.write('WEBSERVICE_CLIENT_HEADERS={"X-Team": "billing"}\n')
        f.write("WEBSERVICE_LOG_ENABLED=true\n")
        f.write("WEBSERVICE_LOG_FORMAT=colored\n")

    try:
        options = load_client_options()
    finally:
        os.remove('.env')

    print(f"max_request_timeout: {options.max_request_timeout}")
    print(f"headers: {options.headers!r}")
    print(f"logging: {options.logging}")

    with Client("https://httpbin.org", options) as client:
        status, _ = client.new_request().do("GET", "/get")
        print(f"\nResponse status: {status}\n")


def example_2_overrides():
    """Example 2: Explicit overrides win over the environment."""
    print("\n" + "=" * 60)
    print("EXAMPLE 2: Overrides")
    print("=" * 60 + "\n")

    os.environ["WEBSERVICE_CONN_MAX_IDLE_CONNS"] = "20"
    try:
        options = load_client_options(client_timeout=1, conn_max_idle_conns=2)
    finally:
        del os.environ["WEBSERVICE_CONN_MAX_IDLE_CONNS"]

    print(f"Connection: {options.conn!r}")
    options.conn.close()


def example_3_logging_only():
    """Example 3: Logging is off unless WEBSERVICE_LOG_ENABLED is set."""
    print("\n" + "=" * 60)
    print("EXAMPLE 3: Logging config")
    print("=" * 60 + "\n")

    print(f"default: {load_logging_config()}")
    print(f"enabled: {load_logging_config(log_enabled=True, log_level='DEBUG', log_format='json')}")


def example_4_server_settings():
    """Example 4: Server options from the environment."""
    print("\n" + "=" * 60)
    print("EXAMPLE 4: Server settings")
    print("=" * 60 + "\n")

    settings = load_server_settings(
        server_address="127.0.0.1:8081",
        server_access_log_level="WARN",
        server_access_log_ignore_routes="^/_/",
    )
    options = server_options_from_settings(settings)
    server = Server(settings.address, options)

    print(f"settings: {settings.model_dump()}")
    print(f"discarder: {options.access_log_discarder!r}")
    print(f"server: {server!r}")


if __name__ == "__main__":
    example_1_load_from_default_env()
    example_2_overrides()
    example_3_logging_only()
    example_4_server_settings()
