"""
Environment configuration system for webservice.

Load configuration from .env files and environment variables.

Example:
    >>> from webservice.core.env_config import load_client_options
    >>>
    >>> options = load_client_options()
    >>> options = load_client_options(env_file=".env.production", client_timeout=2)
"""

from .loader import (
    load_client_options,
    load_conn_options,
    load_logging_config,
    load_server_settings,
)
from .validator import ServerSettings, WebServiceSettings

__all__ = [
    "load_client_options",
    "load_conn_options",
    "load_logging_config",
    "load_server_settings",
    "ServerSettings",
    "WebServiceSettings",
]
