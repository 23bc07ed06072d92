"""
Configuration loader from environment variables and .env files.

Priority (highest to lowest):
1. **overrides - explicit parameters
2. Environment variables (WEBSERVICE_*)
3. .env file
4. Defaults
"""

from typing import Any, Optional

from ..config import ClientOptions, ConnOptions
from ..exceptions import ConfigurationError
from ..conn import new_conn
from ..headers import HeaderBag
from ..logging.config import LoggingConfig
from .validator import ServerSettings, WebServiceSettings


def _settings(env_file: Optional[str], overrides: dict) -> WebServiceSettings:
    # None keeps the default ".env" lookup
    settings = WebServiceSettings(_env_file=env_file) if env_file else WebServiceSettings()
    if overrides:
        unknown = set(overrides) - set(WebServiceSettings.model_fields)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        # Re-validate merged values so overrides obey the same constraints
        settings = WebServiceSettings.model_validate({**settings.model_dump(), **overrides})
    return settings


def load_logging_config(env_file: Optional[str] = None, **overrides: Any) -> Optional[LoggingConfig]:
    """
    Load LoggingConfig, or None when ``WEBSERVICE_LOG_ENABLED`` is false.

    Example:
        >>> config = load_logging_config(log_enabled=True, log_level="DEBUG")
    """
    settings = _settings(env_file, overrides)
    return _logging_config(settings)


def _logging_config(settings: WebServiceSettings) -> Optional[LoggingConfig]:
    if not settings.log_enabled:
        return None
    return LoggingConfig.create(
        level=settings.log_level,
        format=settings.log_format,
        enable_console=settings.log_enable_console,
        enable_file=settings.log_enable_file,
        file_path=settings.log_file_path,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        enable_correlation_id=settings.log_enable_correlation_id,
    )


def load_conn_options(env_file: Optional[str] = None, **overrides: Any) -> ConnOptions:
    settings = _settings(env_file, overrides)
    return _conn_options(settings)


def _conn_options(settings: WebServiceSettings) -> ConnOptions:
    verify = settings.conn_verify_ssl
    if verify and settings.conn_ca_bundle:
        verify = settings.conn_ca_bundle
    return ConnOptions(
        max_idle_conns=settings.conn_max_idle_conns,
        max_conns_per_host=settings.conn_max_conns_per_host,
        connect_timeout=settings.conn_connect_timeout,
        request_timeout=max(settings.client_timeout or 0, 0),
        verify=verify,
        proxies=settings.conn_proxies,
        max_redirects=settings.conn_max_redirects,
    )


def load_client_options(env_file: Optional[str] = None, **overrides: Any) -> ClientOptions:
    """
    Load ClientOptions from environment variables.

    A connection is created from the ``WEBSERVICE_CONN_*`` settings.

    Args:
        env_file: Custom .env file path
        **overrides: Explicit settings, named like the ``WebServiceSettings``
            fields (``client_timeout=2``, ``log_enabled=True``)

    Raises:
        ConfigurationError: On unknown override names
        pydantic.ValidationError: On invalid values

    Example:
        >>> options = load_client_options(client_timeout=2.5)
        >>> client = Client("https://api.example.com", options)
    """
    settings = _settings(env_file, overrides)

    headers = HeaderBag()
    for key, value in settings.client_headers.items():
        headers.add(key, value)

    return ClientOptions(
        conn=new_conn(_conn_options(settings)),
        max_request_timeout=settings.client_timeout,
        headers=headers,
        logging=_logging_config(settings),
    )


def load_server_settings(env_file: Optional[str] = None, **overrides: Any) -> ServerSettings:
    """
    Load ServerSettings from environment variables.

    Use :func:`webservice.server.server_options_from_settings` to turn them
    into ``ServerOptions``.

    Example:
        >>> settings = load_server_settings(server_address="0.0.0.0:9000")
        >>> settings.address
        '0.0.0.0:9000'
    """
    return _settings(env_file, overrides).to_server_settings()
