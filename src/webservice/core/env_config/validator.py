"""
Pydantic validators for environment configuration.

Provides validated models for all configuration options.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    """Server configuration from environment."""

    address: str = Field(default="127.0.0.1:8080", description="host:port to listen on")
    idle_timeout: float = Field(default=120.0, gt=0, description="Keep-alive timeout in seconds")
    graceful_shutdown_timeout: float = Field(default=10.0, ge=0)
    tls_cert_file: Optional[str] = None
    tls_key_file: Optional[str] = None
    access_log_disabled: bool = False
    access_log_level: Literal["VERBOSE", "INFO", "WARN", "ERROR"] = "VERBOSE"
    access_log_ignore_routes: Optional[str] = Field(
        default=None, description="Regex of paths to keep out of the access log"
    )
    gzip_disabled: bool = False
    gzip_minimum_size: int = Field(default=500, ge=0)

    @model_validator(mode="after")
    def validate_tls_pair(self) -> "ServerSettings":
        """Cert and key must be given together, whichever one is missing."""
        if bool(self.tls_cert_file) != bool(self.tls_key_file):
            raise ValueError("tls_cert_file and tls_key_file must be set together")
        return self


class WebServiceSettings(BaseSettings):
    """
    Main webservice configuration from environment variables.

    Reads from:
    1. Environment variables (WEBSERVICE_*)
    2. .env file
    3. Defaults

    Example .env file:
        WEBSERVICE_CLIENT_TIMEOUT=2.5
        WEBSERVICE_CONN_MAX_IDLE_CONNS=20
        WEBSERVICE_CONN_PROXIES={"https": "http://proxy:3128"}
        WEBSERVICE_LOG_LEVEL=DEBUG
        WEBSERVICE_SERVER_ADDRESS=0.0.0.0:8080
        WEBSERVICE_SERVER_ACCESS_LOG_LEVEL=WARN
    """

    model_config = SettingsConfigDict(
        env_prefix='WEBSERVICE_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # Client
    client_timeout: Optional[float] = Field(
        default=None, description="Default request timeout; unset = 5s, <= 0 disables"
    )
    client_headers: Dict[str, str] = Field(default_factory=dict)

    # Connection pool
    conn_max_idle_conns: int = Field(default=5, ge=0)
    conn_max_conns_per_host: int = Field(default=100, ge=0)
    conn_connect_timeout: float = Field(default=10.0, ge=0)
    conn_verify_ssl: bool = True
    conn_ca_bundle: Optional[str] = None
    conn_proxies: Dict[str, str] = Field(default_factory=dict)
    conn_max_redirects: int = Field(default=30, ge=0)

    # Logging
    log_enabled: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text", "colored"] = Field(default="text")
    log_enable_console: bool = True
    log_enable_file: bool = False
    log_file_path: Optional[str] = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=5, ge=0)
    log_enable_correlation_id: bool = True

    # Server
    server_address: str = "127.0.0.1:8080"
    server_idle_timeout: float = Field(default=120.0, gt=0)
    server_graceful_shutdown_timeout: float = Field(default=10.0, ge=0)
    server_tls_cert_file: Optional[str] = None
    server_tls_key_file: Optional[str] = None
    server_access_log_disabled: bool = False
    server_access_log_level: Literal["VERBOSE", "INFO", "WARN", "ERROR"] = "VERBOSE"
    server_access_log_ignore_routes: Optional[str] = None
    server_gzip_disabled: bool = False
    server_gzip_minimum_size: int = Field(default=500, ge=0)

    @field_validator('log_file_path')
    @classmethod
    def validate_file_path(cls, v: Optional[str], info) -> Optional[str]:
        """Validate file_path is required when log_enable_file=True."""
        if info.data.get('log_enable_file') and not v:
            raise ValueError("log_file_path is required when log_enable_file=True")
        return v

    def to_server_settings(self) -> ServerSettings:
        """Convert to ServerSettings."""
        return ServerSettings(
            address=self.server_address,
            idle_timeout=self.server_idle_timeout,
            graceful_shutdown_timeout=self.server_graceful_shutdown_timeout,
            tls_cert_file=self.server_tls_cert_file,
            tls_key_file=self.server_tls_key_file,
            access_log_disabled=self.server_access_log_disabled,
            access_log_level=self.server_access_log_level,
            access_log_ignore_routes=self.server_access_log_ignore_routes,
            gzip_disabled=self.server_gzip_disabled,
            gzip_minimum_size=self.server_gzip_minimum_size,
        )

