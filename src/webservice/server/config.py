"""
Конфигурация HTTP сервера.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from starlette.requests import Request
from starlette.types import ASGIApp

from ..core.env_config.validator import ServerSettings
from .access_log import AccessLogDiscarder, AccessLogLevel

if TYPE_CHECKING:
    from ..core.logging import WebServiceLogger


# (request, status_code) -> True, если строку access log писать не нужно
Discarder = Callable[[Request, int], bool]

# (method, route, status, elapsed_seconds)
MetricsRegister = Callable[[str, str, str, float], None]

# Вызывается как ``factory(app)``; класс ASGI middleware тоже подходит
MiddlewareFactory = Callable[[ASGIApp], ASGIApp]


@dataclass(frozen=True)
class ServerOptions:
    """
    Конфигурация Server.

    Args:
        idle_timeout: Keep-alive таймаут (сек)
        graceful_shutdown_timeout: Сколько ждать активные запросы при остановке
            (сек, 0 = без ограничения)
        tls_cert_file: Путь к сертификату; вместе с ``tls_key_file`` включает TLS
        tls_key_file: Путь к приватному ключу
        logger: Логгер для внутренних сообщений, access log и паник
            (по умолчанию ``webservice.server`` с тегом ``http``)
        access_log_disabled: Не писать access log
        access_log_discarder: Фильтр строк access log
        access_log_middleware: Заменяет встроенный access log целиком
        metrics_register: Колбэк метрик, вызывается после каждого запроса
        gzip_disabled: Не сжимать ответы
        gzip_minimum_size: Ответы меньше этого размера (байт) не сжимаются

    Examples:
        >>> ServerOptions(access_log_discarder=AccessLogDiscarder(AccessLogLevel.WARN))
    """
    idle_timeout: float = 120.0
    graceful_shutdown_timeout: float = 10.0
    tls_cert_file: Optional[str] = None
    tls_key_file: Optional[str] = None
    logger: Optional['WebServiceLogger'] = None
    access_log_disabled: bool = False
    access_log_discarder: Optional[Discarder] = None
    access_log_middleware: Optional[MiddlewareFactory] = None
    metrics_register: Optional[MetricsRegister] = None
    gzip_disabled: bool = False
    gzip_minimum_size: int = 500

    def __post_init__(self):
        """Валидация."""
        if self.idle_timeout <= 0:
            raise ValueError("idle_timeout must be positive")
        if self.graceful_shutdown_timeout < 0:
            raise ValueError("graceful_shutdown_timeout must be non-negative")
        if bool(self.tls_cert_file) != bool(self.tls_key_file):
            raise ValueError("tls_cert_file and tls_key_file must be set together")
        if self.gzip_minimum_size < 0:
            raise ValueError("gzip_minimum_size must be non-negative")

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert_file)


def server_options_from_settings(
    settings: ServerSettings,
    logger: Optional['WebServiceLogger'] = None,
    metrics_register: Optional[MetricsRegister] = None,
) -> ServerOptions:
    """
    Build ServerOptions from environment settings.

    Example:
        >>> settings = load_server_settings()
        >>> Server(settings.address, server_options_from_settings(settings))
    """
    discarder = None
    level = AccessLogLevel[settings.access_log_level]
    if level != AccessLogLevel.VERBOSE or settings.access_log_ignore_routes:
        ignore = re.compile(settings.access_log_ignore_routes) if settings.access_log_ignore_routes else None
        discarder = AccessLogDiscarder(level, ignore)

    return ServerOptions(
        idle_timeout=settings.idle_timeout,
        graceful_shutdown_timeout=settings.graceful_shutdown_timeout,
        tls_cert_file=settings.tls_cert_file,
        tls_key_file=settings.tls_key_file,
        logger=logger,
        access_log_disabled=settings.access_log_disabled,
        access_log_discarder=discarder,
        metrics_register=metrics_register,
        gzip_disabled=settings.gzip_disabled,
        gzip_minimum_size=settings.gzip_minimum_size,
    )
