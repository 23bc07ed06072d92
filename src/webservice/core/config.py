"""
Система конфигурации для webservice.

Все конфиги immutable (frozen dataclasses); методы ``with_*`` возвращают
новый экземпляр.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Callable,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import requests

from .context import CallContext
from .headers import HeaderBag

if TYPE_CHECKING:
    from .conn import Connection
    from .logging import LoggingConfig


RequestMiddleware = Callable[[CallContext, requests.PreparedRequest], Optional[requests.PreparedRequest]]

DEFAULT_REQUEST_TIMEOUT = 5.0

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CONNECTION CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ConnOptions:
    """
    Конфигурация соединения (connection pool + таймауты + TLS).

    Нулевые значения означают "по умолчанию" и заменяются в ``sanitize()``.

    Args:
        max_idle_conns: Сколько host-пулов кешировать и сколько idle соединений
            держать на хост
        max_conns_per_host: Максимум соединений на хост (0 = без ограничения);
            при достижении лимита запросы ждут свободное соединение
        connect_timeout: Таймаут подключения (сек)
        request_timeout: Таймаут запроса по умолчанию (сек, 0 = нет)
        verify: Проверять TLS сертификаты (или путь к CA bundle)
        cert: Клиентский сертификат (путь или (cert, key))
        proxies: Явные прокси; иначе берутся из окружения
        max_redirects: Максимум редиректов

    Examples:
        >>> ConnOptions().with_max_idle_conns(20).with_timeout(2)
        >>> DEFAULT_CONN_OPTIONS.with_tls(verify="/etc/ssl/ca.pem")
    """
    max_idle_conns: int = 0
    max_conns_per_host: int = 0
    connect_timeout: float = 0
    request_timeout: float = 0
    verify: Union[bool, str] = True
    cert: Optional[Union[str, Tuple[str, str]]] = None
    proxies: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    max_redirects: int = 30

    def __post_init__(self):
        """Валидация и заморозка словарей."""
        if isinstance(self.proxies, dict):
            object.__setattr__(self, 'proxies', MappingProxyType(dict(self.proxies)))
        if self.max_idle_conns < 0:
            raise ValueError("max_idle_conns must be non-negative")
        if self.max_conns_per_host < 0:
            raise ValueError("max_conns_per_host must be non-negative")
        if self.connect_timeout < 0:
            raise ValueError("connect_timeout must be non-negative")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be non-negative")

    def with_max_idle_conns(self, value: int) -> 'ConnOptions':
        """Сколько соединений держать открытыми между всплесками нагрузки."""
        return replace(self, max_idle_conns=value)

    def with_max_conns_per_host(self, value: int) -> 'ConnOptions':
        return replace(self, max_conns_per_host=value)

    def with_timeout(self, value: float) -> 'ConnOptions':
        """Таймаут установки новых соединений."""
        return replace(self, connect_timeout=value)

    def with_request_timeout(self, value: float) -> 'ConnOptions':
        """Максимальный таймаут для всех запросов."""
        return replace(self, request_timeout=value)

    def with_tls(
        self,
        verify: Union[bool, str] = True,
        cert: Optional[Union[str, Tuple[str, str]]] = None
    ) -> 'ConnOptions':
        return replace(self, verify=verify, cert=cert)

    def with_proxies(self, proxies: Mapping[str, str]) -> 'ConnOptions':
        return replace(self, proxies=dict(proxies))

    def with_max_redirects(self, value: int) -> 'ConnOptions':
        return replace(self, max_redirects=value)

    def sanitize(self) -> 'ConnOptions':
        """Подставить значения по умолчанию вместо нулевых."""
        options = self
        if options.max_idle_conns == 0:
            options = replace(options, max_idle_conns=5)
        if options.connect_timeout == 0:
            options = replace(options, connect_timeout=3.0)
        return options


DEFAULT_CONN_OPTIONS = ConnOptions(
    max_idle_conns=5,
    max_conns_per_host=100,
    connect_timeout=10.0,
)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLIENT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ClientOptions:
    """
    Конфигурация Client.

    Args:
        conn: Готовое соединение (см. ``new_conn``); создаётся, если не задано
        max_request_timeout: Таймаут запроса по умолчанию (сек).
            None = 5 сек, 0 или меньше = без таймаута.
            Таймауты отдельных запросов должны быть меньше.
        headers: Заголовки по умолчанию
        middlewares: Функции ``(ctx, request) -> request``, выполняются по порядку
        logging: Конфигурация логирования (None = не логировать)

    Examples:
        >>> ClientOptions(max_request_timeout=2).add_headers({"X-Team": "core"})
    """
    conn: Optional['Connection'] = None
    max_request_timeout: Optional[float] = None
    headers: Optional[HeaderBag] = None
    middlewares: Sequence[RequestMiddleware] = ()
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Заморозить список middleware."""
        if not isinstance(self.middlewares, tuple):
            object.__setattr__(self, 'middlewares', tuple(self.middlewares))

    def add_headers(self, headers: Mapping[str, str]) -> 'ClientOptions':
        """Новый конфиг с добавленными (append) заголовками."""
        bag = self.headers.clone() if self.headers is not None else HeaderBag()
        for key, value in headers.items():
            bag.add(key, value)
        return replace(self, headers=bag)

    def with_middlewares(self, *middlewares: RequestMiddleware) -> 'ClientOptions':
        return replace(self, middlewares=tuple(self.middlewares) + middlewares)

    def sanitize(self) -> 'ClientOptions':
        """Заполнить таймаут, соединение и заголовки значениями по умолчанию."""
        options = self
        if options.max_request_timeout is None:
            options = replace(options, max_request_timeout=DEFAULT_REQUEST_TIMEOUT)
        if options.conn is None:
            from .conn import new_conn

            timeout = max(options.max_request_timeout, 0)
            options = replace(
                options,
                conn=new_conn(
                    DEFAULT_CONN_OPTIONS.with_request_timeout(timeout).with_timeout(timeout)
                ),
            )
        if options.headers is None:
            options = replace(options, headers=HeaderBag())
        return options
