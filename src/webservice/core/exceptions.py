"""
Иерархия исключений webservice.

Классификация:
- ошибки построения запроса (InvalidBuilderError, RequestConstructionError,
  MiddlewareError, EncodingError) - до любой сетевой активности
- TransportError и подклассы - сбой при отправке запроса
- BodyReadError - статус известен, тело прочитать не удалось
- HTTPError - типизированная ошибка для HTTP сервера
"""

import json
from typing import Any, Dict, Optional, Union

import requests

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class WebServiceException(Exception):
    """Базовое исключение webservice."""

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ПОСТРОЕНИЕ ЗАПРОСА
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class InvalidBuilderError(WebServiceException):
    """Билдер создан не через Client."""

    def __init__(self, message: str = "request must be created from a Client"):
        super().__init__(message)

class RequestConstructionError(WebServiceException):
    """
    Не удалось построить запрос.

    Примеры:
    - Невалидный HTTP метод
    - URL без схемы или с неверным хостом
    - Недопустимое значение заголовка
    """

    def __init__(self, message: str, method: Optional[str] = None, url: Optional[str] = None):
        self.method = method
        self.url = url

        msg = f"error creating request; {message}"
        if method and url:
            msg += f" ({method} {url})"

        super().__init__(msg)

class MiddlewareError(WebServiceException):
    """
    Middleware клиента прервал запрос.

    Args:
        index: Позиция middleware в порядке регистрации
        cause: Исключение, выброшенное middleware
    """

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(f"failed to run middleware [{index}]; {cause}")

class EncodingError(WebServiceException):
    """Тело запроса не сериализуется в JSON."""

    def __init__(self, message: str):
        super().__init__(f"invalid request body; {message}")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ТРАНСПОРТ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(WebServiceException):
    """Сетевая ошибка при отправке запроса."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        full_message = f"error running request; {message}"
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message)

class TimeoutError(TransportError):
    """
    Истёк таймаут билдера или дедлайн CallContext.

    ``timeout`` хранит значение в секундах, с которым шёл запрос.
    """

    def __init__(self, message: str, url: Optional[str] = None, timeout: Optional[float] = None):
        self.timeout = timeout

        msg = message
        if timeout:
            msg += f" (timeout: {timeout}s)"

        super().__init__(msg, url)

class ConnectionError(TransportError):
    """Соединение не установлено или оборвано (refused, reset, DNS)."""

class ProxyError(ConnectionError):
    """Прокси отклонил запрос или недоступен."""

class SSLError(ConnectionError):
    """Ошибка TLS handshake или проверки сертификата."""

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОТВЕТ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class BodyReadError(WebServiceException):
    """
    Запрос выполнен, но тело ответа прочитать не удалось.

    Статус код сохраняется, чтобы вызывающий код не терял информацию.

    Args:
        status_code: HTTP статус полученного ответа
        url: URL запроса
        message: Описание ошибки чтения
    """

    def __init__(self, status_code: int, url: Optional[str] = None, message: str = ""):
        self.status_code = status_code
        self.url = url

        msg = "error reading http body"
        if message:
            msg += f"; {message}"
        if url:
            msg += f" (status: {status_code}, url: {url})"

        super().__init__(msg)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СПЕЦИАЛЬНЫЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ConfigurationError(WebServiceException):
    """Невалидные опции клиента, соединения или сервера."""

class ServerStateError(WebServiceException):
    """Server.start при уже запущенном сервере или занятом адресе."""

class HTTPError(WebServiceException):
    """
    Типизированная HTTP ошибка для обработчиков сервера.

    Обработчик ошибок сервера отдаёт её клиенту как
    ``{"code": <int>, "message": <str>}`` со статусом ``code``.

    Args:
        code: HTTP статус
        error: Сообщение или исходное исключение

    Examples:
        >>> raise HTTPError(404, "user not found")
        >>> raise HTTPError(409, exc) from exc
    """

    def __init__(self, code: int, error: Union[str, BaseException]):
        self.code = code
        self.error = error
        self.internal = error.__cause__ if isinstance(error, BaseException) else None
        super().__init__(str(error))

    def __str__(self) -> str:
        if self.internal is None:
            return f"code={self.code}, message={self.message}"
        return f"code={self.code}, message={self.message}, internal={self.internal}"

    def to_dict(self) -> Dict[str, Any]:
        """Вернуть как словарь для JSON ответа."""
        return {"code": self.code, "message": self.message}

    def to_json(self) -> str:
        """Сериализовать в ``{"code":...,"message":...}``."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

# Timeout is checked first: ConnectTimeout is also a ConnectionError
_REQUESTS_ERRORS = (
    ((requests.exceptions.ProxyError,), ProxyError, "proxy error"),
    ((requests.exceptions.SSLError,), SSLError, "ssl error"),
    ((requests.exceptions.ConnectionError,), ConnectionError, "connection error"),
)

_BAD_REQUEST_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
)


def classify_requests_exception(
    exc: Exception,
    url: Optional[str] = None,
    timeout: Optional[float] = None
) -> WebServiceException:
    """
    Перевести исключение ``requests`` в иерархию webservice.

    Таймауты (connect и read) становятся TimeoutError с исходным
    значением ``timeout``, ошибки URL и заголовков становятся
    RequestConstructionError, всё прочее TransportError.

    Examples:
        >>> exc = classify_requests_exception(requests.exceptions.ReadTimeout(), "https://x.io", 2)
        >>> isinstance(exc, TimeoutError), exc.timeout
        (True, 2)
    """
    if isinstance(exc, requests.exceptions.Timeout):
        return TimeoutError("request timeout", url, timeout)

    for classes, error_class, label in _REQUESTS_ERRORS:
        if isinstance(exc, classes):
            return error_class(f"{label}: {exc}", url)

    if isinstance(exc, _BAD_REQUEST_ERRORS):
        return RequestConstructionError(str(exc), url=url)
    if isinstance(exc, requests.exceptions.RequestException):
        return TransportError(str(exc), url)
    return TransportError(f"unexpected error: {exc}", url)
