# src/webservice/utils/sanitizer.py
"""
Скрытие секретов в полях лога.

WebServiceLogger пропускает через ``mask_sensitive_data`` все поля записи,
access log дополнительно маскирует URI запроса. Значения под
чувствительными ключами заменяются целиком, в строках заменяется только
секретная часть (токен после ``Bearer``, значение ``?token=``, пароль в
``user:pass@host``).
"""

import re
from typing import Any, Dict, Iterable, Mapping, Optional, Pattern
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

DEFAULT_MASK = "***REDACTED***"

# Фрагменты имён полей и заголовков; сравнение без учёта регистра, по вхождению
SENSITIVE_KEYS = {
    'password', 'passwd', 'pwd',
    'token', 'jwt',
    'secret', 'api_key', 'apikey', 'private_key',
    'authorization', 'auth', 'credentials',
    'cookie', 'session', 'csrf',
}

_AUTH_SCHEME: Pattern[str] = re.compile(r'\b(Bearer|Basic)(\s+)[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE)
_QUERY_SECRET: Pattern[str] = re.compile(r'(api[_-]?key|token|password)=[^\s&,;#]+', re.IGNORECASE)
_URL_USERINFO: Pattern[str] = re.compile(r'(://[^:/@\s]+):[^@/\s]+@')


def _is_sensitive_key(key: Any) -> bool:
    name = str(key).lower()
    return any(fragment in name for fragment in SENSITIVE_KEYS)


def _mask_text(text: str, mask: str) -> str:
    text = _AUTH_SCHEME.sub(lambda m: f"{m.group(1)}{m.group(2)}{mask}", text)
    text = _QUERY_SECRET.sub(lambda m: f"{m.group(1)}={mask}", text)
    return _URL_USERINFO.sub(lambda m: f"{m.group(1)}:{mask}@", text)


def _mask_mapping(data: Mapping[Any, Any], mask: str) -> Dict[Any, Any]:
    return {
        key: mask if _is_sensitive_key(key) else mask_sensitive_data(value, mask)
        for key, value in data.items()
    }


def mask_sensitive_data(data: Any, mask: str = DEFAULT_MASK) -> Any:
    """
    Вернуть копию ``data`` со скрытыми секретами.

    Словари, списки и кортежи обходятся рекурсивно, строки проверяются
    регулярными выражениями. Числа, ``None`` и произвольные объекты
    возвращаются без изменений.

    Examples:
        >>> mask_sensitive_data({"user": "ann", "password": "hunter2"})
        {'user': 'ann', 'password': '***REDACTED***'}
        >>> mask_sensitive_data("/login?token=abc&page=1")
        '/login?token=***REDACTED***&page=1'
    """
    if isinstance(data, str):
        return _mask_text(data, mask)
    if isinstance(data, Mapping):
        return _mask_mapping(data, mask)
    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)
    return data


def mask_headers(headers: Mapping[str, str], mask: str = DEFAULT_MASK) -> Dict[str, str]:
    """
    Скрыть значения заголовков вроде ``Authorization`` и ``Cookie``.

    Examples:
        >>> mask_headers({"Authorization": "Bearer t", "Accept": "*/*"})
        {'Authorization': '***REDACTED***', 'Accept': '*/*'}
    """
    return _mask_mapping(headers, mask)


def add_sensitive_keys(*keys: str) -> None:
    """Зарегистрировать дополнительные имена полей, например ``x-signature``."""
    SENSITIVE_KEYS.update(key.lower() for key in keys)


def mask_url(url: str, extra_params: Optional[Iterable[str]] = None, mask: str = DEFAULT_MASK) -> str:
    """
    Скрыть пароль из userinfo и секретные параметры query string.

    Параметр считается секретным по тем же правилам, что и ключ словаря
    (см. ``SENSITIVE_KEYS``), либо если он перечислен в ``extra_params``.
    Клиент пишет в лог URL только после этой функции.

    Examples:
        >>> mask_url("https://api.example.com/data?api_key=s3cr3t&page=2")
        'https://api.example.com/data?api_key=***REDACTED***&page=2'
        >>> mask_url("https://x.io/?tenant=acme", extra_params=["Tenant"])
        'https://x.io/?tenant=***REDACTED***'
    """
    if not url:
        return url

    try:
        parts = urlsplit(url)
    except ValueError:
        # unparseable URLs are not logged
        return "<invalid url>"
    extra = {p.lower() for p in extra_params or ()}
    netloc = _URL_USERINFO.sub(lambda m: f"{m.group(1)}:{mask}@", f"://{parts.netloc}")[3:]

    def secret(name: str) -> bool:
        return name.lower() in extra or _is_sensitive_key(name)

    query = parts.query
    pairs = parse_qsl(query, keep_blank_values=True)
    if any(secret(name) for name, _ in pairs):
        query = urlencode([(name, mask if secret(name) else value) for name, value in pairs], safe='*')

    return urlunsplit(parts._replace(netloc=netloc, query=query))
