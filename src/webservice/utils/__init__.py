"""Helpers shared by the client and the server."""

from .sanitizer import DEFAULT_MASK, add_sensitive_keys, mask_headers, mask_sensitive_data, mask_url

__all__ = [
    'DEFAULT_MASK',
    'add_sensitive_keys',
    'mask_headers',
    'mask_sensitive_data',
    'mask_url',
]
