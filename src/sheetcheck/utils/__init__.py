"""Utility modules for sheetcheck."""

from .atomic import atomic_write_text
from .urls import is_http_url, is_same_product_url, normalize_path, resolve_url

__all__ = ["atomic_write_text", "is_http_url", "is_same_product_url", "normalize_path", "resolve_url"]
