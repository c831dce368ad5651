"""
URL helpers used by the validator and the PDF verifier.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from yarl import URL

_REPEATED_SLASHES = re.compile(r"/+")
ALLOWED_SCHEMES = frozenset({"http", "https"})


def is_http_url(url: str) -> bool:
    """Return True if *url* parses as an absolute http(s) URL with a host."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return False
    return parts.scheme.lower() in ALLOWED_SCHEMES and bool(hostname)


def normalize_path(path: str) -> str:
    """Collapse repeated slashes, strip one trailing slash and lowercase.

    The root path ``/`` is returned unchanged.
    """
    collapsed = _REPEATED_SLASHES.sub("/", path)
    if collapsed != "/" and collapsed.endswith("/"):
        collapsed = collapsed[:-1]
    return collapsed.lower()


def is_same_product_url(requested_url: str, final_url: str) -> bool:
    """Same hostname and same normalized path. Scheme and query are ignored.

    Both sides are compared decoded, so a percent-encoded or punycode final
    URL matches the URL as it was typed.
    """
    try:
        requested = URL(requested_url)
        final = URL(final_url)
        if (requested.host or "").lower() != (final.host or "").lower():
            return False
        requested_path, final_path = requested.path, final.path
    except (ValueError, TypeError):
        return False
    # An absolute http(s) URL without a path addresses "/".
    return normalize_path(requested_path or "/") == normalize_path(final_path or "/")


def resolve_url(base_url: str, href: str) -> str:
    """Resolve *href* against *base_url*, falling back to *href* unchanged."""
    try:
        return urljoin(base_url, href)
    except ValueError:
        return href
