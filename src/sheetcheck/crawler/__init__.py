"""
Network layer: the backoff fetch client and the page renderers.
"""

from .http_client import BackoffFetchClient, FetchResponse, RequestSpec, parse_retry_after
from .renderer import BrowserPageRenderer, HttpPageRenderer, PageRenderer, RenderBackend

__all__ = [
    "BackoffFetchClient",
    "BrowserPageRenderer",
    "FetchResponse",
    "HttpPageRenderer",
    "PageRenderer",
    "RenderBackend",
    "RequestSpec",
    "parse_retry_after",
]
