"""
Exception hierarchy for sheetcheck.

Per-URL failures are caught at the validator boundary and folded into a KO
outcome. Only ``RenderBackendError`` is allowed to abort a whole batch.
"""

from __future__ import annotations

from typing import Optional


class SheetCheckError(Exception):
    """Base exception for all sheetcheck errors."""

    pass


class InputError(SheetCheckError, ValueError):
    """Raised when a candidate URL is malformed or uses an unsupported protocol."""

    pass


class CsvInputError(SheetCheckError):
    """Raised when the input CSV file cannot be used."""

    pass


class TransportError(SheetCheckError):
    """Connection failure, timeout or DNS error while talking to a server."""

    pass


class HttpStatusError(SheetCheckError):
    """A server answered with a non-success HTTP status."""

    def __init__(self, status: int, url: str, retry_after: Optional[float] = None) -> None:
        super().__init__(f"HTTP status {status}")
        self.status = status
        self.url = url
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        return self.status == 429 or 500 <= self.status <= 599


class PageLoadError(SheetCheckError):
    """The page renderer could not produce a page."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class RenderBackendError(SheetCheckError):
    """The shared render backend could not be started."""

    pass
