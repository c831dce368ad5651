"""
HTTP client with a politeness delay and exponential-backoff retries.
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp
import structlog

from sheetcheck.config.config import FetchConfig
from sheetcheck.errors import HttpStatusError, TransportError
from sheetcheck.observability.metrics import increment

logger = structlog.get_logger(__name__)


@dataclass
class RequestSpec:
    """Method, extra headers and redirect policy of one request."""

    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    allow_redirects: bool = True


@dataclass
class FetchResponse:
    """Response from the fetch client. Header names are lowercased."""

    status: int
    headers: Dict[str, str]
    body: bytes
    url: str
    final_url: str
    redirected: bool
    attempts: int = 1
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Return the ``Retry-After`` delay in seconds, or None if absent or not numeric."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class BackoffFetchClient:
    """
    aiohttp-based client used for page fetches and PDF probes.

    ``fetch`` performs a single attempt and returns whatever status the server
    sent. ``fetch_with_retry`` retries 429, 5xx and transport failures with
    ``base * 2^(k-1)`` waits plus up to ``jitter_ratio`` of random jitter.
    """

    def __init__(self, config: FetchConfig, session: Optional[aiohttp.ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def initialize(self) -> None:
        """Initialize the HTTP client session."""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self.session = aiohttp.ClientSession(timeout=timeout, headers={"User-Agent": self.config.user_agent})
            self._owns_session = True
            logger.debug("HTTP client session initialized", user_agent=self.config.user_agent)

    async def close(self) -> None:
        """Close the HTTP client session if this client created it."""
        if self.session is not None and self._owns_session:
            await self.session.close()
        self.session = None

    async def __aenter__(self) -> BackoffFetchClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _pause(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def compute_backoff(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Seconds to wait after failed *attempt* (1-indexed)."""
        if retry_after is not None:
            base_ms = retry_after * 1000
        else:
            base_ms = self.config.base_backoff_ms * 2 ** (attempt - 1)
        jitter_ms = random.uniform(0, self.config.jitter_ratio * base_ms)
        return (base_ms + jitter_ms) / 1000

    async def fetch(
        self,
        url: str,
        spec: Optional[RequestSpec] = None,
        delay_ms: Optional[int] = None,
    ) -> FetchResponse:
        """Perform one request after the politeness delay.

        Raises:
            TransportError: on connection failures and timeouts.
        """
        if self.session is None:
            raise RuntimeError("HTTP client not initialized. Call initialize() first.")

        spec = spec or RequestSpec()
        delay = self.config.delay_ms if delay_ms is None else delay_ms
        if delay > 0:
            await self._pause(delay / 1000)

        headers = {"User-Agent": self.config.user_agent, **spec.headers}
        start = time.monotonic()
        try:
            async with self.session.request(
                spec.method,
                url,
                headers=headers,
                allow_redirects=spec.allow_redirects,
            ) as response:
                body = b"" if spec.method.upper() == "HEAD" else await response.read()
                return FetchResponse(
                    status=response.status,
                    headers={k.lower(): v for k, v in response.headers.items()},
                    body=body,
                    url=url,
                    final_url=str(response.url),
                    redirected=bool(response.history),
                    elapsed=time.monotonic() - start,
                )
        except asyncio.TimeoutError as e:
            raise TransportError("timeout") from e
        except aiohttp.InvalidURL as e:
            raise TransportError(f"invalid URL {url}") from e
        except aiohttp.ClientError as e:
            raise TransportError(str(e) or e.__class__.__name__) from e

    async def fetch_with_retry(
        self,
        url: str,
        spec: Optional[RequestSpec] = None,
        delay_ms: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ) -> FetchResponse:
        """Fetch *url*, retrying transient failures.

        Returns the first successful (2xx) response.

        Raises:
            HttpStatusError: immediately on a non-retryable status, or the last
                retryable one once attempts are exhausted.
            TransportError: the last transport failure once attempts are exhausted.
        """
        attempts = max_attempts or self.config.max_attempts
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            retry_after: Optional[float] = None
            try:
                response = await self.fetch(url, spec, delay_ms)
            except TransportError as e:
                last_error = e
            else:
                if response.ok:
                    increment("fetch_attempts_total", labels={"outcome": "ok"})
                    response.attempts = attempt
                    return response
                retry_after = parse_retry_after(response.header("retry-after"))
                error = HttpStatusError(response.status, url, retry_after=retry_after)
                if not error.retryable:
                    increment("fetch_attempts_total", labels={"outcome": "error"})
                    raise error
                last_error = error

            if attempt == attempts:
                break

            increment("fetch_attempts_total", labels={"outcome": "retry"})
            wait = self.compute_backoff(attempt, retry_after)
            logger.info(
                "Retrying request",
                url=url,
                attempt=attempt,
                max_attempts=attempts,
                error=str(last_error),
                wait=round(wait, 3),
            )
            await self._pause(wait)

        increment("fetch_attempts_total", labels={"outcome": "error"})
        logger.warning("Retries exhausted", url=url, attempts=attempts, error=str(last_error))
        assert last_error is not None
        raise last_error
