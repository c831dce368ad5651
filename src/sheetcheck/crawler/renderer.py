"""
Page renderers: turn a URL into HTML plus final-URL/redirect metadata.

``HttpPageRenderer`` performs a plain GET through the backoff client.
``BrowserPageRenderer`` drives a shared headless Chromium through Playwright
for storefronts that only expose their documentation block after scripts run.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol, runtime_checkable

import structlog
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from sheetcheck.errors import HttpStatusError, PageLoadError, RenderBackendError, TransportError
from sheetcheck.models import FetchedPage

from .http_client import BackoffFetchClient, RequestSpec

logger = structlog.get_logger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml"


@runtime_checkable
class PageRenderer(Protocol):
    """Anything that can render a product page."""

    async def render(self, url: str, delay_ms: int) -> FetchedPage:
        """Render *url*.

        Raises:
            PageLoadError: on navigation timeout, network failure or non-success status.
        """
        ...


class HttpPageRenderer:
    """Renders pages with a plain HTTP GET (no script execution)."""

    def __init__(self, client: BackoffFetchClient) -> None:
        self.client = client

    async def render(self, url: str, delay_ms: int) -> FetchedPage:
        spec = RequestSpec(method="GET", headers={"Accept": HTML_ACCEPT})
        try:
            response = await self.client.fetch_with_retry(url, spec, delay_ms)
        except (HttpStatusError, TransportError) as e:
            raise PageLoadError(str(e)) from e
        return FetchedPage(html=response.text, final_url=response.final_url, redirected=response.redirected)


class RenderBackend:
    """
    Process-wide headless browser handle.

    Created on first ``acquire()``; concurrent first callers share one launch.
    ``shutdown()`` releases it and may be called any number of times.
    """

    def __init__(self, headless: bool = True) -> None:
        self.headless = headless
        self._lock = asyncio.Lock()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self.launch_count = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    async def acquire(self) -> Browser:
        if self._browser is not None:
            return self._browser
        async with self._lock:
            if self._browser is None:
                self._browser = await self._launch()
        return self._browser

    async def _launch(self) -> Browser:
        try:
            self._playwright = await async_playwright().start()
            browser = await self._playwright.chromium.launch(headless=self.headless)
        except Exception as e:
            await self._stop_playwright()
            raise RenderBackendError(f"could not start headless browser: {e}") from e
        self.launch_count += 1
        logger.info("Render backend started", headless=self.headless)
        return browser

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def shutdown(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
                logger.info("Render backend stopped")
            await self._stop_playwright()

    async def __aenter__(self) -> RenderBackend:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()


class BrowserPageRenderer:
    """Renders pages in a fresh browser context of the shared backend."""

    def __init__(self, backend: RenderBackend, user_agent: str, navigation_timeout: float = 30.0) -> None:
        self.backend = backend
        self.user_agent = user_agent
        self.navigation_timeout = navigation_timeout

    async def render(self, url: str, delay_ms: int) -> FetchedPage:
        browser = await self.backend.acquire()
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

        context = await browser.new_context(user_agent=self.user_agent)
        try:
            page = await context.new_page()
            try:
                response = await page.goto(url, wait_until="load", timeout=self.navigation_timeout * 1000)
            except PlaywrightTimeout as e:
                raise PageLoadError("navigation timeout") from e
            except PlaywrightError as e:
                raise PageLoadError(str(e).splitlines()[0] if str(e) else "navigation failed") from e

            if response is None:
                raise PageLoadError("no response")
            if not response.ok:
                raise PageLoadError(f"HTTP status {response.status}")

            html = await page.content()
            return FetchedPage(
                html=html,
                final_url=page.url,
                redirected=response.request.redirected_from is not None,
            )
        finally:
            await context.close()
