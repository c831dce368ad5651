"""
Tests for the page renderers and the shared render backend.

Playwright is replaced by mocks; no browser is launched.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest
from aioresponses import aioresponses
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout
from sheetcheck.crawler.renderer import (
    BrowserPageRenderer,
    HttpPageRenderer,
    PageRenderer,
    RenderBackend,
)
from sheetcheck.errors import PageLoadError, RenderBackendError

URL = "https://shop.example/products/a"


def fake_playwright(launch_delay=0.01, launch_error=None):
    """Build a patched ``async_playwright`` factory and the browser it launches."""
    browser = MagicMock(name="browser")
    browser.close = AsyncMock()

    async def launch(**kwargs):
        await asyncio.sleep(launch_delay)
        if launch_error is not None:
            raise launch_error
        return browser

    playwright = MagicMock(name="playwright")
    playwright.chromium.launch = AsyncMock(side_effect=launch)
    playwright.stop = AsyncMock()

    factory = MagicMock(name="async_playwright")
    factory.return_value.start = AsyncMock(return_value=playwright)
    return factory, playwright, browser


def fake_page(url=URL, final_url=None, status=200, redirected_from=None, goto_error=None, response=True):
    page = MagicMock(name="page")
    page.url = final_url or url
    page.content = AsyncMock(return_value="<html><body>rendered</body></html>")
    if goto_error is not None:
        page.goto = AsyncMock(side_effect=goto_error)
    elif not response:
        page.goto = AsyncMock(return_value=None)
    else:
        resp = MagicMock(name="response")
        resp.status = status
        resp.ok = 200 <= status < 300
        resp.request.redirected_from = redirected_from
        page.goto = AsyncMock(return_value=resp)

    context = MagicMock(name="context")
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock(name="browser")
    browser.new_context = AsyncMock(return_value=context)

    backend = RenderBackend()
    backend.acquire = AsyncMock(return_value=browser)
    return backend, browser, context, page


@pytest.mark.unit
class TestHttpPageRenderer:
    def test_satisfies_renderer_protocol(self):
        assert isinstance(HttpPageRenderer(MagicMock()), PageRenderer)
        assert isinstance(BrowserPageRenderer(RenderBackend(), "TestBot/1.0"), PageRenderer)

    @pytest.mark.asyncio
    async def test_renders_html(self, http_client):
        html = "<html><body>Product</body></html>"
        with aioresponses() as m:
            m.get(URL, status=200, body=html, content_type="text/html")

            page = await HttpPageRenderer(http_client).render(URL, 1)

        assert page.html == html
        assert page.final_url == URL
        assert page.redirected is False

    @pytest.mark.asyncio
    async def test_follows_redirect_and_flags_it(self, http_client):
        home = "https://shop.example/"
        with aioresponses() as m:
            m.get(URL, status=301, headers={"Location": home})
            m.get(home, status=200, body="<html>home</html>", content_type="text/html")

            page = await HttpPageRenderer(http_client).render(URL, 1)

        assert page.final_url == home
        assert page.redirected is True

    @pytest.mark.asyncio
    async def test_status_error_becomes_page_load_error(self, http_client):
        with aioresponses() as m:
            m.get(URL, status=404)

            with pytest.raises(PageLoadError) as exc_info:
                await HttpPageRenderer(http_client).render(URL, 1)

        assert exc_info.value.reason == "HTTP status 404"

    @pytest.mark.asyncio
    async def test_timeouts_reported_as_timeout(self, http_client, deterministic_jitter):
        with aioresponses() as m:
            m.get(URL, exception=asyncio.TimeoutError(), repeat=True)

            with pytest.raises(PageLoadError) as exc_info:
                await HttpPageRenderer(http_client).render(URL, 1)

        assert exc_info.value.reason == "timeout"

    @pytest.mark.asyncio
    async def test_exhausted_transport_retries_become_page_load_error(self, http_client, deterministic_jitter):
        with aioresponses() as m:
            m.get(URL, exception=aiohttp.ClientConnectionError("connection refused"), repeat=True)

            with pytest.raises(PageLoadError, match="connection refused"):
                await HttpPageRenderer(http_client).render(URL, 1)


@pytest.mark.unit
class TestRenderBackend:
    @pytest.mark.asyncio
    async def test_concurrent_acquire_launches_once(self):
        factory, playwright, browser = fake_playwright()
        backend = RenderBackend()

        with patch("sheetcheck.crawler.renderer.async_playwright", factory):
            handles = await asyncio.gather(*(backend.acquire() for _ in range(16)))

        assert all(h is browser for h in handles)
        assert backend.launch_count == 1
        assert playwright.chromium.launch.await_count == 1
        assert backend.is_running

    @pytest.mark.asyncio
    async def test_launch_failure_raises_backend_error(self):
        factory, playwright, _ = fake_playwright(launch_error=RuntimeError("missing executable"))
        backend = RenderBackend()

        with patch("sheetcheck.crawler.renderer.async_playwright", factory):
            with pytest.raises(RenderBackendError, match="missing executable"):
                await backend.acquire()

        playwright.stop.assert_awaited_once()
        assert not backend.is_running

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self):
        factory, playwright, browser = fake_playwright()

        with patch("sheetcheck.crawler.renderer.async_playwright", factory):
            async with RenderBackend() as backend:
                await backend.acquire()
            await backend.shutdown()

        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()
        assert not backend.is_running

    @pytest.mark.asyncio
    async def test_shutdown_without_launch(self):
        await RenderBackend().shutdown()


@pytest.mark.unit
class TestBrowserPageRenderer:
    @pytest.mark.asyncio
    async def test_renders_loaded_page(self):
        backend, browser, context, page = fake_page()

        result = await BrowserPageRenderer(backend, "TestBot/1.0", navigation_timeout=5).render(URL, 0)

        assert result.html == "<html><body>rendered</body></html>"
        assert result.final_url == URL
        assert result.redirected is False
        browser.new_context.assert_awaited_once_with(user_agent="TestBot/1.0")
        page.goto.assert_awaited_once_with(URL, wait_until="load", timeout=5000)
        context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redirect_chain_sets_flag(self):
        backend, _, _, _ = fake_page(final_url="https://shop.example/", redirected_from=MagicMock())

        result = await BrowserPageRenderer(backend, "TestBot/1.0").render(URL, 0)

        assert result.redirected is True
        assert result.final_url == "https://shop.example/"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs,reason",
        [
            ({"goto_error": PlaywrightTimeout("Timeout 30000ms exceeded.")}, "navigation timeout"),
            ({"goto_error": PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://x\nCall log:")}, "net::ERR_NAME_NOT_RESOLVED at https://x"),
            ({"status": 503}, "HTTP status 503"),
            ({"response": False}, "no response"),
        ],
    )
    async def test_failures_become_page_load_errors(self, kwargs, reason):
        backend, _, context, _ = fake_page(**kwargs)

        with pytest.raises(PageLoadError) as exc_info:
            await BrowserPageRenderer(backend, "TestBot/1.0").render(URL, 0)

        assert exc_info.value.reason == reason
        context.close.assert_awaited_once()
