"""
Per-URL validation: render, redirect check, documentation extraction and
optional PDF verification folded into one OK/KO outcome.
"""

from __future__ import annotations

import time
from typing import List, Optional

import structlog

from sheetcheck.crawler.renderer import PageRenderer
from sheetcheck.errors import InputError, PageLoadError, RenderBackendError
from sheetcheck.extractor.documentation import DocumentationExtractor
from sheetcheck.models import RunConfiguration, ValidationOutcome
from sheetcheck.observability.metrics import gauge, histogram, increment
from sheetcheck.utils.urls import is_http_url, is_same_product_url
from sheetcheck.verifier import PdfLinkVerifier

logger = structlog.get_logger(__name__)

INVALID_URL = "invalid URL/protocol"
SECTION_MISSING = "documentation section missing (both sheets missing)"
SAFETY_SHEET = "safety sheet"
TECHNICAL_SHEET = "technical sheet"


class URLValidator:
    """
    Produces one :class:`ValidationOutcome` per URL.

    Steps run strictly in order and stop at the first disqualifying condition,
    except the two sheet checks which always both run so one pass reports every
    missing or invalid sheet.
    """

    def __init__(
        self,
        renderer: PageRenderer,
        verifier: Optional[PdfLinkVerifier],
        run_config: RunConfiguration,
        extractor: Optional[DocumentationExtractor] = None,
    ) -> None:
        if run_config.validate_pdf_links and verifier is None:
            raise ValueError("a PdfLinkVerifier is required when PDF link validation is enabled")
        self.renderer = renderer
        self.verifier = verifier
        self.run_config = run_config
        self.extractor = extractor or DocumentationExtractor()

    async def validate(self, url: str) -> ValidationOutcome:
        """Validate *url*. Only a failing render backend propagates."""
        start = time.monotonic()
        gauge("validations_in_flight", 1)
        try:
            outcome = await self._validate(url)
        except InputError as e:
            outcome = ValidationOutcome.ko(url, str(e))
        except RenderBackendError:
            raise
        except Exception as e:
            logger.error("Unexpected validation failure", url=url, error=str(e), exc_info=True)
            outcome = ValidationOutcome.ko(url, f"validation error ({e})")
        finally:
            gauge("validations_in_flight", -1)
            histogram("validation_duration_seconds", time.monotonic() - start)

        increment("outcomes_total", labels={"result": outcome.result.value})
        return outcome

    async def _validate(self, url: str) -> ValidationOutcome:
        if not is_http_url(url):
            raise InputError(INVALID_URL)

        delay_ms = self.run_config.delay_ms
        try:
            page = await self.renderer.render(url, delay_ms)
        except PageLoadError as e:
            return ValidationOutcome.ko(url, f"page load failed ({e.reason})")

        if page.redirected or not is_same_product_url(url, page.final_url):
            return ValidationOutcome.ko(url, f"redirected to {page.final_url}")

        links = await self.extractor.aextract(page.html)
        if links is None:
            return ValidationOutcome.ko(url, SECTION_MISSING)

        comments: List[str] = []
        await self._check_sheet(SAFETY_SHEET, links.safety_href, page.final_url, comments)
        await self._check_sheet(TECHNICAL_SHEET, links.technical_href, page.final_url, comments)

        if comments:
            return ValidationOutcome.ko(url, *comments)
        return ValidationOutcome.ok(url)

    async def _check_sheet(self, label: str, href: Optional[str], base_url: str, comments: List[str]) -> None:
        if not href:
            comments.append(f"{label} missing")
            return
        if not self.run_config.validate_pdf_links:
            return
        assert self.verifier is not None
        result = await self.verifier.probe(base_url, href, self.run_config.delay_ms)
        if not result.ok:
            logger.debug("Sheet link rejected", sheet=label, url=result.url, reason=result.reason)
            comments.append(f"{label} link invalid")
