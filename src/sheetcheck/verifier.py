"""
Confirms that a documentation link serves a PDF.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import structlog

from sheetcheck.crawler.http_client import BackoffFetchClient, RequestSpec
from sheetcheck.utils.urls import resolve_url

logger = structlog.get_logger(__name__)

PDF_MIME = "application/pdf"


def looks_like_pdf(content_type: str, content_disposition: str, final_url: str) -> bool:
    """Any single signal is enough: the PDF MIME type in Content-Type, the PDF
    MIME type or a ``.pdf`` name in Content-Disposition, or a final URL whose
    path ends in ``.pdf``.
    """
    if PDF_MIME in content_type.lower():
        return True
    disposition = content_disposition.lower()
    if PDF_MIME in disposition or ".pdf" in disposition:
        return True
    try:
        path = urlsplit(final_url).path
    except ValueError:
        return False
    return path.lower().endswith(".pdf")


@dataclass(frozen=True)
class PdfProbeResult:
    """Outcome of one PDF probe. ``reason`` explains a negative result."""

    ok: bool
    url: str
    status: Optional[int] = None
    reason: str = ""


class PdfLinkVerifier:
    """Issues a HEAD request against a sheet link and inspects the response."""

    def __init__(self, client: BackoffFetchClient) -> None:
        self.client = client

    async def probe(self, base_url: str, href: str, delay_ms: int) -> PdfProbeResult:
        """Probe *href* resolved against *base_url*. Never raises."""
        absolute_url = resolve_url(base_url, href)
        try:
            response = await self.client.fetch(absolute_url, RequestSpec(method="HEAD"), delay_ms)
        except Exception as e:
            logger.debug("PDF probe failed", url=absolute_url, error=str(e))
            return PdfProbeResult(ok=False, url=absolute_url, reason=str(e) or e.__class__.__name__)

        if not response.ok:
            return PdfProbeResult(
                ok=False, url=absolute_url, status=response.status, reason=f"HTTP status {response.status}"
            )

        is_pdf = looks_like_pdf(
            response.header("content-type"),
            response.header("content-disposition"),
            response.final_url or absolute_url,
        )
        return PdfProbeResult(
            ok=is_pdf,
            url=absolute_url,
            status=response.status,
            reason="" if is_pdf else "not a PDF",
        )

    async def is_valid_pdf(self, base_url: str, href: str, delay_ms: int) -> bool:
        return (await self.probe(base_url, href, delay_ms)).ok
