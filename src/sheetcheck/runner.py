"""
Batch orchestration: wires the network layer, validator and scheduler
together for one run and guarantees every resource is released.
"""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, Optional
from uuid import uuid4

import structlog

from sheetcheck.config.config import Config
from sheetcheck.crawler.http_client import BackoffFetchClient
from sheetcheck.crawler.renderer import BrowserPageRenderer, HttpPageRenderer, PageRenderer, RenderBackend
from sheetcheck.models import ValidationOutcome, Verdict
from sheetcheck.scheduler import OutcomeCallback, WorkerPoolScheduler
from sheetcheck.validator import URLValidator
from sheetcheck.verifier import PdfLinkVerifier

logger = structlog.get_logger(__name__)

VALIDATION_UNAVAILABLE = "validation unavailable"


@asynccontextmanager
async def validation_session(
    config: Config,
    *,
    client: Optional[BackoffFetchClient] = None,
    renderer: Optional[PageRenderer] = None,
) -> AsyncIterator[URLValidator]:
    """Yield a ready :class:`URLValidator`; owned resources close on exit.

    A supplied *client* or *renderer* is used as-is and left open.
    """
    run_config = config.run_configuration()
    async with AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(BackoffFetchClient(config.fetch))

        if renderer is None:
            if config.validation.renderer == "browser":
                backend = await stack.enter_async_context(RenderBackend())
                renderer = BrowserPageRenderer(
                    backend,
                    user_agent=config.fetch.user_agent,
                    navigation_timeout=config.validation.navigation_timeout,
                )
            else:
                renderer = HttpPageRenderer(client)

        verifier = PdfLinkVerifier(client) if run_config.validate_pdf_links else None
        yield URLValidator(renderer, verifier, run_config)


def order_outcomes(urls: Iterable[str], results: Dict[str, ValidationOutcome]) -> List[ValidationOutcome]:
    """Re-join *results* against the input order, one outcome per distinct URL."""
    ordered: List[ValidationOutcome] = []
    for url in dict.fromkeys(urls):
        outcome = results.get(url)
        if outcome is None:
            logger.warning("No outcome recorded for URL", url=url)
            outcome = ValidationOutcome.ko(url, VALIDATION_UNAVAILABLE)
        ordered.append(outcome)
    return ordered


async def run_batch(
    urls: Iterable[str],
    config: Config,
    on_outcome: Optional[OutcomeCallback] = None,
    *,
    client: Optional[BackoffFetchClient] = None,
    renderer: Optional[PageRenderer] = None,
) -> List[ValidationOutcome]:
    """Validate every URL and return the outcomes in input order."""
    url_list = list(dict.fromkeys(urls))
    run_config = config.run_configuration()
    structlog.contextvars.bind_contextvars(run_id=uuid4().hex[:12])
    try:
        logger.info(
            "Batch started",
            urls=len(url_list),
            concurrency=run_config.concurrency,
            validate_pdf_links=run_config.validate_pdf_links,
            delay_ms=run_config.delay_ms,
            renderer=config.validation.renderer if renderer is None else type(renderer).__name__,
        )
        if not url_list:
            return []

        async with validation_session(config, client=client, renderer=renderer) as validator:
            scheduler = WorkerPoolScheduler(run_config.concurrency)
            results = await scheduler.run(url_list, validator.validate, on_outcome)

        outcomes = order_outcomes(url_list, results)
        logger.info(
            "Batch finished",
            ok=sum(1 for o in outcomes if o.result is Verdict.OK),
            ko=sum(1 for o in outcomes if o.result is Verdict.KO),
        )
        return outcomes
    finally:
        structlog.contextvars.unbind_contextvars("run_id")
