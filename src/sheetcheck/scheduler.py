"""
Bounded worker pool that runs the per-URL validator over a whole batch.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple

import structlog

from sheetcheck.models import ValidationOutcome

logger = structlog.get_logger(__name__)

PerUrlTask = Callable[[str], Awaitable[ValidationOutcome]]
OutcomeCallback = Callable[[ValidationOutcome], None]


class BatchState:
    """
    Shared cursor and result map owned by one scheduler run.

    Workers only ``claim()`` the next URL and ``record()`` their own outcome.
    ``claim()`` never awaits, so on the event loop the read and the increment
    happen as one step and each index goes to exactly one worker.
    """

    def __init__(self, urls: Iterable[str]) -> None:
        self.urls: Tuple[str, ...] = tuple(dict.fromkeys(urls))
        self._cursor = 0
        self._results: Dict[str, ValidationOutcome] = {}

    def claim(self) -> Optional[str]:
        if self._cursor >= len(self.urls):
            return None
        url = self.urls[self._cursor]
        self._cursor += 1
        return url

    def record(self, url: str, outcome: ValidationOutcome) -> None:
        if url in self._results:
            raise RuntimeError(f"URL processed twice: {url}")
        self._results[url] = outcome

    @property
    def completed(self) -> int:
        return len(self._results)

    def snapshot(self) -> Dict[str, ValidationOutcome]:
        return dict(self._results)


class WorkerPoolScheduler:
    """
    Runs *task* over every URL with at most ``concurrency`` in flight.

    Workers pull from one shared cursor, so a slow page never holds back idle
    workers. ``on_outcome`` is called synchronously in completion order; it
    may do bounded synchronous I/O but must not block indefinitely. A callback
    that raises is logged and the batch carries on.
    """

    def __init__(self, concurrency: int = 8) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency

    async def run(
        self,
        urls: Iterable[str],
        task: PerUrlTask,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> Dict[str, ValidationOutcome]:
        """Return a mapping of every input URL to its outcome."""
        state = BatchState(urls)
        if not state.urls:
            return {}

        worker_count = min(self.concurrency, len(state.urls))
        logger.info("Starting worker pool", urls=len(state.urls), workers=worker_count)

        try:
            async with asyncio.TaskGroup() as tg:
                for i in range(worker_count):
                    tg.create_task(self._worker(f"worker-{i}", state, task, on_outcome))
        except ExceptionGroup as eg:
            first = eg.exceptions[0]
            logger.error(
                "Worker pool aborted",
                error=str(first),
                failures=len(eg.exceptions),
                completed=state.completed,
            )
            raise first

        logger.info("Worker pool finished", completed=state.completed)
        return state.snapshot()

    async def _worker(
        self,
        worker_id: str,
        state: BatchState,
        task: PerUrlTask,
        on_outcome: Optional[OutcomeCallback],
    ) -> None:
        while True:
            url = state.claim()
            if url is None:
                break
            outcome = await task(url)
            state.record(url, outcome)
            logger.debug("Outcome recorded", worker_id=worker_id, url=url, result=outcome.result.value)
            if on_outcome is not None:
                try:
                    on_outcome(outcome)
                except Exception as e:
                    logger.warning("Outcome callback failed", worker_id=worker_id, url=url, error=str(e), exc_info=True)
