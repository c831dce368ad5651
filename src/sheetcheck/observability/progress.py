"""
Periodic progress reporting for long batch runs.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


def format_duration(seconds: float) -> str:
    """Format *seconds* as ``MM:SS`` or ``HH:MM:SS`` when an hour or more."""
    total_seconds = max(0, round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class ProgressReporter:
    """Logs ``processed/total`` with an ETA every *interval* seconds."""

    def __init__(self, total: int, interval: float = 10.0) -> None:
        self.total = total
        self.interval = interval
        self.processed = 0
        self._start = time.monotonic()
        self._task: Optional[asyncio.Task[None]] = None
        self._finished = False

    def start(self) -> None:
        self._start = time.monotonic()
        self._task = asyncio.create_task(self._loop())

    def on_processed(self) -> None:
        self.processed += 1

    def snapshot(self) -> dict:
        elapsed = time.monotonic() - self._start
        percentage = 100.0 if self.total == 0 else min(100.0, self.processed / self.total * 100)
        if self.processed == 0:
            remaining = "undetermined"
        else:
            remaining = format_duration(elapsed / self.processed * (self.total - self.processed))
        return {
            "processed": self.processed,
            "total": self.total,
            "percentage": round(percentage, 1),
            "elapsed": format_duration(elapsed),
            "remaining": remaining,
        }

    async def _loop(self) -> None:
        while not self._finished:
            await asyncio.sleep(self.interval)
            if self._finished:
                break
            state = self.snapshot()
            logger.info(
                f"[progress] {state['processed']}/{state['total']} ({state['percentage']:.1f}%)",
                elapsed=state["elapsed"],
                remaining=state["remaining"],
            )

    async def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        state = self.snapshot()
        logger.info(
            f"[progress] {state['processed']}/{state['total']} ({state['percentage']:.1f}%)",
            total_time=state["elapsed"],
        )
