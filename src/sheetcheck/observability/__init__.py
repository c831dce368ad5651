"""Logging, metrics and progress reporting."""

from __future__ import annotations

from .logging import configure_logging
from .metrics import METRICS, gauge, histogram, increment
from .progress import ProgressReporter, format_duration

__all__ = [
    "METRICS",
    "ProgressReporter",
    "configure_logging",
    "format_duration",
    "gauge",
    "histogram",
    "increment",
]
