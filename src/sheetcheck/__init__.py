"""
sheetcheck - verifies that product pages link their safety and technical data sheets.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .models import FetchedPage, RunConfiguration, ValidationOutcome, Verdict
from .runner import run_batch
from .scheduler import WorkerPoolScheduler
from .validator import URLValidator

__all__ = [
    "__version__",
    "Config",
    "FetchedPage",
    "RunConfiguration",
    "URLValidator",
    "ValidationOutcome",
    "Verdict",
    "WorkerPoolScheduler",
    "run_batch",
]
