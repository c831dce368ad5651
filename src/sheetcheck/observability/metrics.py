"""
Defines Prometheus metrics for validation runs.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Gauge as _OrigGauge
from prometheus_client import Histogram as _OrigHistogram


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        # Counters register under the bare name and its ``_total`` sample name.
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race, fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Gauge = _duplicate_safe_factory(_OrigGauge)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "outcomes_total": Counter(
            "sheetcheck_outcomes",
            "Validation outcomes by verdict",
            ["result"],
        ),
        "fetch_attempts_total": Counter(
            "sheetcheck_fetch_attempts",
            "HTTP attempts made by the fetch client by outcome",
            ["outcome"],
        ),
        "validations_in_flight": Gauge(
            "sheetcheck_validations_in_flight",
            "Number of URLs currently being validated",
        ),
        "validation_duration_seconds": Histogram(
            "sheetcheck_validation_duration_seconds",
            "Time taken to validate one URL",
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


def increment(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    """Increment a counter metric."""
    if name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).inc(value)
        else:
            metric.inc(value)


def gauge(name: str, delta: float) -> None:
    """Move a gauge metric by *delta*."""
    if name in METRICS:
        METRICS[name].inc(delta)


def histogram(name: str, value: float, labels: Optional[Dict[str, Any]] = None) -> None:
    """Observe a histogram metric."""
    if name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).observe(value)
        else:
            metric.observe(value)
