"""
Prometheus collectors for the scraping core.

Nothing here starts an exporter; the host process decides how the default
registry is exposed.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _PromCounter
from prometheus_client import Histogram as _PromHistogram


def _reuse_or_register(metric_cls):
    """Collector factory that hands back an already registered collector of the same name."""

    def create(name: str, documentation: str, *args, **kwargs):
        collector = _PROM_REGISTRY._names_to_collectors.get(name)
        if collector is None:
            try:
                collector = metric_cls(name, documentation, *args, **kwargs)
            except ValueError:
                # Registered concurrently
                collector = _PROM_REGISTRY._names_to_collectors[name]
        return collector

    return create


Counter = _reuse_or_register(_PromCounter)
Histogram = _reuse_or_register(_PromHistogram)

METRICS: Dict[str, Any] = {
    "scrapes": Counter(
        "vaultscrape_scrapes_total",
        "Scrape attempts by producing strategy and outcome",
        ["strategy", "outcome"],
    ),
    "cache_requests": Counter(
        "vaultscrape_cache_requests_total",
        "Result cache lookups",
        ["result"],
    ),
    "retry_attempts": Counter(
        "vaultscrape_retry_attempts_total",
        "Failed attempts seen by the retry controller",
    ),
    "scrape_duration": Histogram(
        "vaultscrape_scrape_duration_seconds",
        "Wall time of a scrape from cache miss to record",
        buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    ),
}
