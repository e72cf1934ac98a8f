"""Metrics collection for observability.

This module provides in-process metrics for a stack-focus run:
- Sample counters (processed, matched)
- Regex cache statistics
- Aggregation pass duration

Metrics are Prometheus-style but only exported as a dictionary.
"""

from __future__ import annotations

import time
from collections import defaultdict
from threading import Lock
from typing import Any


class Counter:
    """A monotonically increasing counter.

    Example:
        counter = Counter("samples_processed", "Total samples processed")
        counter.inc()  # Increment by 1
        counter.inc(5)  # Increment by 5
        counter.inc(labels={"scope": "matched"})  # With labels
    """

    def __init__(self, name: str, help_text: str = "") -> None:
        self.name = name
        self.help_text = help_text
        self._values: dict[tuple[tuple[str, str], ...], float] = defaultdict(float)
        self._lock = Lock()

    def inc(self, value: float = 1, labels: dict[str, str] | None = None) -> None:
        """Increment the counter.

        Args:
            value: Amount to increment (default 1)
            labels: Optional labels for this observation
        """
        if value < 0:
            raise ValueError("Counter can only increase")

        label_key = tuple(sorted(labels.items())) if labels else ()
        with self._lock:
            self._values[label_key] += value

    def get(self, labels: dict[str, str] | None = None) -> float:
        """Get current counter value."""
        label_key = tuple(sorted(labels.items())) if labels else ()
        with self._lock:
            return self._values.get(label_key, 0)

class Histogram:
    """A histogram metric for tracking value distributions.

    Example:
        histogram = Histogram("aggregation_duration_seconds", "Pass duration")
        histogram.observe(0.5)
    """

    def __init__(self, name: str, help_text: str = "") -> None:
        self.name = name
        self.help_text = help_text
        self._observations: dict[tuple[tuple[str, str], ...], list[float]] = defaultdict(list)
        self._lock = Lock()

    def observe(self, value: float, labels: dict[str, str] | None = None) -> None:
        """Record an observation."""
        label_key = tuple(sorted(labels.items())) if labels else ()
        with self._lock:
            self._observations[label_key].append(value)

    def get_stats(self, labels: dict[str, str] | None = None) -> dict[str, float]:
        """Get histogram statistics.

        Returns:
            Dictionary with count, sum, min, max, mean
        """
        label_key = tuple(sorted(labels.items())) if labels else ()
        with self._lock:
            values = list(self._observations.get(label_key, []))

        if not values:
            return {"count": 0, "sum": 0, "min": 0, "max": 0, "mean": 0}

        return {
            "count": len(values),
            "sum": sum(values),
            "min": min(values),
            "max": max(values),
            "mean": sum(values) / len(values),
        }

    def get_all_stats(self) -> dict[str, dict[str, float]]:
        """Get statistics for every recorded label set.

        Keys are rendered as "k=v" pairs joined by commas; an unlabelled
        series is keyed by the empty string.
        """
        with self._lock:
            label_keys = list(self._observations)
        return {
            ",".join(f"{k}={v}" for k, v in label_key): self.get_stats(dict(label_key))
            for label_key in label_keys
        }


class MetricsRegistry:
    """Registry for all run metrics.

    This is a singleton that holds all metrics.

    Example:
        registry = MetricsRegistry.get_instance()
        registry.samples_processed.inc()
        metrics = registry.get_all_metrics()
    """

    _instance: MetricsRegistry | None = None
    _lock = Lock()

    def __init__(self) -> None:
        self.samples_processed = Counter(
            "stack_focus_samples_processed_total",
            "Total samples fed through the matcher",
        )
        self.samples_matched = Counter(
            "stack_focus_samples_matched_total",
            "Total samples matched by the query",
        )
        self.regex_cache_hits = Counter(
            "stack_focus_regex_cache_hits_total",
            "Regex compilations served from the cache",
        )
        self.regex_cache_misses = Counter(
            "stack_focus_regex_cache_misses_total",
            "Regex compilations that missed the cache",
        )
        self.aggregation_duration = Histogram(
            "stack_focus_aggregation_duration_seconds",
            "Aggregation pass duration in seconds",
        )

    @classmethod
    def get_instance(cls) -> MetricsRegistry:
        """Get the singleton metrics registry instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next access starts from zero."""
        with cls._lock:
            cls._instance = None

    def get_all_metrics(self) -> dict[str, Any]:
        """Get all metrics as a dictionary."""
        return {
            "samples": {
                "processed": self.samples_processed.get(),
                "matched": self.samples_matched.get(),
            },
            "regex_cache": {
                "hits": self.regex_cache_hits.get(),
                "misses": self.regex_cache_misses.get(),
            },
            "aggregation": {
                "duration_stats": self.aggregation_duration.get_all_stats(),
            },
        }


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    return MetricsRegistry.get_instance()


class Timer:
    """Context manager for timing operations.

    Example:
        with Timer(metrics.aggregation_duration, labels={"mode": "serial"}):
            aggregator.run(samples)
    """

    def __init__(
        self,
        histogram: Histogram,
        labels: dict[str, str] | None = None,
    ) -> None:
        self._histogram = histogram
        self._labels = labels
        self._start: float | None = None
        self.elapsed: float = 0.0

    def __enter__(self) -> Timer:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        if self._start is not None:
            self.elapsed = time.perf_counter() - self._start
            self._histogram.observe(self.elapsed, labels=self._labels)
