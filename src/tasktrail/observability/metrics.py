"""In-process metrics for TaskTrail.

Names are dotted strings, e.g. ``tasks.updated`` or
``activity.labels.details``. Values live for the lifetime of the process.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
from typing import Any, Iterator


@dataclass
class Counter:
    value: int = 0


@dataclass
class Histogram:
    count: int = 0
    total: float = 0.0
    minimum: float | None = None
    maximum: float | None = None

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.minimum = value if self.minimum is None else min(self.minimum, value)
        self.maximum = value if self.maximum is None else max(self.maximum, value)

    def as_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "min": self.minimum,
            "max": self.maximum,
            "avg": self.total / self.count if self.count else 0.0,
        }


class MetricsRegistry:
    """Counters and duration histograms behind a single lock."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}

    def inc_counter(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counters.setdefault(name, Counter()).value += amount

    def counter_value(self, name: str) -> int:
        with self._lock:
            counter = self._counters.get(name)
            return counter.value if counter else 0

    def observe(self, name: str, value: float) -> None:
        with self._lock:
            self._histograms.setdefault(name, Histogram()).add(value)

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        """Record the block's wall time in milliseconds under ``name``."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.observe(name, (time.perf_counter() - start) * 1000.0)

    def histogram(self, name: str) -> dict[str, Any] | None:
        with self._lock:
            hist = self._histograms.get(name)
            return hist.as_dict() if hist else None

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": {name: c.value for name, c in self._counters.items()},
                "histograms": {name: h.as_dict() for name, h in self._histograms.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


metrics = MetricsRegistry()
