"""Per-call timing and op counters for shape generation.

Nothing is recorded unless a :class:`MetricsTracker` is activated with
:func:`use_tracker`; the tracker is context-local, so concurrent callers in
different threads or tasks never share one by accident.
"""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from time import perf_counter
from typing import Dict, Iterator, Optional


_ACTIVE_TRACKER: ContextVar[Optional["MetricsTracker"]] = ContextVar(
    "roughsketch_active_tracker", default=None
)


@dataclass
class MetricsTracker:
    timings: Dict[str, float] = field(default_factory=dict)
    calls: Dict[str, int] = field(default_factory=dict)
    counters: Dict[str, float] = field(default_factory=dict)

    def add_time(self, key: str, duration: float) -> None:
        if duration < 0.0:
            return
        self.timings[key] = self.timings.get(key, 0.0) + duration
        self.calls[key] = self.calls.get(key, 0) + 1

    def increment(self, key: str, value: float = 1.0) -> None:
        self.counters[key] = self.counters.get(key, 0.0) + value

    def get_time(self, key: str) -> float:
        return self.timings.get(key, 0.0)

    def get_count(self, key: str) -> float:
        return self.counters.get(key, 0.0)

    def mean_time(self, key: str) -> float:
        n = self.calls.get(key, 0)
        return self.timings.get(key, 0.0) / n if n else 0.0

    def merge(self, other: "MetricsTracker") -> None:
        """Fold *other* into this tracker, e.g. after a worker finishes."""

        for key, duration in other.timings.items():
            self.timings[key] = self.timings.get(key, 0.0) + duration
        for key, n in other.calls.items():
            self.calls[key] = self.calls.get(key, 0) + n
        for key, value in other.counters.items():
            self.increment(key, value)

    def summary(self) -> str:
        lines = ["=== roughsketch metrics ==="]
        for key in sorted(self.timings):
            lines.append(
                f"{key:30s} {self.timings[key] * 1000:8.2f} ms  ({self.calls.get(key, 0)} calls)"
            )
        for key in sorted(self.counters):
            lines.append(f"{key:30s} {self.counters[key]:8.0f}")
        return "\n".join(lines)


def get_tracker() -> Optional[MetricsTracker]:
    return _ACTIVE_TRACKER.get()


@contextmanager
def use_tracker(tracker: MetricsTracker) -> Iterator[MetricsTracker]:
    token = _ACTIVE_TRACKER.set(tracker)
    try:
        yield tracker
    finally:
        _ACTIVE_TRACKER.reset(token)


def count(key: str, value: float = 1.0) -> None:
    """Bump counter *key* on the active tracker, if there is one."""

    tracker = get_tracker()
    if tracker is not None:
        tracker.increment(key, value)


class Timer(AbstractContextManager):
    """Time a block and report it to a tracker and/or a logger.

    The explicit *tracker* wins over the context-local one. The log record is
    emitted at *level* (debug by default) as ``"<key> took <ms> ms"``.
    """

    def __init__(
        self,
        key: str,
        *,
        tracker: Optional[MetricsTracker] = None,
        logger: Optional[logging.Logger] = None,
        level: int = logging.DEBUG,
    ) -> None:
        self.key = key
        self.duration = 0.0
        self._tracker = tracker
        self._logger = logger
        self._level = level
        self._started: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._started = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._started is None:
            return None
        self.duration = perf_counter() - self._started
        tracker = self._tracker if self._tracker is not None else get_tracker()
        if tracker is not None:
            tracker.add_time(self.key, self.duration)
        if self._logger is not None and self._logger.isEnabledFor(self._level):
            self._logger.log(self._level, "%s took %.2f ms", self.key, self.duration * 1000.0)
        return None


__all__ = ["MetricsTracker", "Timer", "count", "get_tracker", "use_tracker"]
