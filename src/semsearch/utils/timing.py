"""Latency tracking for backend calls and pipeline stages."""

from __future__ import annotations

import functools
import inspect
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from semsearch.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class TimingStat:
    """Statistics for a timed operation."""

    count: int = 0
    total_ms: float = 0.0
    min_ms: float = float("inf")
    max_ms: float = 0.0
    timings: List[float] = field(default_factory=list)

    def add(self, duration_ms: float) -> None:
        """Add a timing measurement."""
        self.count += 1
        self.total_ms += duration_ms
        self.min_ms = min(self.min_ms, duration_ms)
        self.max_ms = max(self.max_ms, duration_ms)
        self.timings.append(duration_ms)

    @property
    def mean_ms(self) -> float:
        return self.total_ms / self.count if self.count > 0 else 0.0

    def percentile(self, p: float) -> float:
        """Calculate percentile (p in [0, 100])."""
        if not self.timings:
            return 0.0
        sorted_timings = sorted(self.timings)
        idx = min(int(len(sorted_timings) * p / 100), len(sorted_timings) - 1)
        return sorted_timings[idx]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "count": self.count,
            "mean_ms": round(self.mean_ms, 3),
            "min_ms": round(self.min_ms, 3) if self.min_ms != float("inf") else 0.0,
            "max_ms": round(self.max_ms, 3),
            "p50_ms": round(self.percentile(50), 3),
            "p95_ms": round(self.percentile(95), 3),
        }


class LatencyTracker:
    """Thread-safe tracker for latency metrics across components."""

    def __init__(self, window_size: Optional[int] = None):
        """
        Initialize latency tracker.

        Args:
            window_size: Maximum number of timings to keep per operation.
                        If None, keeps all timings.
        """
        self._stats: Dict[str, TimingStat] = defaultdict(TimingStat)
        self._lock = Lock()
        self._window_size = window_size

    def record(self, operation: str, duration_ms: float) -> None:
        """
        Record a timing measurement.

        Args:
            operation: Name of the operation (e.g., "backend.search_semantic")
            duration_ms: Duration in milliseconds
        """
        with self._lock:
            stat = self._stats[operation]
            stat.add(duration_ms)

            if self._window_size and len(stat.timings) > self._window_size:
                stat.timings = stat.timings[-self._window_size :]

    def get_stats(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """
        Get statistics for operation(s).

        Args:
            operation: Specific operation name, or None for all operations

        Returns:
            Dictionary of statistics
        """
        with self._lock:
            if operation:
                return {operation: self._stats[operation].to_dict()}
            return {op: stat.to_dict() for op, stat in self._stats.items()}

    def reset(self) -> None:
        """Reset all statistics."""
        with self._lock:
            self._stats.clear()


_global_tracker = LatencyTracker(window_size=10000)


def get_latency_tracker() -> LatencyTracker:
    """Get the global latency tracker instance."""
    return _global_tracker


def _finish(op_name: str, start_time: float, log_level: str) -> None:
    duration_ms = (time.perf_counter() - start_time) * 1000
    _global_tracker.record(op_name, duration_ms)
    log_fn = getattr(logger, log_level, logger.debug)
    log_fn(f"{op_name} completed in {duration_ms:.3f}ms")


@contextmanager
def TimingContext(operation: str, log_level: str = "debug"):
    """
    Context manager for timing a block of code.

    Example:
        with TimingContext("consolidate"):
            results = consolidate(raw, mode)

    Args:
        operation: Name of the operation being timed
        log_level: Logging level for the timing message
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        _finish(operation, start_time, log_level)


def timed(operation: Optional[str] = None, log_level: str = "debug"):
    """
    Decorator for timing function execution.

    Works for both plain functions and coroutine functions; for coroutines
    the time spent awaiting is included.

    Example:
        @timed("backend.search_text")
        async def search_text(...):
            ...

    Args:
        operation: Name of the operation (defaults to function name)
        log_level: Logging level for the timing message
    """

    def decorator(func: Callable) -> Callable:
        op_name = operation or f"{func.__module__}.{func.__qualname__}"

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    _finish(op_name, start_time, log_level)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                _finish(op_name, start_time, log_level)

        return wrapper

    return decorator
