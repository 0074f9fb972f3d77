"""
backend/metrics.py

Lightweight thread-safe counters for the ingestion path.
No external dependencies — uses Python's threading.Lock.

Usage:
    from netlog.backend.metrics import METRICS
    METRICS.lines_read.inc()
    print(METRICS.as_dict())
"""

import threading


class Counter:
    """A thread-safe integer counter."""

    __slots__ = ("_value", "_lock")

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:  # pragma: no cover
        return f"Counter({self._value})"


class Metrics:
    """Singleton holding all ingestion counters."""

    def __init__(self) -> None:
        self.lines_read: Counter = Counter()
        """Lines received from the capture stream."""

        self.flows_parsed: Counter = Counter()
        """Lines that produced a valid FlowRecord."""

        self.lines_skipped: Counter = Counter()
        """Lines that did not match the expected shape."""

        self.flows_stored: Counter = Counter()
        """FlowRecords committed to the store."""

        self.storage_errors: Counter = Counter()
        """Store operations that raised StorageFailure."""

    def as_dict(self) -> dict:
        """Return all counters as a plain dict (safe for JSON serialisation)."""
        return {
            name: counter.value
            for name, counter in vars(self).items()
            if isinstance(counter, Counter)
        }

    def reset_all(self) -> None:
        """Reset every counter to zero (useful in tests)."""
        for attr in vars(self).values():
            if isinstance(attr, Counter):
                attr.reset()


# Module-level singleton, import from here everywhere
METRICS = Metrics()
