"""Observability: sync counters, cycle timings and the summary log line."""

import threading
import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")

OUTCOME_PREFIX = "sync_"


class Metrics:
    """Counters and timings shared by the timer thread and the CLI thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._durations: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Record the wall time of the enclosed block under ``name``."""
        start = time.monotonic()
        try:
            yield
        finally:
            elapsed = time.monotonic() - start
            with self._lock:
                self._durations.setdefault(name, []).append(elapsed)

    def outcomes(self) -> dict[str, int]:
        """Sync cycle counts keyed by outcome (synced, failed, ...)."""
        with self._lock:
            return {
                name[len(OUTCOME_PREFIX):]: count
                for name, count in self._counters.items()
                if name.startswith(OUTCOME_PREFIX)
            }

    def summary(self) -> dict[str, Any]:
        with self._lock:
            timings = {
                name: {
                    "count": len(values),
                    "avg": sum(values) / len(values),
                    "min": min(values),
                    "max": max(values),
                }
                for name, values in self._durations.items()
                if values
            }
            return {"counters": dict(self._counters), "timers": timings}

    def reset(self):
        with self._lock:
            self._counters.clear()
            self._durations.clear()


metrics = Metrics()


def log_sync_summary():
    """Log cycle outcomes and timings gathered since start (daemon shutdown)."""
    outcomes = metrics.outcomes()
    logger.info("sync_summary", cycles=sum(outcomes.values()), outcomes=outcomes, **metrics.summary())
