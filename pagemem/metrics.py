"""Per-process usage counters of the memory service."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from typing import Optional


@dataclass
class ProcessMetrics:
    """Counters collected for one process while it lives in memory."""

    table_accesses: int = 0
    instructions_requested: int = 0
    swap_outs: int = 0
    swap_ins: int = 0
    reads: int = 0
    writes: int = 0


class MetricsRegistry:
    """Thread-safe registry of metrics keyed by PID.

    Incrementing the counters of an unknown PID does nothing.
    """

    def __init__(self) -> None:
        self._metrics: dict[int, ProcessMetrics] = {}
        self._lock = threading.Lock()

    def create(self, pid: int) -> None:
        """Start zeroed counters for ``pid``; existing counters are kept."""
        with self._lock:
            self._metrics.setdefault(pid, ProcessMetrics())

    def remove(self, pid: int) -> Optional[ProcessMetrics]:
        """Drop and return the counters of ``pid``, or None if it has none."""
        with self._lock:
            return self._metrics.pop(pid, None)

    def get(self, pid: int) -> Optional[ProcessMetrics]:
        """A snapshot of the counters of ``pid``, or None if it has none."""
        with self._lock:
            metrics = self._metrics.get(pid)
            return dataclasses.replace(metrics) if metrics is not None else None

    def _increment(self, pid: int, counter: str) -> None:
        with self._lock:
            metrics = self._metrics.get(pid)
            if metrics is not None:
                setattr(metrics, counter, getattr(metrics, counter) + 1)

    def table_access(self, pid: int) -> None:
        self._increment(pid, "table_accesses")

    def instruction_requested(self, pid: int) -> None:
        self._increment(pid, "instructions_requested")

    def swap_out(self, pid: int) -> None:
        self._increment(pid, "swap_outs")

    def swap_in(self, pid: int) -> None:
        self._increment(pid, "swap_ins")

    def read(self, pid: int) -> None:
        self._increment(pid, "reads")

    def write(self, pid: int) -> None:
        self._increment(pid, "writes")