"""Multi-level page tables of every process."""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Optional

from pagemem.metrics import MetricsRegistry

NOT_FOUND = -2
NO_FRAME = -1


@dataclass
class Entry:
    """A table entry: either points to a lower table or maps a frame."""

    present: bool = False
    frame: int = NO_FRAME
    child: Optional[Table] = None


@dataclass
class Table:
    """A page table at ``level`` (1 is the root)."""

    level: int
    entries: list[Entry] = field(default_factory=list)

    def leaves(self) -> Iterator[Entry]:
        """Last-level entries below this table, in address order."""
        for entry in self.entries:
            if entry.child is None:
                yield entry
            else:
                yield from entry.child.leaves()


def _build(level: int, levels: int, entries_per_table: int) -> Table:
    table = Table(level)
    for _ in range(entries_per_table):
        child = _build(level + 1, levels, entries_per_table) if level < levels else None
        table.entries.append(Entry(child=child))
    return table


class PageTables:
    """Page tables of all processes, keyed by PID."""

    def __init__(
        self,
        entries_per_table: int,
        levels: int,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        if entries_per_table < 0 or levels < 0:
            raise ValueError("table dimensions must not be negative")
        self.entries_per_table = entries_per_table
        self.levels = levels
        self._metrics = metrics
        self._tables: dict[int, Table] = {}
        self._lock = threading.Lock()

    def _root(self, pid: int) -> Optional[Table]:
        with self._lock:
            return self._tables.get(pid)

    def create(self, pid: int) -> None:
        """Build empty tables for ``pid``; existing tables are kept."""
        with self._lock:
            if pid not in self._tables:
                self._tables[pid] = _build(1, self.levels, self.entries_per_table)

    def load_frames(self, pid: int, frames: Sequence[int]) -> None:
        """Map the leading last-level entries of ``pid`` to ``frames`` in order."""
        root = self._root(pid)
        if root is None:
            raise KeyError(f"no page tables for PID {pid}")
        with self._lock:
            leaves = list(root.leaves())
            if len(frames) > len(leaves):
                raise ValueError(
                    f"{len(frames)} frames exceed {len(leaves)} addressable pages"
                )
            for entry, frame in zip(leaves, frames):
                entry.present = True
                entry.frame = frame

    def frame_for(self, pid: int, entries: Sequence[int]) -> int:
        """Walk the tables with one entry number per level.

        Returns the frame found (-1 if the page has none), or -2 when the
        process has no tables or the walk ends without reaching a frame.
        """
        table = self._root(pid)
        if table is None:
            return NOT_FOUND
        for level in range(self.levels):
            number = entries[level]
            if not 0 <= number < len(table.entries):
                raise IndexError(f"entry {number} out of range at level {level + 1}")
            entry = table.entries[number]
            if self._metrics is not None:
                self._metrics.table_access(pid)
            if entry.child is None:
                return entry.frame
            table = entry.child
        return NOT_FOUND

    def destroy(self, pid: int) -> None:
        """Drop the tables of ``pid``, if any."""
        with self._lock:
            self._tables.pop(pid, None)

    def assigned_frames(self, pid: int) -> Optional[list[int]]:
        """Frames mapped by present pages of ``pid``; None if it has no tables."""
        root = self._root(pid)
        if root is None:
            return None
        with self._lock:
            return [entry.frame for entry in root.leaves() if entry.present]