"""Bitmap of free and occupied frames of user memory."""

from __future__ import annotations

import enum
import threading
from collections.abc import Iterable
from typing import Optional

from pagemem.logger import log_warning


class FrameState(enum.IntEnum):
    """Occupation state of a frame."""

    FREE = 0
    OCCUPIED = 1


class FrameBitmap:
    """Tracks which frames of user memory are in use."""

    def __init__(self, memory_size: int, page_size: int) -> None:
        if page_size <= 0:
            raise ValueError("page size must be positive")
        if memory_size < 0:
            raise ValueError("memory size must not be negative")
        self.total = memory_size // page_size
        self._states = bytearray(self.total)
        self._free = self.total
        self._lock = threading.Lock()

    def occupy(self, count: int) -> Optional[list[int]]:
        """Occupy ``count`` free frames, lowest first, and return them.

        Returns None and occupies nothing when fewer frames are free.
        """
        if count < 0:
            raise ValueError("frame count must not be negative")
        with self._lock:
            if count > self._free:
                log_warning("No hay suficientes frames libres para ocupar")
                return None
            taken: list[int] = []
            for frame, state in enumerate(self._states):
                if len(taken) == count:
                    break
                if state == FrameState.FREE:
                    self._states[frame] = FrameState.OCCUPIED
                    taken.append(frame)
            self._free -= len(taken)
            return taken

    def release(self, frames: Iterable[int]) -> None:
        """Mark the given frames as free again."""
        with self._lock:
            for frame in frames:
                self._check(frame)
                if self._states[frame] == FrameState.OCCUPIED:
                    self._states[frame] = FrameState.FREE
                    self._free += 1

    def available(self) -> int:
        """Number of free frames."""
        with self._lock:
            return self._free

    def state(self, frame: int) -> FrameState:
        with self._lock:
            self._check(frame)
            return FrameState(self._states[frame])

    def _check(self, frame: int) -> None:
        if not 0 <= frame < self.total:
            raise IndexError(f"frame {frame} out of range")