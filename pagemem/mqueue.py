"""A FIFO queue guarded by a lock."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class MutexQueue(Generic[T]):
    """Thread-safe FIFO queue."""

    def __init__(self, items: Optional[Iterable[T]] = None) -> None:
        self._queue: deque[T] = deque(items) if items is not None else deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def push(self, item: T) -> None:
        with self._lock:
            self._queue.append(item)

    def pop(self) -> T:
        """Remove and return the oldest item."""
        with self._lock:
            if not self._queue:
                raise IndexError("pop from an empty queue")
            return self._queue.popleft()

    def peek(self) -> T:
        """Return the oldest item without removing it."""
        with self._lock:
            if not self._queue:
                raise IndexError("peek into an empty queue")
            return self._queue[0]