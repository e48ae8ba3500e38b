"""A list guarded by a lock, safe to share between threads."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class MutexList(Generic[T]):
    """Thread-safe list with queue-like helpers."""

    def __init__(self, items: Optional[Iterable[T]] = None) -> None:
        self._items: list[T] = list(items) if items is not None else []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.to_list())

    def __repr__(self) -> str:
        return f"MutexList({self.to_list()!r})"

    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def add(self, item: T) -> None:
        with self._lock:
            self._items.append(item)

    def add_sorted(self, item: T, comes_before: Callable[[T, T], bool]) -> int:
        """Insert after every element for which ``comes_before(element, item)``
        holds, stopping at the first that fails; return the index used."""
        with self._lock:
            index = 0
            for existing in self._items:
                if not comes_before(existing, item):
                    break
                index += 1
            self._items.insert(index, item)
            return index

    def add_all(self, other: Iterable[T]) -> None:
        snapshot = other.to_list() if isinstance(other, MutexList) else list(other)
        with self._lock:
            self._items.extend(snapshot)

    def get(self, index: int) -> Optional[T]:
        """Element at ``index``; None when the list is empty."""
        with self._lock:
            if not self._items:
                return None
            if not 0 <= index < len(self._items):
                raise IndexError(f"index {index} out of range")
            return self._items[index]

    def minimum(self, key: Callable[[T], Any]) -> Optional[T]:
        with self._lock:
            return min(self._items, key=key) if self._items else None

    def maximum(self, key: Callable[[T], Any]) -> Optional[T]:
        with self._lock:
            return max(self._items, key=key) if self._items else None

    def last(self) -> Optional[T]:
        with self._lock:
            return self._items[-1] if self._items else None

    def peek(self) -> Optional[T]:
        return self.get(0)

    def push(self, item: T) -> None:
        """Enqueue at the end."""
        self.add(item)

    def pop(self) -> T:
        """Dequeue from the front."""
        return self.remove(0)

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        with self._lock:
            return next((item for item in self._items if predicate(item)), None)

    def map(self, func: Callable[[T], U]) -> MutexList[U]:
        with self._lock:
            return MutexList(func(item) for item in self._items)

    def copy(self) -> MutexList[T]:
        return MutexList(self.to_list())

    def to_list(self) -> list[T]:
        with self._lock:
            return list(self._items)

    def iterate(self, func: Callable[[T], Any]) -> None:
        """Call ``func`` on every element while holding the lock."""
        with self._lock:
            for item in self._items:
                func(item)

    def index_of(self, predicate: Callable[[T], bool]) -> int:
        """Index of the first matching element, or -1 when none matches."""
        with self._lock:
            return next(
                (i for i, item in enumerate(self._items) if predicate(item)), -1
            )

    def remove(self, index: int) -> T:
        with self._lock:
            if not 0 <= index < len(self._items):
                raise IndexError(f"index {index} out of range")
            return self._items.pop(index)

    def remove_last(self) -> T:
        with self._lock:
            return self.remove(len(self._items) - 1)

    def remove_by_condition(self, predicate: Callable[[T], bool]) -> Optional[T]:
        with self._lock:
            index = self.index_of(predicate)
            return self._items.pop(index) if index >= 0 else None

    def remove_and_destroy_by_condition(
        self, predicate: Callable[[T], bool], destructor: Callable[[T], Any]
    ) -> None:
        removed = self.remove_by_condition(predicate)
        if removed is not None:
            destructor(removed)

    def clear(self, destructor: Optional[Callable[[T], Any]] = None) -> None:
        with self._lock:
            if destructor is not None:
                for item in self._items:
                    destructor(item)
            self._items.clear()