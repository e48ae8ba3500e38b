"""The contiguous user space that processes read and write."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Optional

from pagemem.logger import AccessKind, log_user_space_access
from pagemem.metrics import MetricsRegistry


class UserMemory:
    """Byte-addressed user memory split into frames of ``page_size`` bytes."""

    def __init__(
        self, size: int, page_size: int, metrics: Optional[MetricsRegistry] = None
    ) -> None:
        if page_size <= 0:
            raise ValueError("page size must be positive")
        if size < 0:
            raise ValueError("memory size must not be negative")
        self.size = size
        self.page_size = page_size
        self._metrics = metrics
        self._memory = bytearray(size)
        self._lock = threading.Lock()

    def _frame_limit(self, physical_address: int) -> int:
        if not 0 <= physical_address < self.size:
            raise IndexError(f"physical address {physical_address} out of range")
        frame = physical_address // self.page_size
        return min((frame + 1) * self.page_size, self.size)

    def _frame_start(self, frame: int) -> int:
        start = frame * self.page_size
        if frame < 0 or start + self.page_size > self.size:
            raise IndexError(f"frame {frame} out of range")
        return start

    def write(self, pid: int, physical_address: int, data: bytes) -> bool:
        """Write ``data`` at ``physical_address`` within a single frame.

        Bytes that fit before the end of the frame are written; the call
        succeeds only if all of them fit.
        """
        data = bytes(data)
        limit = self._frame_limit(physical_address)
        count = min(len(data), limit - physical_address)
        with self._lock:
            self._memory[physical_address : physical_address + count] = data[:count]
        if count != len(data):
            return False
        if self._metrics is not None:
            self._metrics.write(pid)
        log_user_space_access(pid, AccessKind.WRITE, physical_address, len(data))
        return True

    def read(self, pid: int, physical_address: int, size: int) -> Optional[bytes]:
        """Read ``size`` bytes within a single frame; None if they cross its end."""
        if size < 0:
            raise ValueError("read size must not be negative")
        limit = self._frame_limit(physical_address)
        if physical_address + size > limit:
            return None
        with self._lock:
            data = bytes(self._memory[physical_address : physical_address + size])
        if self._metrics is not None:
            self._metrics.read(pid)
        log_user_space_access(pid, AccessKind.READ, physical_address, size)
        return data

    def read_page(self, frame: int) -> bytes:
        start = self._frame_start(frame)
        with self._lock:
            return bytes(self._memory[start : start + self.page_size])

    def read_pages(self, frames: Sequence[int]) -> list[bytes]:
        starts = [self._frame_start(frame) for frame in frames]
        with self._lock:
            return [bytes(self._memory[s : s + self.page_size]) for s in starts]

    def write_page(self, frame: int, content: bytes) -> None:
        start = self._frame_start(frame)
        content = self._check_page(content)
        with self._lock:
            self._memory[start : start + self.page_size] = content

    def write_pages(self, frames: Sequence[int], contents: Sequence[bytes]) -> None:
        """Write each page of ``contents`` into the frame at the same position."""
        if len(frames) < len(contents):
            raise ValueError(f"{len(contents)} pages but only {len(frames)} frames")
        pairs = [
            (self._frame_start(frame), self._check_page(content))
            for frame, content in zip(frames, contents)
        ]
        with self._lock:
            for start, content in pairs:
                self._memory[start : start + self.page_size] = content

    def _check_page(self, content: bytes) -> bytes:
        content = bytes(content)
        if len(content) != self.page_size:
            raise ValueError(
                f"page content has {len(content)} bytes, expected {self.page_size}"
            )
        return content