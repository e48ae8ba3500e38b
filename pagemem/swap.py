"""Swap area on disk where whole processes are parked out of memory."""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional, Union

from pagemem.logger import log_error


class SwapError(Exception):
    """Raised when the swap file cannot be used as requested."""


@dataclass
class SwappedProcess:
    """Where a process lives in the swap file and whether it is there now."""

    pages: int
    position: int
    on_disk: bool = False


class SwapArea:
    """A swap file holding the pages of swapped-out processes.

    Each process gets a fixed slot, in pages, the first time it is stored;
    later stores of the same process reuse that slot.
    """

    def __init__(
        self, path: Union[str, os.PathLike], page_size: int, delay_ms: int = 0
    ) -> None:
        if page_size <= 0:
            raise ValueError("page size must be positive")
        self.path = os.fspath(path)
        self.page_size = page_size
        self.delay_ms = delay_ms
        try:
            with open(self.path, "w+b"):
                pass
        except OSError as exc:
            log_error("No se pudo iniciar el swap.")
            raise SwapError(f"cannot create swap file {self.path!r}") from exc
        self._processes: dict[int, SwappedProcess] = {}
        self._lock = threading.Lock()

    def _delay(self) -> None:
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000)

    def page_count(self, pid: int) -> Optional[int]:
        """Number of pages ``pid`` occupies in swap; None if it was never stored."""
        with self._lock:
            record = self._processes.get(pid)
            return record.pages if record is not None else None

    def store(self, pid: int, pages: Sequence[bytes]) -> None:
        """Write the pages of ``pid`` into its slot of the swap file."""
        contents = [bytes(page) for page in pages]
        for page in contents:
            if len(page) != self.page_size:
                raise ValueError(
                    f"page has {len(page)} bytes, expected {self.page_size}"
                )
        with self._lock:
            with open(self.path, "r+b") as handle:
                record = self._processes.get(pid)
                if record is None:
                    end = handle.seek(0, os.SEEK_END)
                    record = SwappedProcess(len(contents), end // self.page_size)
                    self._processes[pid] = record
                if len(contents) != record.pages:
                    log_error("La cantidad de páginas cambió.")
                    raise SwapError(
                        f"PID {pid} has {len(contents)} pages, "
                        f"swap slot holds {record.pages}"
                    )
                handle.seek(record.position * self.page_size)
                handle.write(b"".join(contents))
            record.on_disk = True
        self._delay()

    def restore(self, pid: int) -> list[bytes]:
        """Read back the pages of ``pid`` in order and mark it as out of swap."""
        with self._lock:
            record = self._processes.get(pid)
            if record is None:
                log_error(
                    "Se intento recuperar un proceso que no esta en el diccionario swap."
                )
                raise SwapError(f"PID {pid} was never swapped out")
            if not record.on_disk:
                log_error("Se intento recuperar un proceso que no esta en el disco.")
                raise SwapError(f"PID {pid} is not on disk")
            with open(self.path, "rb") as handle:
                handle.seek(record.position * self.page_size)
                pages = [handle.read(self.page_size) for _ in range(record.pages)]
            if any(len(page) != self.page_size for page in pages):
                raise SwapError(f"swap file is truncated for PID {pid}")
            record.on_disk = False
        self._delay()
        return pages