"""Process management of the memory service: creation, swapping and dumps."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Optional

from pagemem.config import MemoryConfig
from pagemem.dump import write_dump
from pagemem.frames import FrameBitmap
from pagemem.logger import (
    log_error,
    log_event,
    log_process_created,
    log_process_destroyed,
    log_swap_in,
    log_swap_in_requested,
    log_swap_out,
    log_swap_out_requested,
)
from pagemem.metrics import MetricsRegistry, ProcessMetrics
from pagemem.page_tables import PageTables
from pagemem.strings import remove_new_line
from pagemem.swap import SwapArea, SwapError
from pagemem.user_memory import UserMemory


class MemorySystem:
    """All memory structures of the service, driven by kernel and CPU requests."""

    def __init__(self, config: MemoryConfig) -> None:
        self.config = config
        self.metrics = MetricsRegistry()
        self.frames = FrameBitmap(config.memory_size, config.page_size)
        self.tables = PageTables(config.entries_per_table, config.levels, self.metrics)
        self.memory = UserMemory(config.memory_size, config.page_size, self.metrics)
        self.swap = SwapArea(config.swapfile_path, config.page_size, config.swap_delay)
        self._instructions: dict[int, list[str]] = {}
        self._lock = threading.Lock()

    def _read_instructions(self, executable: str) -> list[str]:
        path = f"{self.config.instructions_path}{executable}"
        try:
            with open(path, encoding="utf-8") as handle:
                return [remove_new_line(line) for line in handle]
        except OSError:
            log_error("No se pudo abrir archivo de instrucciones.")
            raise

    def create_process(self, pid: int, size: int, executable: str) -> bool:
        """Reserve frames for ``pid`` and load its instructions.

        Returns False when there are not enough free frames.
        """
        needed = -(-size // self.config.page_size)
        frames = self.frames.occupy(needed)
        if frames is None:
            return False
        had_tables = self.tables.assigned_frames(pid) is not None
        try:
            instructions = self._read_instructions(executable)
            self.tables.create(pid)
            self.tables.load_frames(pid, frames)
        except (OSError, ValueError):
            if not had_tables:
                self.tables.destroy(pid)
            self.frames.release(frames)
            raise
        with self._lock:
            self._instructions[pid] = instructions
        self.metrics.create(pid)
        log_process_created(pid, size)
        return True

    def finish_process(self, pid: int) -> bool:
        """Free everything ``pid`` holds; False if the process does not exist."""
        with self._lock:
            if pid not in self._instructions:
                log_error("Se inteto finalizar un proceso inexistente.")
                return False
        frames = self.tables.assigned_frames(pid)
        if frames is None:
            return True
        self.frames.release(frames)
        with self._lock:
            self._instructions.pop(pid, None)
        metrics = self.metrics.remove(pid)
        log_process_destroyed(pid, metrics if metrics is not None else ProcessMetrics())
        self.tables.destroy(pid)
        return True

    def fetch_instruction(self, pid: int, program_counter: int) -> Optional[str]:
        """Instruction at ``program_counter``; None if there is none."""
        with self._lock:
            instructions = self._instructions.get(pid)
            if instructions is None or not 0 <= program_counter < len(instructions):
                return None
            instruction = instructions[program_counter]
        self.metrics.instruction_requested(pid)
        return instruction

    def frame_for(self, pid: int, entries: Sequence[int]) -> int:
        return self.tables.frame_for(pid, entries)

    def read(self, pid: int, physical_address: int, size: int) -> Optional[bytes]:
        return self.memory.read(pid, physical_address, size)

    def write(self, pid: int, physical_address: int, data: bytes) -> bool:
        return self.memory.write(pid, physical_address, data)

    def swap_out(self, pid: int) -> bool:
        """Move the pages of ``pid`` to swap and free its frames."""
        log_swap_out_requested(pid)
        frames = self.tables.assigned_frames(pid)
        if frames is None:
            return True
        if not frames and self.swap.page_count(pid) is not None:
            return True
        pages = self.memory.read_pages(frames)
        self.swap.store(pid, pages)
        self.frames.release(frames)
        self.tables.destroy(pid)
        self.tables.create(pid)
        self.metrics.swap_out(pid)
        log_swap_out(pid)
        return True

    def swap_in(self, pid: int) -> bool:
        """Bring the pages of ``pid`` back from swap into free frames."""
        log_swap_in_requested(pid)
        count = self.swap.page_count(pid)
        if count is None:
            log_event("Error al obtener cantidad de paginas para swap in")
            return False
        if count == 0:
            return True
        frames = self.frames.occupy(count)
        if frames is None:
            log_event("No hay suficientes frames libres para swap in")
            return False
        try:
            pages = self.swap.restore(pid)
        except SwapError:
            pages = None
        if pages is None or len(pages) != count:
            log_event("Error al recuperar paginas de swap")
            self.frames.release(frames)
            return False
        self.memory.write_pages(frames, pages)
        self.tables.load_frames(pid, frames)
        self.metrics.swap_in(pid)
        log_swap_in(pid)
        return True

    def dump(self, pid: int) -> bool:
        """Write the pages of ``pid`` to a dump file."""
        frames = self.tables.assigned_frames(pid)
        if frames is None:
            write_dump(self.config.dump_path, pid, None)
            return True
        write_dump(self.config.dump_path, pid, self.memory.read_pages(frames))
        log_event("Dump del proceso completado")
        return True