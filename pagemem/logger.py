"""Event log of the memory service."""

from __future__ import annotations

import enum
import logging
import os
from typing import Any, Union

LOG_FILE = "memoria.log"
LOGGER_NAME = "pagemem.memoria"

logger = logging.getLogger(LOGGER_NAME)

_FORMAT = "[%(levelname)s] %(asctime)s Memoria/(%(process)d:%(thread)d): %(message)s"


class AccessKind(enum.IntEnum):
    """Kind of access to user space."""

    WRITE = 0
    READ = 1


_ACCESS_NAMES = {AccessKind.WRITE: "Escritura", AccessKind.READ: "Lectura"}


def setup_logger(
    level: int = logging.INFO, path: Union[str, os.PathLike] = LOG_FILE
) -> logging.Logger:
    """Log to ``path`` and to the console at ``level``, replacing earlier handlers."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    formatter = logging.Formatter(_FORMAT, datefmt="%H:%M:%S")
    for handler in (logging.FileHandler(path, encoding="utf-8"), logging.StreamHandler()):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def log_event(message: str) -> None:
    logger.info("%s", message)


def log_error(message: str) -> None:
    logger.info("%s", message)


def log_warning(message: str) -> None:
    logger.info("%s", message)


def log_kernel_connection(fd: int) -> None:
    logger.info("## Kernel Conectado - FD del socket: %d", fd)


def log_process_created(pid: int, size: int) -> None:
    logger.info("## PID: %d - Proceso Creado - Tamaño: %d", pid, size)


def log_process_destroyed(pid: int, metrics: Any) -> None:
    """Log a finished process with its counters.

    ``metrics`` provides table_accesses, instructions_requested, swap_outs,
    swap_ins, reads and writes.
    """
    logger.info(
        "## PID: %d - Proceso Destruido - Métricas - Acc.T.Pag: %d; Inst.Sol.: %d; "
        "SWAP: %d; Mem.Prin.: %d; Lec.Mem.: %d; Esc.Mem.: %d",
        pid,
        metrics.table_accesses,
        metrics.instructions_requested,
        metrics.swap_outs,
        metrics.swap_ins,
        metrics.reads,
        metrics.writes,
    )


def log_instruction_fetch(pid: int, program_counter: int, instruction: str) -> None:
    logger.info(
        "## PID: %d - Obtener instrucción: %d - Instrucción: %s",
        pid,
        program_counter,
        instruction,
    )


def log_user_space_access(
    pid: int, kind: Union[AccessKind, int], physical_address: int, size: int
) -> None:
    try:
        name = _ACCESS_NAMES[AccessKind(kind)]
    except ValueError:
        name = "Operación desconocida"
    logger.info(
        "## PID: %d - %s - Dir. Física: %d - Tamaño: %d",
        pid,
        name,
        physical_address,
        size,
    )


def log_memory_dump(pid: int) -> None:
    logger.info("## PID: %d - Memory Dump solicitado", pid)


def log_swap_out_requested(pid: int) -> None:
    logger.info("## PID: %d - Swap Out solicitado", pid)


def log_swap_in_requested(pid: int) -> None:
    logger.info("## PID: %d - Swap In solicitado", pid)


def log_swap_out(pid: int) -> None:
    logger.info("## PID: %d - Swap Out completado", pid)


def log_swap_in(pid: int) -> None:
    logger.info("## PID: %d - Swap In completado", pid)