"""Memory dumps of a process's pages to disk."""

from __future__ import annotations

import os
import time
from collections.abc import Iterable
from typing import Optional

from pagemem.logger import log_error, log_memory_dump


def dump_file_name(directory: str, pid: int, timestamp: int) -> str:
    """File name ``<directory><pid>-<timestamp>.dmp``; the directory is prefixed as is."""
    return f"{directory}{pid}-{timestamp}.dmp"


def write_dump(directory: str, pid: int, pages: Optional[Iterable[bytes]]) -> str:
    """Write the pages of ``pid`` one after another to a new dump file.

    With no pages the file is left empty. Returns the file's path.
    """
    log_memory_dump(pid)
    path = dump_file_name(directory, pid, int(time.time()))
    try:
        handle = open(path, "w+b")
    except OSError:
        log_error("No se pudo generar archivo dump.")
        raise
    with handle:
        if pages is not None:
            for page in pages:
                handle.write(bytes(page))
    return os.fspath(path)