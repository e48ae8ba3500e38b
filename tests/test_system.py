import glob
import logging
import os

import pytest

from pagemem.config import MemoryConfig
from pagemem.system import MemorySystem

PAGE = 4


@pytest.fixture
def config(tmp_path):
    (tmp_path / "prog").write_text("NOOP\nWRITE 0 hola\nEXIT\n", encoding="utf-8")
    (tmp_path / "dumps").mkdir()
    return MemoryConfig(
        port="0",
        log_level=logging.INFO,
        memory_size=32,
        page_size=PAGE,
        entries_per_table=4,
        levels=2,
        memory_delay=0,
        swapfile_path=str(tmp_path / "swap.bin"),
        instructions_path=str(tmp_path) + os.sep,
        swap_delay=0,
        dump_path=str(tmp_path / "dumps") + os.sep,
    )


@pytest.fixture
def system(config):
    return MemorySystem(config)


def test_create_process_reserves_frames(system):
    total = system.frames.available()
    assert system.create_process(1, 10, "prog") is True
    assigned = system.tables.assigned_frames(1)
    assert len(assigned) == 3
    assert system.frames.available() == total - len(assigned)


def test_create_process_without_room(system):
    total = system.frames.available()
    assert system.create_process(1, 1000, "prog") is False
    assert system.frames.available() == total


def test_create_process_missing_file_releases_frames(system):
    total = system.frames.available()
    with pytest.raises(OSError):
        system.create_process(1, 8, "missing")
    assert system.frames.available() == total
    assert system.tables.assigned_frames(1) is None


def test_fetch_instruction(system):
    system.create_process(1, 4, "prog")
    assert system.fetch_instruction(1, 0) == "NOOP"
    assert system.fetch_instruction(1, 1) == "WRITE 0 hola"
    assert system.fetch_instruction(1, 3) is None
    assert system.metrics.get(1).instructions_requested == 2


def test_fetch_instruction_unknown_process(system):
    assert system.fetch_instruction(9, 0) is None


def test_finish_process_frees_frames(system):
    total = system.frames.available()
    system.create_process(1, 10, "prog")
    assert system.finish_process(1) is True
    assert system.frames.available() == total
    assert system.fetch_instruction(1, 0) is None
    assert system.metrics.get(1) is None


def test_finish_unknown_process(system):
    assert system.finish_process(9) is False


def test_write_and_read_through_tables(system):
    system.create_process(1, 8, "prog")
    frame = system.frame_for(1, [0, 0])
    assert frame in system.tables.assigned_frames(1)
    address = frame * PAGE
    assert system.write(1, address, b"ab") is True
    assert system.read(1, address, 2) == b"ab"


def test_swap_out_and_in_keeps_content(system):
    total = system.frames.available()
    system.create_process(1, 8, "prog")
    address = system.frame_for(1, [0, 1]) * PAGE
    system.write(1, address, b"wxyz")
    assert system.swap_out(1) is True
    assert system.frames.available() == total
    assert system.swap_in(1) is True
    new_address = system.frame_for(1, [0, 1]) * PAGE
    assert system.read(1, new_address, 4) == b"wxyz"
    metrics = system.metrics.get(1)
    assert (metrics.swap_outs, metrics.swap_ins) == (1, 1)


def test_swap_in_never_swapped(system):
    system.create_process(1, 8, "prog")
    assert system.swap_in(1) is False


def test_swap_in_twice_fails_and_keeps_frames(system):
    system.create_process(1, 8, "prog")
    system.swap_out(1)
    system.swap_in(1)
    available = system.frames.available()
    assert system.swap_in(1) is False
    assert system.frames.available() == available


def test_swap_in_without_room(system, config):
    system.create_process(1, 8, "prog")
    system.swap_out(1)
    assert system.create_process(2, config.memory_size, "prog") is True
    assert system.swap_in(1) is False
    assert system.frames.available() == 0


def test_finish_after_swap_out(system):
    total = system.frames.available()
    system.create_process(1, 8, "prog")
    system.swap_out(1)
    system.create_process(2, 8, "prog")
    assert system.finish_process(1) is True
    assert system.frames.available() == total - len(system.tables.assigned_frames(2))


def test_dump_writes_pages(system, config):
    system.create_process(5, 8, "prog")
    address = system.frame_for(5, [0, 0]) * PAGE
    system.write(5, address, b"dump")
    assert system.dump(5) is True
    files = glob.glob(os.path.join(config.dump_path, "5-*.dmp"))
    assert len(files) == 1
    pages = system.memory.read_pages(system.tables.assigned_frames(5))
    with open(files[0], "rb") as handle:
        assert handle.read() == b"".join(pages)


def test_dump_unknown_process_is_empty(system, config):
    assert system.dump(8) is True
    files = glob.glob(os.path.join(config.dump_path, "8-*.dmp"))
    assert [os.path.getsize(path) for path in files] == [0]