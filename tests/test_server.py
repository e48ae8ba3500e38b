import logging
import os
import socket
import struct
import threading

import pytest

from pagemem.config import MemoryConfig
from pagemem.mem_requests import (
    CpuRequest,
    KernelOperation,
    KernelRequest,
    send_cpu_request,
    send_kernel_request,
)
from pagemem.mem_response import MemResult, recv_buffer_response
from pagemem.paging_info import PagingInfo, recv_paging_info
from pagemem.protocol import recv_message, recv_signal
from pagemem.server import MemoryServer, main
from pagemem.sockets import ClientModule, create_connection, handshake
from pagemem.system import MemorySystem

PAGE = 4


@pytest.fixture
def config(tmp_path):
    (tmp_path / "prog").write_text("NOOP\nEXIT\n", encoding="utf-8")
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


@pytest.fixture
def server(config, system):
    return MemoryServer(config, system)


def _start(target, conn):
    thread = threading.Thread(target=target, args=(conn,), daemon=True)
    thread.start()
    return thread


def _kernel_call(server, request):
    client, served = socket.socketpair()
    thread = _start(server.handle_kernel, served)
    with client:
        send_kernel_request(client, request)
        result = recv_signal(client)
    thread.join(5)
    return result


def test_kernel_creates_process(server, system):
    request = KernelRequest(KernelOperation.INIT_PROCESS, 1, 8, "prog")
    assert _kernel_call(server, request) == 1
    assert system.fetch_instruction(1, 0) == "NOOP"


def test_kernel_finish_unknown_process(server):
    assert _kernel_call(server, KernelRequest(KernelOperation.FINISH_PROCESS, 9)) == 0


def test_kernel_missing_executable_answers_zero(server):
    request = KernelRequest(KernelOperation.INIT_PROCESS, 1, 8, "missing")
    assert _kernel_call(server, request) == 0


def test_kernel_swap_cycle(server, system):
    total = system.frames.available()
    _kernel_call(server, KernelRequest(KernelOperation.INIT_PROCESS, 2, 8, "prog"))
    assert _kernel_call(server, KernelRequest(KernelOperation.SWAP_OUT, 2)) == 1
    assert system.frames.available() == total
    assert _kernel_call(server, KernelRequest(KernelOperation.SWAP_IN, 2)) == 1
    assert system.frames.available() < total


def test_cpu_session(server, system, config):
    system.create_process(1, 8, "prog")
    client, served = socket.socketpair()
    thread = _start(server.handle_cpu, served)
    with client:
        assert recv_paging_info(client) == PagingInfo(
            config.page_size, config.entries_per_table, config.levels
        )
        send_cpu_request(client, CpuRequest.fetch_instruction(1, 0))
        assert recv_message(client) == "NOOP"
        send_cpu_request(client, CpuRequest.fetch_instruction(1, 7))
        assert recv_message(client) == ""
        send_cpu_request(client, CpuRequest.frame_number(1, "0 0"))
        frame = recv_signal(client)
        assert frame == system.tables.assigned_frames(1)[0]
        send_cpu_request(client, CpuRequest.write(1, frame * PAGE, b"hola"))
        assert recv_signal(client) == 1
        send_cpu_request(client, CpuRequest.read(1, frame * PAGE, 4))
        response = recv_buffer_response(client)
        assert (response.result, response.data) == (MemResult.SUCCEEDED, b"hola")
        send_cpu_request(client, CpuRequest.read(1, config.memory_size + 4, 4))
        assert recv_buffer_response(client).result is MemResult.FAILED
    thread.join(5)
    assert not thread.is_alive()


def test_serve_forever_accepts_clients(server, system):
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    assert server.ready.wait(5)
    port = server.address[1]
    try:
        with create_connection("127.0.0.1", port) as conn:
            handshake(conn, ClientModule.KERNEL)
            send_kernel_request(
                conn, KernelRequest(KernelOperation.INIT_PROCESS, 3, 4, "prog")
            )
            assert recv_signal(conn) == 1
        with create_connection("127.0.0.1", port) as conn:
            conn.sendall(struct.pack("<i", 9))
            assert conn.recv(4) == struct.pack("<i", -1)
    finally:
        server.shutdown()
        thread.join(5)
    assert not thread.is_alive()
    assert system.fetch_instruction(3, 1) == "EXIT"


def test_main_missing_config_raises(tmp_path):
    from pagemem.config import ConfigError

    with pytest.raises(ConfigError):
        main([str(tmp_path / "absent.config")])