"""Network front of the memory service, serving the kernel and the CPU."""

from __future__ import annotations

import argparse
import socket
import threading
import time
from collections.abc import Sequence
from typing import Optional

from pagemem.config import CONFIG_FILE, MemoryConfig, load_config
from pagemem.logger import (
    log_error,
    log_event,
    log_instruction_fetch,
    log_kernel_connection,
    setup_logger,
)
from pagemem.mem_requests import (
    CpuOperation,
    KernelOperation,
    parse_entries_per_level,
    recv_cpu_request,
    recv_kernel_request,
)
from pagemem.mem_response import BufferResponse, MemResult, send_buffer_response
from pagemem.page_tables import NOT_FOUND
from pagemem.paging_info import PagingInfo, send_paging_info
from pagemem.protocol import ProtocolError, send_message, send_signal
from pagemem.sockets import ClientModule, HandshakeError, accept_client, create_server, receive_client
from pagemem.swap import SwapError
from pagemem.system import MemorySystem

_ACCEPT_POLL = 0.2


class MemoryServer:
    """Accepts kernel and CPU connections and serves each in its own thread."""

    def __init__(self, config: MemoryConfig, system: MemorySystem) -> None:
        self.config = config
        self.system = system
        self.ready = threading.Event()
        self._stopping = threading.Event()
        self._listener: Optional[socket.socket] = None

    @property
    def address(self) -> tuple:
        """Address the server listens on, once it is ready."""
        if self._listener is None:
            raise RuntimeError("server is not listening")
        return self._listener.getsockname()

    def _delay(self) -> None:
        if self.config.memory_delay > 0:
            time.sleep(self.config.memory_delay / 1000)

    def serve_forever(self) -> None:
        """Listen on the configured port until shut down."""
        self._listener = create_server(self.config.port)
        self._listener.settimeout(_ACCEPT_POLL)
        self.ready.set()
        try:
            while not self._stopping.is_set():
                try:
                    conn = accept_client(self._listener)
                except socket.timeout:
                    continue
                except OSError:
                    if self._stopping.is_set():
                        break
                    raise
                self._dispatch(conn)
        finally:
            self._listener.close()

    def _dispatch(self, conn: socket.socket) -> None:
        try:
            module = receive_client(conn)
        except (HandshakeError, OSError):
            log_error("Modulo desconocido.")
            conn.close()
            return
        if module is ClientModule.KERNEL:
            log_kernel_connection(conn.fileno())
            handler = self.handle_kernel
        elif module is ClientModule.CPU:
            log_event("CPU conectado.")
            handler = self.handle_cpu
        else:
            log_error("Modulo desconocido.")
            conn.close()
            return
        threading.Thread(target=handler, args=(conn,), daemon=True).start()

    def shutdown(self) -> None:
        """Stop accepting connections and close the listening socket."""
        log_event("Finalizando servidor...")
        self._stopping.set()
        if self._listener is not None:
            self._listener.close()
        log_event("Servidor finalizado.")

    def handle_kernel(self, conn: socket.socket) -> None:
        """Serve one kernel request, answer 1 or 0, and close the connection."""
        with conn:
            try:
                request = recv_kernel_request(conn)
            except (ProtocolError, OSError):
                return
            self._delay()
            system = self.system
            try:
                if request.operation is KernelOperation.INIT_PROCESS:
                    result = system.create_process(request.pid, request.size, request.path)
                elif request.operation is KernelOperation.FINISH_PROCESS:
                    result = system.finish_process(request.pid)
                elif request.operation is KernelOperation.DUMP_PROCESS:
                    result = system.dump(request.pid)
                elif request.operation is KernelOperation.SWAP_OUT:
                    result = system.swap_out(request.pid)
                else:
                    result = system.swap_in(request.pid)
            except (OSError, SwapError, ValueError) as exc:
                log_error(f"Error al atender al kernel: {exc}")
                result = False
            try:
                send_signal(conn, int(result))
            except OSError:
                pass

    def handle_cpu(self, conn: socket.socket) -> None:
        """Send the paging parameters, then serve CPU requests until it leaves."""
        with conn:
            try:
                send_paging_info(
                    conn,
                    PagingInfo(
                        page_size=self.config.page_size,
                        entries_per_table=self.config.entries_per_table,
                        levels=self.config.levels,
                    ),
                )
                while True:
                    try:
                        request = recv_cpu_request(conn)
                    except ProtocolError:
                        log_error(
                            "Error al recibir la peticion de ejecucion. "
                            "Cerrando conexion con CPU..."
                        )
                        return
                    self._delay()
                    self._serve_cpu_request(conn, request)
            except OSError:
                return

    def _serve_cpu_request(self, conn: socket.socket, request) -> None:
        system = self.system
        if request.operation is CpuOperation.FETCH_INSTRUCTION:
            instruction = system.fetch_instruction(request.pid, request.program_counter)
            text = instruction if instruction is not None else ""
            log_instruction_fetch(request.pid, request.program_counter, text)
            send_message(conn, text)
        elif request.operation is CpuOperation.FRAME_NUMBER:
            try:
                entries = parse_entries_per_level(request.entries_per_level)
                frame = system.frame_for(request.pid, entries)
            except IndexError:
                frame = NOT_FOUND
            send_signal(conn, frame)
        elif request.operation is CpuOperation.READ:
            try:
                data = system.read(request.pid, request.physical_address, request.size)
            except (IndexError, ValueError):
                data = None
            result = MemResult.SUCCEEDED if data is not None else MemResult.FAILED
            send_buffer_response(conn, BufferResponse(result, data))
        else:
            try:
                written = system.write(request.pid, request.physical_address, request.data)
            except (IndexError, ValueError):
                written = False
            send_signal(conn, int(written))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the memory service."""
    parser = argparse.ArgumentParser(description="Paged memory service.")
    parser.add_argument("config", nargs="?", default=CONFIG_FILE, help="configuration file")
    args = parser.parse_args(argv)
    config = load_config(args.config)
    setup_logger(config.log_level)
    server = MemoryServer(config, MemorySystem(config))
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        server.shutdown()
    return 0