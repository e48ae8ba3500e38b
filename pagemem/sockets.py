"""TCP connection set-up and the module handshake."""

from __future__ import annotations

import enum
import socket
import struct
import threading
from collections.abc import Callable
from typing import Any, Optional, Union

_INT = struct.Struct("<i")

_OK = 0
_REJECTED = -1


class ClientModule(enum.IntEnum):
    """Identifier a client sends to announce which module it is."""

    KERNEL = 0
    CPU = 1
    MEMORIA = 2
    IO = 3


class HandshakeError(Exception):
    """Raised when a handshake is rejected or cut short."""


def _recv_int(conn: socket.socket) -> int:
    buffer = bytearray()
    while len(buffer) < _INT.size:
        chunk = conn.recv(_INT.size - len(buffer))
        if not chunk:
            raise HandshakeError("connection closed during handshake")
        buffer.extend(chunk)
    (value,) = _INT.unpack(buffer)
    return value


def create_server(
    port: Union[int, str], host: Optional[str] = None
) -> socket.socket:
    """Open a listening IPv4 TCP socket on ``port`` (all interfaces by default)."""
    infos = socket.getaddrinfo(
        host, port, socket.AF_INET, socket.SOCK_STREAM, 0, socket.AI_PASSIVE
    )
    family, socktype, proto, _, address = infos[0]
    listener = socket.socket(family, socktype, proto)
    try:
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.bind(address)
        listener.listen(socket.SOMAXCONN)
    except OSError:
        listener.close()
        raise
    return listener


def accept_client(
    listener: socket.socket,
    handler: Optional[Callable[[socket.socket], Any]] = None,
) -> socket.socket:
    """Accept one connection.

    When ``handler`` is given it is run on the new connection in a daemon
    thread. The accepted connection is returned either way.
    """
    conn, _ = listener.accept()
    if handler is not None:
        threading.Thread(target=handler, args=(conn,), daemon=True).start()
    return conn


def receive_client(conn: socket.socket) -> ClientModule:
    """Answer a client's handshake and return the module it announced."""
    client_id = _recv_int(conn)
    try:
        module = ClientModule(client_id)
    except ValueError:
        conn.sendall(_INT.pack(_REJECTED))
        raise HandshakeError(f"unknown client module {client_id}") from None
    conn.sendall(_INT.pack(_OK))
    return module


def create_connection(host: str, port: Union[int, str]) -> socket.socket:
    """Connect to ``host:port`` over IPv4 TCP."""
    infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
    family, socktype, proto, _, address = infos[0]
    conn = socket.socket(family, socktype, proto)
    try:
        conn.connect(address)
    except OSError:
        conn.close()
        raise
    return conn


def handshake(conn: socket.socket, client: ClientModule) -> None:
    """Announce ``client`` to the server; raise HandshakeError if rejected."""
    conn.sendall(_INT.pack(int(client)))
    result = _recv_int(conn)
    if result != _OK:
        raise HandshakeError(f"handshake rejected with code {result}")