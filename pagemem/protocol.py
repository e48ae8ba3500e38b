"""Length-prefixed packet protocol spoken over stream sockets.

Every frame starts with a little-endian ``int32`` operation code. Packets
carry a buffer of ``[int32 size][bytes]`` items, messages carry a
NUL-terminated string and signals carry a single ``int32`` value.
"""

from __future__ import annotations

import enum
import socket
import struct
from dataclasses import dataclass, field

_INT = struct.Struct("<i")


class OpCode(enum.IntEnum):
    """Kind of frame sent on the wire."""

    PACKET = 0
    MESSAGE = 1
    SIGNAL = 2


class ProtocolError(Exception):
    """Raised when the peer disconnects or sends an unexpected frame."""


@dataclass
class Packet:
    """A packet made of length-prefixed binary items."""

    items: list[bytes] = field(default_factory=list)
    op_code: OpCode = OpCode.PACKET

    def add(self, content: bytes | bytearray | memoryview) -> Packet:
        """Append one item to the packet and return the packet."""
        if not isinstance(content, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"packet content must be bytes-like, not {type(content).__name__}"
            )
        self.items.append(bytes(content))
        return self

    @property
    def payload(self) -> bytes:
        """The packet buffer: every item preceded by its size."""
        return b"".join(_INT.pack(len(item)) + item for item in self.items)

    def serialize(self) -> bytes:
        """Return the complete frame: op code, buffer size and buffer."""
        payload = self.payload
        return _INT.pack(self.op_code) + _INT.pack(len(payload)) + payload


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    buffer = bytearray()
    while len(buffer) < size:
        chunk = sock.recv(size - len(buffer))
        if not chunk:
            raise ProtocolError("connection closed by peer")
        buffer.extend(chunk)
    return bytes(buffer)


def _recv_int(sock: socket.socket) -> int:
    (value,) = _INT.unpack(_recv_exact(sock, _INT.size))
    return value


def _expect(sock: socket.socket, expected: OpCode) -> None:
    try:
        code = _recv_int(sock)
    except (ProtocolError, OSError) as exc:
        sock.close()
        raise ProtocolError("connection closed while reading op code") from exc
    if code != expected:
        raise ProtocolError(f"expected {expected.name} frame, got op code {code}")


def _split_items(buffer: bytes) -> list[bytes]:
    items = []
    offset = 0
    while offset < len(buffer):
        if offset + _INT.size > len(buffer):
            raise ProtocolError("truncated item size in packet buffer")
        (size,) = _INT.unpack_from(buffer, offset)
        offset += _INT.size
        if size < 0 or offset + size > len(buffer):
            raise ProtocolError(f"invalid item size {size} in packet buffer")
        items.append(buffer[offset : offset + size])
        offset += size
    return items


def send_packet(sock: socket.socket, packet: Packet) -> None:
    """Send a packet frame."""
    sock.sendall(packet.serialize())


def recv_packet(sock: socket.socket) -> list[bytes]:
    """Receive a packet frame and return its items in order."""
    _expect(sock, OpCode.PACKET)
    size = _recv_int(sock)
    if size < 0:
        raise ProtocolError(f"invalid packet buffer size {size}")
    return _split_items(_recv_exact(sock, size))


def send_signal(sock: socket.socket, value: int) -> None:
    """Send a signal frame carrying one signed 32-bit value."""
    sock.sendall(_INT.pack(OpCode.SIGNAL) + _INT.pack(value))


def recv_signal(sock: socket.socket) -> int:
    """Receive a signal frame and return its value."""
    _expect(sock, OpCode.SIGNAL)
    return _recv_int(sock)


def send_message(sock: socket.socket, message: str) -> None:
    """Send a message frame holding a NUL-terminated string."""
    data = message.encode("utf-8") + b"\0"
    sock.sendall(_INT.pack(OpCode.MESSAGE) + _INT.pack(len(data)) + data)


def recv_message(sock: socket.socket) -> str:
    """Receive a message frame and return its text."""
    _expect(sock, OpCode.MESSAGE)
    size = _recv_int(sock)
    if size < 0:
        raise ProtocolError(f"invalid message size {size}")
    data = _recv_exact(sock, size)
    return data.split(b"\0", 1)[0].decode("utf-8")