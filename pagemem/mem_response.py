"""Memory's answer to a read request."""

from __future__ import annotations

import enum
import socket
import struct
from dataclasses import dataclass
from typing import Optional

from pagemem.protocol import Packet, ProtocolError, recv_packet, send_packet

_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


class MemResult(enum.IntEnum):
    """Outcome of a memory operation."""

    FAILED = 0
    SUCCEEDED = 1


@dataclass
class BufferResponse:
    """Result of an operation with the bytes it produced, if any."""

    result: MemResult
    data: Optional[bytes] = None

    def __post_init__(self) -> None:
        self.result = MemResult(self.result)
        if self.data is not None:
            self.data = bytes(self.data)

    @property
    def size(self) -> int:
        return len(self.data) if self.data is not None else 0

    def to_packet(self) -> Packet:
        """Packet carrying the result and, when there is data, its size and bytes."""
        packet = Packet().add(_I32.pack(self.result))
        if self.data is not None:
            packet.add(_U32.pack(len(self.data))).add(self.data)
        return packet


def send_buffer_response(sock: socket.socket, response: BufferResponse) -> None:
    send_packet(sock, response.to_packet())


def recv_buffer_response(sock: socket.socket) -> BufferResponse:
    items = recv_packet(sock)
    if not items:
        raise ProtocolError("empty buffer response")
    try:
        (code,) = _I32.unpack_from(items[0])
        result = MemResult(code)
    except (struct.error, ValueError) as exc:
        raise ProtocolError("malformed buffer response result") from exc
    if result is not MemResult.SUCCEEDED:
        return BufferResponse(result)
    if len(items) < 3:
        raise ProtocolError("successful buffer response without data")
    try:
        (size,) = _U32.unpack_from(items[1])
    except struct.error as exc:
        raise ProtocolError("malformed buffer response size") from exc
    return BufferResponse(result, items[2][:size].ljust(size, b"\0"))