"""Messages exchanged with I/O devices."""

from __future__ import annotations

import enum
import socket
import struct
from dataclasses import dataclass

from pagemem.protocol import (
    Packet,
    ProtocolError,
    recv_packet,
    recv_signal,
    send_packet,
    send_signal,
)

_U32 = struct.Struct("<I")


class IoEndReason(enum.IntEnum):
    """How an I/O operation ended."""

    EXECUTED = 0
    DISCONNECTED = 1


@dataclass
class IoRequest:
    """Ask a device to block process ``pid`` for ``time`` milliseconds."""

    pid: int
    time: int

    def to_packet(self) -> Packet:
        return Packet().add(_U32.pack(self.pid)).add(_U32.pack(self.time))


def send_io_end_reason(sock: socket.socket, reason: IoEndReason) -> None:
    send_signal(sock, int(reason))


def recv_io_end_reason(sock: socket.socket) -> IoEndReason:
    """Receive how an I/O ended; a lost or failed signal counts as disconnection."""
    try:
        value = recv_signal(sock)
    except (ProtocolError, OSError):
        return IoEndReason.DISCONNECTED
    if value == -1:
        return IoEndReason.DISCONNECTED
    try:
        return IoEndReason(value)
    except ValueError:
        raise ProtocolError(f"unknown I/O end reason {value}") from None


def send_io_request(sock: socket.socket, request: IoRequest) -> None:
    send_packet(sock, request.to_packet())


def recv_io_request(sock: socket.socket) -> IoRequest:
    items = recv_packet(sock)
    if len(items) < 2:
        raise ProtocolError(f"I/O request packet has {len(items)} items")
    try:
        (pid,) = _U32.unpack(items[0])
        (time,) = _U32.unpack(items[1])
    except struct.error as exc:
        raise ProtocolError("malformed I/O request") from exc
    return IoRequest(pid=pid, time=time)