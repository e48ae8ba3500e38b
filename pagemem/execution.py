"""Execution requests and evictions exchanged between scheduler and CPU."""

from __future__ import annotations

import enum
import socket
import struct
from dataclasses import dataclass
from typing import Optional

from pagemem.protocol import Packet, ProtocolError, recv_packet, send_packet

_U32 = struct.Struct("<I")
_ENUM = struct.Struct("<i")


def _unpack(fmt: struct.Struct, item: bytes) -> int:
    try:
        (value,) = fmt.unpack(item)
    except struct.error as exc:
        raise ProtocolError(f"malformed packet item of {len(item)} bytes") from exc
    return value


class EvictionReason(enum.IntEnum):
    """Why a process left the CPU."""

    SCHEDULER_INT = 0
    SYSCALL = 1


@dataclass
class Eviction:
    """A process handed back by the CPU, with the syscall that caused it."""

    pid: int
    program_counter: int
    reason: EvictionReason
    syscall: Optional[str] = None

    def __post_init__(self) -> None:
        self.reason = EvictionReason(self.reason)
        if self.reason is EvictionReason.SYSCALL and self.syscall is None:
            raise ValueError("a syscall eviction needs the syscall text")

    def to_packet(self) -> Packet:
        packet = (
            Packet()
            .add(_U32.pack(self.pid))
            .add(_U32.pack(self.program_counter))
            .add(_ENUM.pack(self.reason))
        )
        if self.reason is EvictionReason.SYSCALL:
            packet.add(self.syscall.encode("utf-8") + b"\0")
        return packet


@dataclass
class ExecutionRequest:
    """A request to run a process from a given program counter."""

    pid: int
    program_counter: int

    def to_packet(self) -> Packet:
        return Packet().add(_U32.pack(self.pid)).add(_U32.pack(self.program_counter))


def send_eviction(sock: socket.socket, eviction: Eviction) -> None:
    send_packet(sock, eviction.to_packet())


def recv_eviction(sock: socket.socket) -> Eviction:
    items = recv_packet(sock)
    if len(items) < 3:
        raise ProtocolError(f"eviction packet has {len(items)} items")
    try:
        reason = EvictionReason(_unpack(_ENUM, items[2]))
    except ValueError as exc:
        raise ProtocolError("unknown eviction reason") from exc
    syscall = None
    if reason is EvictionReason.SYSCALL:
        if len(items) < 4:
            raise ProtocolError("syscall eviction without syscall text")
        syscall = items[3].split(b"\0", 1)[0].decode("utf-8")
    return Eviction(
        pid=_unpack(_U32, items[0]),
        program_counter=_unpack(_U32, items[1]),
        reason=reason,
        syscall=syscall,
    )


def send_execution_request(sock: socket.socket, request: ExecutionRequest) -> None:
    send_packet(sock, request.to_packet())


def recv_execution_request(sock: socket.socket) -> ExecutionRequest:
    items = recv_packet(sock)
    if len(items) < 2:
        raise ProtocolError(f"execution request packet has {len(items)} items")
    return ExecutionRequest(
        pid=_unpack(_U32, items[0]), program_counter=_unpack(_U32, items[1])
    )