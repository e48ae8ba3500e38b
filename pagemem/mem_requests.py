"""Requests that the kernel and the CPU send to memory."""

from __future__ import annotations

import enum
import socket
import struct
from dataclasses import dataclass
from typing import Optional

from pagemem.protocol import Packet, ProtocolError, recv_packet, send_packet

_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


def _unpack(fmt: struct.Struct, item: bytes) -> int:
    try:
        (value,) = fmt.unpack_from(item)
    except struct.error as exc:
        raise ProtocolError(f"malformed packet item of {len(item)} bytes") from exc
    return value


def _c_string(item: bytes) -> str:
    return item.split(b"\0", 1)[0].decode("utf-8")


class KernelOperation(enum.IntEnum):
    """Operation the kernel asks memory to perform on a process."""

    INIT_PROCESS = 0
    FINISH_PROCESS = 1
    DUMP_PROCESS = 2
    SWAP_OUT = 3
    SWAP_IN = 4


@dataclass
class KernelRequest:
    """A kernel request; ``size`` and ``path`` matter only for INIT_PROCESS."""

    operation: KernelOperation
    pid: int
    size: int = 0
    path: Optional[str] = None

    def __post_init__(self) -> None:
        self.operation = KernelOperation(self.operation)
        if self.operation is KernelOperation.INIT_PROCESS and self.path is None:
            raise ValueError("a process creation request needs a path")

    def to_packet(self) -> Packet:
        packet = (
            Packet()
            .add(_I32.pack(self.operation))
            .add(_U32.pack(self.pid))
            .add(_U32.pack(self.size))
        )
        if self.path is not None:
            packet.add(self.path.encode("utf-8") + b"\0")
        return packet


class CpuOperation(enum.IntEnum):
    """Operation the CPU asks memory to perform."""

    FETCH_INSTRUCTION = 0
    FRAME_NUMBER = 1
    READ = 2
    WRITE = 3


_CPU_ITEM_COUNT = {
    CpuOperation.FETCH_INSTRUCTION: 3,
    CpuOperation.FRAME_NUMBER: 3,
    CpuOperation.READ: 4,
    CpuOperation.WRITE: 5,
}


@dataclass
class CpuRequest:
    """A CPU request; which fields matter depends on the operation."""

    operation: CpuOperation
    pid: int
    program_counter: int = 0
    entries_per_level: Optional[str] = None
    physical_address: int = 0
    size: int = 0
    data: Optional[bytes] = None

    def __post_init__(self) -> None:
        self.operation = CpuOperation(self.operation)
        if self.operation is CpuOperation.FRAME_NUMBER and self.entries_per_level is None:
            raise ValueError("a frame number request needs the entries per level")
        if self.operation is CpuOperation.WRITE:
            if self.data is None:
                raise ValueError("a write request needs data")
            self.data = bytes(self.data)

    @staticmethod
    def fetch_instruction(pid: int, program_counter: int) -> CpuRequest:
        return CpuRequest(CpuOperation.FETCH_INSTRUCTION, pid, program_counter=program_counter)

    @staticmethod
    def frame_number(pid: int, entries_per_level: str) -> CpuRequest:
        return CpuRequest(CpuOperation.FRAME_NUMBER, pid, entries_per_level=entries_per_level)

    @staticmethod
    def read(pid: int, physical_address: int, size: int) -> CpuRequest:
        return CpuRequest(
            CpuOperation.READ, pid, physical_address=physical_address, size=size
        )

    @staticmethod
    def write(pid: int, physical_address: int, data: bytes) -> CpuRequest:
        data = bytes(data)
        return CpuRequest(
            CpuOperation.WRITE,
            pid,
            physical_address=physical_address,
            size=len(data),
            data=data,
        )

    def to_packet(self) -> Packet:
        packet = Packet().add(_I32.pack(self.operation)).add(_U32.pack(self.pid))
        if self.operation is CpuOperation.FETCH_INSTRUCTION:
            packet.add(_U32.pack(self.program_counter))
        elif self.operation is CpuOperation.FRAME_NUMBER:
            packet.add(self.entries_per_level.encode("utf-8") + b"\0")
        else:
            packet.add(_U32.pack(self.physical_address)).add(_U32.pack(self.size))
            if self.operation is CpuOperation.WRITE:
                packet.add(self.data[: self.size])
        return packet


def send_kernel_request(sock: socket.socket, request: KernelRequest) -> None:
    send_packet(sock, request.to_packet())


def recv_kernel_request(sock: socket.socket) -> KernelRequest:
    items = recv_packet(sock)
    if len(items) < 3:
        raise ProtocolError(f"kernel request packet has {len(items)} items")
    try:
        operation = KernelOperation(_unpack(_I32, items[0]))
    except ValueError as exc:
        raise ProtocolError("unknown kernel operation") from exc
    path = None
    if operation is KernelOperation.INIT_PROCESS:
        if len(items) < 4:
            raise ProtocolError("process creation request without path")
        path = _c_string(items[3])
    return KernelRequest(
        operation=operation,
        pid=_unpack(_U32, items[1]),
        size=_unpack(_U32, items[2]),
        path=path,
    )


def send_cpu_request(sock: socket.socket, request: CpuRequest) -> None:
    send_packet(sock, request.to_packet())


def recv_cpu_request(sock: socket.socket) -> CpuRequest:
    items = recv_packet(sock)
    if len(items) < 2:
        raise ProtocolError(f"CPU request packet has {len(items)} items")
    try:
        operation = CpuOperation(_unpack(_I32, items[0]))
    except ValueError as exc:
        raise ProtocolError("unknown CPU operation") from exc
    if len(items) < _CPU_ITEM_COUNT[operation]:
        raise ProtocolError(
            f"{operation.name} request packet has {len(items)} items"
        )
    pid = _unpack(_U32, items[1])
    if operation is CpuOperation.FETCH_INSTRUCTION:
        return CpuRequest.fetch_instruction(pid, _unpack(_U32, items[2]))
    if operation is CpuOperation.FRAME_NUMBER:
        return CpuRequest.frame_number(pid, _c_string(items[2]))
    address = _unpack(_U32, items[2])
    size = _unpack(_U32, items[3])
    if operation is CpuOperation.READ:
        return CpuRequest.read(pid, address, size)
    if len(items[4]) < size:
        raise ProtocolError("write request carries fewer bytes than announced")
    return CpuRequest.write(pid, address, items[4][:size])


def _atoi(token: str) -> int:
    text = token.lstrip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


def parse_entries_per_level(text: str) -> list[int]:
    """Split a space-separated list of table entries into integers.

    Tokens that are not numbers count as 0.
    """
    return [_atoi(token) for token in text.split(" ")]