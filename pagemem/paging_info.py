"""Paging parameters that memory hands to the CPU on connection."""

from __future__ import annotations

import socket
import struct
from dataclasses import dataclass

from pagemem.protocol import Packet, ProtocolError, recv_packet, send_packet

_U32 = struct.Struct("<I")


@dataclass(frozen=True)
class PagingInfo:
    """Page size, entries per page table and number of table levels."""

    page_size: int
    entries_per_table: int
    levels: int

    def to_packet(self) -> Packet:
        """Packet carrying entries per table, levels and page size, in that order."""
        return (
            Packet()
            .add(_U32.pack(self.entries_per_table))
            .add(_U32.pack(self.levels))
            .add(_U32.pack(self.page_size))
        )


def send_paging_info(sock: socket.socket, info: PagingInfo) -> None:
    send_packet(sock, info.to_packet())


def recv_paging_info(sock: socket.socket) -> PagingInfo:
    items = recv_packet(sock)
    if len(items) < 3:
        raise ProtocolError(f"paging info packet has {len(items)} items")
    try:
        entries, levels, page_size = (_U32.unpack(item)[0] for item in items[:3])
    except struct.error as exc:
        raise ProtocolError("malformed paging info") from exc
    return PagingInfo(page_size=page_size, entries_per_table=entries, levels=levels)