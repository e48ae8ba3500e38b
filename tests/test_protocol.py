import socket
import struct

import pytest

from pagemem.protocol import (
    OpCode,
    Packet,
    ProtocolError,
    recv_message,
    recv_packet,
    recv_signal,
    send_message,
    send_packet,
    send_signal,
)


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    left.settimeout(5)
    right.settimeout(5)
    yield left, right
    left.close()
    right.close()


def test_empty_packet_serializes_to_header_only():
    assert Packet().serialize() == bytes(8)


def test_serialize_header_matches_payload():
    packet = Packet().add(b"ab").add(b"xyz")
    frame = packet.serialize()
    op, size = struct.unpack_from("<ii", frame)
    assert op == OpCode.PACKET
    assert size == len(packet.payload)
    assert frame[8:] == packet.payload


def test_add_returns_packet_and_keeps_order():
    packet = Packet()
    assert packet.add(b"one").add(bytearray(b"two")) is packet
    assert packet.items == [b"one", b"two"]


def test_add_rejects_non_bytes():
    with pytest.raises(TypeError):
        Packet().add("text")


def test_packet_round_trip(pair):
    left, right = pair
    items = [b"\x01\x02", b"", b"hello"]
    packet = Packet()
    for item in items:
        packet.add(item)
    send_packet(left, packet)
    assert recv_packet(right) == items


def test_empty_packet_round_trip(pair):
    left, right = pair
    send_packet(left, Packet())
    assert recv_packet(right) == []


@pytest.mark.parametrize("value", [-1, 0, 123456, 2**31 - 1, -(2**31)])
def test_signal_round_trip(pair, value):
    left, right = pair
    send_signal(left, value)
    assert recv_signal(right) == value


def test_signal_wire_format(pair):
    left, right = pair
    left.sendall(struct.pack("<ii", int(OpCode.SIGNAL), 7))
    assert recv_signal(right) == 7


@pytest.mark.parametrize("text", ["hola mundo", "ñandú", ""])
def test_message_round_trip(pair, text):
    left, right = pair
    send_message(left, text)
    assert recv_message(right) == text


def test_message_is_nul_terminated_on_wire(pair):
    left, right = pair
    body = b"NOOP\0"
    left.sendall(struct.pack("<ii", int(OpCode.MESSAGE), len(body)) + body)
    assert recv_message(right) == "NOOP"


def test_unexpected_op_code_raises(pair):
    left, right = pair
    send_packet(left, Packet().add(b"x"))
    with pytest.raises(ProtocolError):
        recv_signal(right)


def test_closed_peer_raises(pair):
    left, right = pair
    left.close()
    with pytest.raises(ProtocolError):
        recv_packet(right)


def test_malformed_item_size_raises(pair):
    left, right = pair
    left.sendall(struct.pack("<ii", int(OpCode.PACKET), 6) + struct.pack("<i", 50) + b"ab")
    with pytest.raises(ProtocolError):
        recv_packet(right)