import pytest

from richipc.exc import MalformedHeader, MalformedOpcode
from richipc.ipc.packet import IPCOpcode, IPCPacket, pack, to_opcode, unpack


@pytest.mark.parametrize("opcode,length", [
    (0, 0),
    (1, 24),
    (2, 0xFFFFFFFF),
    (0xFFFFFFFF, 1),
])
def test_header_round_trip(opcode, length):
    assert unpack(pack(opcode, length)) == (opcode, length)


def test_header_is_little_endian():
    assert pack(1, 258) == b"\x01\x00\x00\x00\x02\x01\x00\x00"


@pytest.mark.parametrize("data", [b"", b"\x01", b"\x01\x00\x00\x00\x02\x00\x00"])
def test_unpack_short_header(data):
    with pytest.raises(MalformedHeader):
        unpack(data)


def test_pack_out_of_range():
    with pytest.raises(MalformedHeader):
        pack(1, 1 << 32)

    with pytest.raises(MalformedHeader):
        pack(-1, 0)


def test_to_opcode():
    assert to_opcode(3) is IPCOpcode.PING

    with pytest.raises(MalformedOpcode) as e:
        to_opcode(9)

    assert e.value.opcode == 9


def test_serialize_is_compact_and_byte_counted():
    packet = IPCPacket(IPCOpcode.HANDSHAKE, {"v": 1, "client_id": "é"})
    data = packet.serialize()

    body = b'{"v":1,"client_id":"\\u00e9"}'
    assert data == pack(0, len(body)) + body


def test_serialize_uses_to_dict():
    class Activity:
        def to_dict(self):
            return {"state": "x"}

    data = IPCPacket(IPCOpcode.FRAME, {"activity": Activity()}).serialize()
    assert data[8:] == b'{"activity":{"state":"x"}}'


def test_deserialize():
    body = b'{"cmd":"SET_ACTIVITY"}'
    packet = IPCPacket.deserialize(pack(1, len(body)) + body)

    assert packet.opcode is IPCOpcode.FRAME
    assert packet.data == {"cmd": "SET_ACTIVITY"}


def test_deserialize_length_mismatch():
    with pytest.raises(MalformedHeader):
        IPCPacket.deserialize(pack(1, 10) + b"{}")


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_serialize_rejects_non_finite_floats(value):
    packet = IPCPacket(IPCOpcode.FRAME, {"activity": {"timestamps": {"start": value}}})

    with pytest.raises(ValueError):
        packet.serialize()
