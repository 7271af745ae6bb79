# This file is part of richipc.
#
# richipc is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# richipc is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with richipc.  If not, see <http://www.gnu.org/licenses/>.

"""
Represents a Discord IPC packet, and the 8-byte header that frames it.

.. currentmodule:: richipc.ipc.packet
"""
import enum
import json
import struct
from typing import Any, Tuple

from richipc.exc import MalformedHeader, MalformedOpcode

#: The header is two unsigned 32-bit ints, opcode then length, little endian.
HEADER = struct.Struct("<II")
HEADER_SIZE = HEADER.size


class IPCOpcode(enum.IntEnum):
    """
    Represents an IPC opcode.
    """
    HANDSHAKE = 0
    FRAME = 1
    CLOSE = 2
    PING = 3
    PONG = 4


def pack(opcode: int, length: int) -> bytes:
    """
    Packs a frame header.

    :param opcode: The opcode of the frame.
    :param length: The length of the frame body, in bytes.
    :return: The 8 header bytes.
    """
    try:
        return HEADER.pack(opcode, length)
    except struct.error as e:
        raise MalformedHeader("Cannot pack header ({}, {}): {}".format(opcode, length, e)) from e


def unpack(data: bytes) -> Tuple[int, int]:
    """
    Unpacks a frame header.

    :param data: The header bytes. Only the first 8 are used.
    :return: A tuple of (opcode, length).
    """
    if len(data) < HEADER_SIZE:
        raise MalformedHeader("Header needs {} bytes, got {}".format(HEADER_SIZE, len(data)))

    return HEADER.unpack_from(data)


def to_opcode(value: int) -> IPCOpcode:
    """
    Converts a raw opcode into an :class:`.IPCOpcode`.
    """
    try:
        return IPCOpcode(value)
    except ValueError:
        raise MalformedOpcode(value) from None


def _default(obj: Any):
    # builder objects such as RichPresence
    to_dict = getattr(obj, "to_dict", None)
    if to_dict is not None:
        return to_dict()

    raise TypeError("Object of type {} is not JSON serializable".format(type(obj).__name__))


def dump_json(data: Any) -> bytes:
    """
    Packs JSON in a compact representation.

    :param data: The data to pack.
    :return: The UTF-8 encoded JSON.
    """
    return json.dumps(data, indent=None, separators=(',', ':'), allow_nan=False,
                      default=_default).encode("utf-8")


class IPCPacket(object):
    """
    Represents an IPC packet.
    """
    __slots__ = "opcode", "data"

    def __init__(self, opcode: IPCOpcode, data: Any):
        """
        :param opcode: The :class:`.IPCOpcode` for this packet.
        :param data: The JSON-serializable data enclosed in this packet.
        """
        self.opcode = opcode
        self.data = data

    def __repr__(self) -> str:
        return "<IPCPacket opcode={!r} data={!r}>".format(self.opcode, self.data)

    def serialize(self) -> bytes:
        """
        Serializes this packet into a series of bytes.
        """
        body = dump_json(self.data)
        return pack(self.opcode, len(body)) + body

    @classmethod
    def deserialize(cls, data: bytes) -> 'IPCPacket':
        """
        Deserializes a full packet, header included.

        This method is not usually what you want; the client reads the header and the body
        separately.
        """
        opcode, length = unpack(data)
        body = data[HEADER_SIZE:]

        if len(body) != length:
            raise MalformedHeader("Header says {} body bytes, got {}".format(length, len(body)))

        return IPCPacket(to_opcode(opcode), json.loads(body.decode("utf-8")))
