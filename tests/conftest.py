import json
import struct
from typing import List

import pytest

from richipc.ipc.transport import Transport


def make_frame(opcode: int, body) -> bytes:
    """
    Builds a raw frame. ``body`` may be raw bytes, or an object to encode as JSON.
    """
    if not isinstance(body, bytes):
        body = json.dumps(body).encode("utf-8")

    return struct.pack("<II", opcode, len(body)) + body


def split_frames(data: bytes) -> List[tuple]:
    """
    Splits a byte stream into (opcode, decoded JSON body) tuples.
    """
    frames = []
    while data:
        opcode, length = struct.unpack("<II", data[:8])
        frames.append((opcode, json.loads(data[8:8 + length].decode("utf-8"))))
        data = data[8 + length:]

    return frames


class FakeTransport(Transport):
    """
    An in-memory transport. Endpoints listed in ``refuse`` fail to open.
    """

    def __init__(self, inbound: bytes = b"", refuse=(), slots=range(10)):
        super().__init__(slots=slots)
        self.inbound = bytearray(inbound)
        self.written = bytearray()
        self.refuse = set(refuse)
        self.attempts = []
        self.opened = None
        self.fail_writes = False
        self.fail_close = False
        self.closes = 0

    @property
    def connected(self) -> bool:
        return self.opened is not None

    def candidates(self):
        return ["fake-ipc-{}".format(slot) for slot in self.slots]

    def _open(self, endpoint):
        self.attempts.append(endpoint)
        if endpoint in self.refuse or "*" in self.refuse:
            raise ConnectionRefusedError(111, "Connection refused", endpoint)

        self.opened = endpoint

    def _read_into(self, view):
        size = min(len(view), len(self.inbound))
        view[:size] = self.inbound[:size]
        del self.inbound[:size]
        return size

    def _write(self, data):
        if self.fail_writes:
            raise BrokenPipeError(32, "Broken pipe")

        self.written += data

    def _close(self):
        self.closes += 1
        if self.fail_close:
            raise OSError(107, "Transport endpoint is not connected")

    def _forget(self):
        self.opened = None

    def feed(self, opcode: int, body) -> None:
        self.inbound += make_frame(opcode, body)

    def frames(self):
        return split_frames(bytes(self.written))


READY = {
    "cmd": "DISPATCH",
    "data": {"v": 1, "config": {}, "user": {"id": "1", "username": "test"}},
    "evt": "READY",
    "nonce": None,
}


@pytest.fixture
def transport():
    return FakeTransport()
