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
Byte channels to the Discord client. A transport owns one platform-native duplex channel (a Unix
domain socket, or a Windows named pipe) and knows how to find it.

.. currentmodule:: richipc.ipc.transport
"""
import abc
import logging
import os
import socket
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from richipc.exc import CouldNotConnect, NoLocationHint, NotConnected, TransportError

logger = logging.getLogger("richipc.ipc.transport")

#: Environment keys that may point at the directory holding the IPC socket, in priority order.
ENV_KEYS = ("XDG_RUNTIME_DIR", "TMPDIR", "TMP", "TEMP")

#: Discord binds one of these slots, depending on how many instances are running.
DEFAULT_SLOTS = range(10)

PIPE_NAME = "discord-ipc-{}"


class Transport(abc.ABC):
    """
    A blocking duplex byte channel to the Discord IPC.

    Subclasses provide the list of candidate endpoints, and how to open, read, write and close one.
    """

    def __init__(self, *, slots: Iterable[int] = DEFAULT_SLOTS):
        """
        :param slots: The IPC slots to try, in order.
        """
        self.slots = list(slots)

    @property
    @abc.abstractmethod
    def connected(self) -> bool:
        """
        :return: If this transport currently has an open channel.
        """

    @abc.abstractmethod
    def candidates(self) -> List[str]:
        """
        :return: The endpoints to try when connecting, in order.
        """

    @abc.abstractmethod
    def _open(self, endpoint: str) -> None:
        """
        Opens a single endpoint. Raises :class:`OSError` on failure.
        """

    @abc.abstractmethod
    def _read_into(self, view: memoryview) -> int:
        """
        Reads some bytes into ``view``, returning how many were read. 0 means end of stream.
        """

    @abc.abstractmethod
    def _write(self, data: bytes) -> None:
        """
        Writes all of ``data``.
        """

    @abc.abstractmethod
    def _close(self) -> None:
        """
        Flushes and shuts down the open channel.
        """

    @abc.abstractmethod
    def _forget(self) -> None:
        """
        Drops the handle to the channel, whether or not it shut down cleanly.
        """

    def _check_connected(self):
        if not self.connected:
            raise NotConnected("Transport is not connected")

    def connect(self) -> str:
        """
        Connects to the first candidate endpoint that accepts the connection.

        :return: The endpoint that was connected to.
        """
        if self.connected:
            raise RuntimeError("Transport is already connected")

        last_error = None  # type: Optional[OSError]

        for endpoint in self.candidates():
            try:
                self._open(endpoint)
            except OSError as e:
                logger.debug("Could not connect to {}: {}".format(endpoint, e))
                last_error = e
                continue

            logger.debug("Connected to IPC endpoint {}".format(endpoint))
            return endpoint

        if last_error is None:
            last_error = FileNotFoundError("No IPC endpoints to try")

        raise CouldNotConnect(last_error) from last_error

    def read_exact(self, size: int) -> bytes:
        """
        Reads exactly ``size`` bytes, blocking until they are all available.
        """
        self._check_connected()
        buf = bytearray(size)
        view = memoryview(buf)
        pos = 0

        while pos < size:
            try:
                read = self._read_into(view[pos:])
            except OSError as e:
                raise TransportError("Failed to read from the IPC channel: {}".format(e)) from e

            if not read:
                raise TransportError("IPC channel closed after {} of {} bytes".format(pos, size))

            pos += read

        return bytes(buf)

    def write_all(self, data: bytes) -> None:
        """
        Writes all of ``data``, blocking until it has been written.
        """
        self._check_connected()
        try:
            self._write(data)
        except OSError as e:
            raise TransportError("Failed to write to the IPC channel: {}".format(e)) from e

    def close(self) -> None:
        """
        Flushes and shuts down the channel. The channel is dropped even if shutting down fails.
        """
        self._check_connected()
        try:
            self._close()
        except OSError as e:
            raise TransportError("Failed to close the IPC channel: {}".format(e)) from e
        finally:
            self._forget()

        logger.debug("Closed IPC channel")


class UnixSocketTransport(Transport):
    """
    A transport over a Unix domain socket, found in the user's runtime or temporary directory.
    """

    def __init__(self, *, environ: Mapping[str, str] = None, env_keys: Iterable[str] = ENV_KEYS,
                 slots: Iterable[int] = DEFAULT_SLOTS):
        """
        :param environ: The environment to look up the socket directory in. Defaults to \
            :data:`os.environ`.
        :param env_keys: The environment keys to check, in priority order.
        :param slots: The IPC slots to try, in order.
        """
        super().__init__(slots=slots)
        self.environ = os.environ if environ is None else environ
        self.env_keys = tuple(env_keys)

        self._sock = None  # type: socket.socket

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def get_base_path(self) -> Path:
        """
        :return: The directory the IPC sockets live in.
        """
        for key in self.env_keys:
            value = self.environ.get(key)
            if value is not None:
                return Path(value)

        raise NoLocationHint(self.env_keys)

    def candidates(self) -> List[str]:
        base = self.get_base_path()
        return [str(base / PIPE_NAME.format(slot)) for slot in self.slots]

    def _open(self, endpoint: str) -> None:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(endpoint)
        except OSError:
            sock.close()
            raise

        self._sock = sock

    def _read_into(self, view: memoryview) -> int:
        return self._sock.recv_into(view)

    def _write(self, data: bytes) -> None:
        self._sock.sendall(data)

    def _close(self) -> None:
        self._sock.shutdown(socket.SHUT_RDWR)

    def _forget(self) -> None:
        sock, self._sock = self._sock, None
        sock.close()


class WindowsPipeTransport(Transport):
    """
    A transport over a Windows named pipe.
    """

    def __init__(self, *, slots: Iterable[int] = DEFAULT_SLOTS):
        super().__init__(slots=slots)

        self._pipe = None

    @property
    def connected(self) -> bool:
        return self._pipe is not None

    def candidates(self) -> List[str]:
        return [r"\\?\pipe\{}".format(PIPE_NAME.format(slot)) for slot in self.slots]

    def _open(self, endpoint: str) -> None:
        self._pipe = open(endpoint, "r+b", buffering=0)

    def _read_into(self, view: memoryview) -> int:
        return self._pipe.readinto(view)

    def _write(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            written = self._pipe.write(view)
            view = view[written:]

    def _close(self) -> None:
        self._pipe.flush()

    def _forget(self) -> None:
        pipe, self._pipe = self._pipe, None
        pipe.close()


def get_transport() -> Transport:
    """
    :return: A new :class:`.Transport` for the current platform.
    """
    if os.name == "nt":
        return WindowsPipeTransport()

    return UnixSocketTransport()
