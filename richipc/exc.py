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
Exceptions raised from within the library.

.. currentmodule:: richipc.exc
"""


class RichIPCError(Exception):
    """
    The base class for all richipc exceptions.
    """


# Connection establishment.
class ConnectError(RichIPCError, ConnectionError):
    """
    Raised when a connection to the Discord IPC could not be established.
    """


class NoLocationHint(ConnectError):
    """
    Raised when none of the environment variables that locate the IPC socket directory are set.

    :ivar env_keys: The environment keys that were checked, in order.
    """

    def __init__(self, env_keys):
        self.env_keys = tuple(env_keys)

    def __str__(self) -> str:
        return "Could not resolve the IPC socket directory (checked {})"\
            .format(", ".join(self.env_keys))

    __repr__ = __str__


class CouldNotConnect(ConnectError):
    """
    Raised when every candidate IPC endpoint refused the connection.

    :ivar error: The :class:`OSError` raised by the last endpoint tried.
    """

    def __init__(self, error: OSError):
        self.error = error

    def __str__(self) -> str:
        return "Could not connect to the Discord IPC socket: {}".format(self.error)

    __repr__ = __str__


class NotConnected(RichIPCError, RuntimeError):
    """
    Raised when an operation needs an open connection, but the client is not connected.
    """


class TransportError(RichIPCError, ConnectionError):
    """
    Raised when reading from, writing to or closing the IPC channel fails.
    """


# Framing.
class FramingError(RichIPCError, ValueError):
    """
    Raised when a frame header cannot be packed or unpacked.
    """


class MalformedHeader(FramingError):
    """
    Raised when a frame header is too short, or its fields don't fit in 32 bits.
    """


class MalformedOpcode(FramingError):
    """
    Raised when a frame carries an opcode this library doesn't know about.

    :ivar opcode: The raw opcode value.
    """

    def __init__(self, opcode: int):
        self.opcode = opcode

    def __str__(self) -> str:
        return "Malformed opcode: {}".format(self.opcode)

    __repr__ = __str__


# Decoding.
class DecodeError(RichIPCError, ValueError):
    """
    Raised when a frame body cannot be decoded into a response.
    """


class InvalidErrorCode(DecodeError):
    """
    Raised when an error code matches none of the known error code tables.

    :ivar code: The raw error code.
    """

    def __init__(self, code: int):
        self.code = code

    def __str__(self) -> str:
        return "Invalid error code: {}".format(self.code)

    __repr__ = __str__


# Protocol-reported errors.
class IPCError(RichIPCError):
    """
    Represents an error reported by Discord over the IPC protocol.

    :ivar response: The :class:`~.ErrorResponse` Discord sent.
    """

    def __init__(self, response):
        self.response = response

    @property
    def code(self):
        """
        :return: The decoded error code for this error.
        """
        return self.response.code

    @property
    def message(self) -> str:
        """
        :return: The human readable message Discord sent with this error.
        """
        return self.response.message

    def __str__(self) -> str:
        return "Discord IPC error [{}]: {}".format(self.code.name, self.message)

    __repr__ = __str__


class HandshakeRejected(IPCError):
    """
    Raised in strict handshake mode when Discord does not acknowledge the handshake with READY.

    :ivar reason: Why the acknowledgment was rejected.
    :ivar response: The decoded acknowledgment, or None if it was a CLOSE frame.
    """

    def __init__(self, reason: str, response=None):
        super().__init__(response)
        self.reason = reason

    def __str__(self) -> str:
        return "Handshake rejected: {}".format(self.reason)

    __repr__ = __str__
