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
The client for an IPC connection.

.. currentmodule:: richipc.ipc.client
"""
import enum
import logging
import os
import uuid
from typing import Any, Optional, Sequence, Tuple, Type

from richipc.exc import HandshakeRejected, IPCError, NotConnected, RichIPCError
from richipc.ipc.packet import HEADER_SIZE, IPCOpcode, IPCPacket, to_opcode, unpack
from richipc.ipc.response import ActivityCmd, ActivityEvent, CommandResponse, \
    DEFAULT_ERROR_CODE_ORDER, ErrorResponse, Response, parse_response
from richipc.ipc.transport import Transport, get_transport


def get_nonce() -> str:
    """
    Gets a random nonce.
    """
    return str(uuid.uuid4())


def raise_for_error(response: Response) -> Response:
    """
    Raises an :class:`.IPCError` if ``response`` reports an error, in either shape.

    :return: The response, unchanged, if it is not an error.
    """
    if isinstance(response, ErrorResponse):
        raise IPCError(response)

    error = response.error
    if error is not None:
        raise IPCError(error)

    return response


class ConnectionState(enum.Enum):
    """
    Represents the state of an :class:`.IPCClient`'s connection.
    """
    #: Never connected.
    UNCONNECTED = 0

    #: Connected and handshaken.
    CONNECTED = 1

    #: Closed by :meth:`.IPCClient.close`, or after a failed handshake.
    CLOSED = 2


class IPCClient(object):
    """
    Represents an IPC (interprocess communication) client. This connects to the Discord client on
    the IPC socket.

    To use, create a new instance with your app's client ID:

    .. code-block:: python3

        ipc = IPCClient(323578534763298816)

    Make sure to connect the client before doing anything with it:

    .. code-block:: python3

        ipc.connect()
        ipc.set_activity(RichPresence(state="Hello world!"))
        ipc.close()

    The client can also be used as a context manager, which connects on entry and closes on exit.

    All methods block. A client must not be shared between threads without external locking.
    """
    VERSION = 1

    def __init__(self, client_id: int, *, transport: Transport = None,
                 strict_handshake: bool = False,
                 error_code_order: Sequence[Type[enum.IntEnum]] = DEFAULT_ERROR_CODE_ORDER):
        """
        :param client_id: The client ID to authenticate with.
        :param transport: The :class:`.Transport` to use. Defaults to the platform transport.
        :param strict_handshake: If the handshake acknowledgment should be checked for READY.
        :param error_code_order: The error code tables to try when decoding error codes.
        """
        self.client_id = client_id
        self.strict_handshake = strict_handshake
        self.error_code_order = tuple(error_code_order)

        self._transport = transport if transport is not None else get_transport()
        self._state = ConnectionState.UNCONNECTED
        self._logger = logging.getLogger("richipc.ipc.client")

    def __repr__(self) -> str:
        return "<IPCClient client_id={} state={}>".format(self.client_id, self._state.name)

    def __enter__(self) -> 'IPCClient':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._state == ConnectionState.CONNECTED:
            self.close()

        return False

    @property
    def state(self) -> ConnectionState:
        """
        :return: The :class:`.ConnectionState` of this client.
        """
        return self._state

    def _get_transport(self) -> Transport:
        """
        :return: The transport, if this client is connected.
        """
        if self._state != ConnectionState.CONNECTED:
            raise NotConnected("Client is not connected (state: {})".format(self._state.name))

        return self._transport

    # Connection management
    def connect(self) -> None:
        """
        Connects to the Discord IPC, and sends a handshake.
        """
        self.connect_ipc()
        self._logger.debug("Connected to Discord IPC")
        self.send_handshake()
        self._logger.debug("Sent handshake to Discord IPC")

    def reconnect(self) -> None:
        """
        Closes the active connection, if any, then connects and handshakes again.

        This does not retry; if it fails the client is left unconnected and it is up to the caller
        to try again.
        """
        self._logger.debug("Reconnecting to Discord IPC...")
        if self._state == ConnectionState.CONNECTED:
            try:
                self.close()
            except RichIPCError as e:
                self._logger.debug("Ignoring error while closing for reconnect: {}".format(e))

        self.connect()
        self._logger.debug("Reconnected to Discord IPC")

    def connect_ipc(self) -> None:
        """
        Opens the transport, without handshaking.
        """
        if self._state == ConnectionState.CONNECTED:
            raise RuntimeError("Client is already connected")

        self._transport.connect()
        self._state = ConnectionState.CONNECTED

    def send_handshake(self) -> None:
        """
        Sends the handshake, then reads exactly one frame as its acknowledgment.

        This is called by :meth:`.connect` and :meth:`.reconnect`. By default the acknowledgment
        is not checked; with ``strict_handshake`` anything but a READY dispatch raises
        :class:`.HandshakeRejected`. Either way, a failed handshake closes the transport.
        """
        data = {
            "v": IPCClient.VERSION,
            "client_id": str(self.client_id)
        }

        try:
            self.send(data, IPCOpcode.HANDSHAKE)
            opcode, body = self.read_frame()
            self._logger.debug("Handshake acknowledged [{}]: {!r}".format(opcode, body))

            if self.strict_handshake:
                self._check_handshake(opcode, body)
        except RichIPCError:
            self._abort()
            raise

    def _check_handshake(self, opcode: IPCOpcode, body: bytes) -> None:
        if opcode == IPCOpcode.CLOSE:
            raise HandshakeRejected("Discord closed the connection: {!r}".format(body))

        response = parse_response(body, self.error_code_order)
        if isinstance(response, ErrorResponse):
            raise HandshakeRejected("{} ({})".format(response.message, response.code.name),
                                    response)

        if response.cmd != ActivityCmd.DISPATCH or response.evt != ActivityEvent.READY:
            raise HandshakeRejected("Didn't receive a READY event", response)

    def _abort(self) -> None:
        """
        Drops a connection that failed mid-setup.
        """
        if self._transport.connected:
            try:
                self._transport.close()
            except RichIPCError as e:
                self._logger.debug("Ignoring error while aborting connection: {}".format(e))

        self._state = ConnectionState.CLOSED

    def close(self) -> None:
        """
        Sends a close notice to Discord, then shuts down the transport.

        Failing to send the close notice is ignored; failing to shut down the transport is not,
        although the client is considered closed either way.
        """
        transport = self._get_transport()

        try:
            self.send({}, IPCOpcode.CLOSE)
        except RichIPCError as e:
            self._logger.warning("Failed to send close notice: {}".format(e))

        try:
            transport.close()
        finally:
            self._state = ConnectionState.CLOSED

        self._logger.debug("Closed connection to Discord IPC")

    # Writer methods
    def send(self, payload: Any, opcode: IPCOpcode = IPCOpcode.FRAME) -> None:
        """
        Sends JSON data to the Discord IPC.

        :param payload: The JSON-serializable payload.
        :param opcode: The :class:`.IPCOpcode` to send it with.
        """
        transport = self._get_transport()
        packet = IPCPacket(to_opcode(opcode), payload)
        data = packet.serialize()

        self._logger.debug("Sending IPC message [{}]: {!r}".format(packet.opcode.value,
                                                                    data[HEADER_SIZE:]))
        transport.write_all(data)

    def _make_activity_command(self, activity: Optional[Any]) -> dict:
        return {
            "cmd": ActivityCmd.SET_ACTIVITY.value,
            "args": {
                "pid": os.getpid(),
                "activity": activity
            },
            "nonce": get_nonce(),
            "evt": None
        }

    def set_activity(self, activity: Any) -> None:
        """
        Sets the Rich Presence activity shown for this app.

        :param activity: A :class:`.RichPresence`, or a dict of activity fields.
        """
        self.send(self._make_activity_command(activity), IPCOpcode.FRAME)

    def clear_activity(self) -> None:
        """
        Clears the Rich Presence activity shown for this app.
        """
        self.send(self._make_activity_command(None), IPCOpcode.FRAME)

    # Reader methods
    def read_frame(self) -> Tuple[IPCOpcode, bytes]:
        """
        Reads a single frame off of the connection, without decoding the body.

        :return: A tuple of (opcode, raw body).
        """
        transport = self._get_transport()
        opcode, length = unpack(transport.read_exact(HEADER_SIZE))
        body = transport.read_exact(length)

        return to_opcode(opcode), body

    def recv(self) -> Tuple[IPCOpcode, Response]:
        """
        Reads and decodes a frame from the connection. Blocks until one arrives.

        Errors reported by Discord are returned as an :class:`.ErrorResponse`, not raised.

        :return: A tuple of (opcode, response).
        """
        opcode, body = self.read_frame()
        response = parse_response(body, self.error_code_order)
        self._logger.debug("Received IPC message [{}]: {!r}".format(opcode.value, response))

        return opcode, response

    # Convenience methods
    def send_rich_presence(self, activity: Any) -> CommandResponse:
        """
        Sets the Rich Presence activity, and waits for Discord to acknowledge it.

        :param activity: A :class:`.RichPresence`, or a dict of activity fields.
        :return: The :class:`.CommandResponse` Discord sent back.
        """
        self.set_activity(activity)
        _, response = self.recv()

        return raise_for_error(response)
