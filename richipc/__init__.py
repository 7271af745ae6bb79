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
richipc - a Python 3 client for the Discord Rich Presence IPC.

.. currentmodule:: richipc

.. autosummary::
    :toctree:

    ipc
    dataclasses

    exc
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("discord-richipc")
except PackageNotFoundError:
    __version__ = "0.0.0"

from richipc.dataclasses.presence import RichPresence
from richipc.exc import ConnectError, CouldNotConnect, DecodeError, FramingError, \
    HandshakeRejected, InvalidErrorCode, IPCError, MalformedHeader, MalformedOpcode, \
    NoLocationHint, NotConnected, RichIPCError, TransportError
from richipc.ipc.client import ConnectionState, IPCClient, raise_for_error
from richipc.ipc.packet import IPCOpcode, IPCPacket
from richipc.ipc.response import ActivityCmd, ActivityEvent, CommandResponse, \
    CriticalErrorCode, ErrorResponse, NonCriticalErrorCode
from richipc.ipc.transport import Transport, UnixSocketTransport, WindowsPipeTransport, \
    get_transport
