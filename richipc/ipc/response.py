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
Decoding of the responses Discord sends back over IPC.

A response body is either a command echo, or an error notification carrying ``error`` and
``message`` keys. There is no type tag; the shape is decided by which keys are present.

.. currentmodule:: richipc.ipc.response
"""
import enum
import json
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Type, Union

from richipc.exc import DecodeError, InvalidErrorCode


class ActivityCmd(enum.Enum):
    """
    Represents a command sent to, or echoed back by, Discord.
    """
    DISPATCH = "DISPATCH"
    AUTHORIZE = "AUTHORIZE"
    AUTHENTICATE = "AUTHENTICATE"
    GET_GUILD = "GET_GUILD"
    GET_GUILDS = "GET_GUILDS"
    GET_CHANNEL = "GET_CHANNEL"
    GET_CHANNELS = "GET_CHANNELS"
    CREATE_CHANNEL_INVITE = "CREATE_CHANNEL_INVITE"
    GET_RELATIONSHIPS = "GET_RELATIONSHIPS"
    GET_USER = "GET_USER"
    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"
    SET_USER_VOICE_SETTINGS = "SET_USER_VOICE_SETTINGS"
    SET_USER_VOICE_SETTINGS_2 = "SET_USER_VOICE_SETTINGS_2"
    SELECT_VOICE_CHANNEL = "SELECT_VOICE_CHANNEL"
    GET_SELECTED_VOICE_CHANNEL = "GET_SELECTED_VOICE_CHANNEL"
    SELECT_TEXT_CHANNEL = "SELECT_TEXT_CHANNEL"
    GET_VOICE_SETTINGS = "GET_VOICE_SETTINGS"
    SET_VOICE_SETTINGS_2 = "SET_VOICE_SETTINGS_2"
    SET_VOICE_SETTINGS = "SET_VOICE_SETTINGS"
    CAPTURE_SHORTCUT = "CAPTURE_SHORTCUT"
    SET_ACTIVITY = "SET_ACTIVITY"
    SEND_ACTIVITY_JOIN_INVITE = "SEND_ACTIVITY_JOIN_INVITE"
    CLOSE_ACTIVITY_JOIN_REQUEST = "CLOSE_ACTIVITY_JOIN_REQUEST"
    ACTIVITY_INVITE_USER = "ACTIVITY_INVITE_USER"
    ACCEPT_ACTIVITY_INVITE = "ACCEPT_ACTIVITY_INVITE"
    INVITE_BROWSER = "INVITE_BROWSER"
    DEEP_LINK = "DEEP_LINK"
    CONNECTIONS_CALLBACK = "CONNECTIONS_CALLBACK"
    BRAINTREE_POPUP_BRIDGE_CALLBACK = "BRAINTREE_POPUP_BRIDGE_CALLBACK"
    GIFT_CODE_BROWSER = "GIFT_CODE_BROWSER"
    GUILD_TEMPLATE_BROWSER = "GUILD_TEMPLATE_BROWSER"
    OVERLAY = "OVERLAY"
    BROWSER_HANDOFF = "BROWSER_HANDOFF"
    SET_CERTIFIED_DEVICES = "SET_CERTIFIED_DEVICES"
    GET_IMAGE = "GET_IMAGE"
    CREATE_LOBBY = "CREATE_LOBBY"
    UPDATE_LOBBY = "UPDATE_LOBBY"
    DELETE_LOBBY = "DELETE_LOBBY"
    UPDATE_LOBBY_MEMBER = "UPDATE_LOBBY_MEMBER"
    CONNECT_TO_LOBBY = "CONNECT_TO_LOBBY"
    DISCONNECT_FROM_LOBBY = "DISCONNECT_FROM_LOBBY"
    SEND_TO_LOBBY = "SEND_TO_LOBBY"
    SEARCH_LOBBIES = "SEARCH_LOBBIES"
    CONNECT_TO_LOBBY_VOICE = "CONNECT_TO_LOBBY_VOICE"
    DISCONNECT_FROM_LOBBY_VOICE = "DISCONNECT_FROM_LOBBY_VOICE"
    SET_OVERLAY_LOCKED = "SET_OVERLAY_LOCKED"
    OPEN_OVERLAY_ACTIVITY_INVITE = "OPEN_OVERLAY_ACTIVITY_INVITE"
    OPEN_OVERLAY_GUILD_INVITE = "OPEN_OVERLAY_GUILD_INVITE"
    OPEN_OVERLAY_VOICE_SETTINGS = "OPEN_OVERLAY_VOICE_SETTINGS"
    VALIDATE_APPLICATION = "VALIDATE_APPLICATION"
    GET_ENTITLEMENT_TICKET = "GET_ENTITLEMENT_TICKET"
    GET_APPLICATION_TICKET = "GET_APPLICATION_TICKET"
    START_PURCHASE = "START_PURCHASE"
    GET_SKUS = "GET_SKUS"
    GET_ENTITLEMENTS = "GET_ENTITLEMENTS"
    GET_NETWORKING_CONFIG = "GET_NETWORKING_CONFIG"
    NETWORKING_SYSTEM_METRICS = "NETWORKING_SYSTEM_METRICS"
    NETWORKING_PEER_METRICS = "NETWORKING_PEER_METRICS"
    NETWORKING_CREATE_TOKEN = "NETWORKING_CREATE_TOKEN"
    SET_USER_ACHIEVEMENT = "SET_USER_ACHIEVEMENT"
    GET_USER_ACHIEVEMENTS = "GET_USER_ACHIEVEMENTS"


class ActivityEvent(enum.Enum):
    """
    Represents an event name. Events with cmd ``SUBSCRIBE`` or ``DISPATCH`` carry one of these.
    """
    CURRENT_USER_UPDATE = "CURRENT_USER_UPDATE"
    GUILD_STATUS = "GUILD_STATUS"
    GUILD_CREATE = "GUILD_CREATE"
    CHANNEL_CREATE = "CHANNEL_CREATE"
    RELATIONSHIP_UPDATE = "RELATIONSHIP_UPDATE"
    VOICE_CHANNEL_SELECT = "VOICE_CHANNEL_SELECT"
    VOICE_STATE_CREATE = "VOICE_STATE_CREATE"
    VOICE_STATE_DELETE = "VOICE_STATE_DELETE"
    VOICE_STATE_UPDATE = "VOICE_STATE_UPDATE"
    VOICE_SETTINGS_UPDATE = "VOICE_SETTINGS_UPDATE"
    VOICE_SETTINGS_UPDATE_2 = "VOICE_SETTINGS_UPDATE_2"
    VOICE_CONNECTION_STATUS = "VOICE_CONNECTION_STATUS"
    SPEAKING_START = "SPEAKING_START"
    SPEAKING_STOP = "SPEAKING_STOP"
    GAME_JOIN = "GAME_JOIN"
    GAME_SPECTATE = "GAME_SPECTATE"
    ACTIVITY_JOIN = "ACTIVITY_JOIN"
    ACTIVITY_JOIN_REQUEST = "ACTIVITY_JOIN_REQUEST"
    ACTIVITY_SPECTATE = "ACTIVITY_SPECTATE"
    ACTIVITY_INVITE = "ACTIVITY_INVITE"
    NOTIFICATION_CREATE = "NOTIFICATION_CREATE"
    MESSAGE_CREATE = "MESSAGE_CREATE"
    MESSAGE_UPDATE = "MESSAGE_UPDATE"
    MESSAGE_DELETE = "MESSAGE_DELETE"
    LOBBY_DELETE = "LOBBY_DELETE"
    LOBBY_UPDATE = "LOBBY_UPDATE"
    LOBBY_MEMBER_CONNECT = "LOBBY_MEMBER_CONNECT"
    LOBBY_MEMBER_DISCONNECT = "LOBBY_MEMBER_DISCONNECT"
    LOBBY_MEMBER_UPDATE = "LOBBY_MEMBER_UPDATE"
    LOBBY_MESSAGE = "LOBBY_MESSAGE"
    CAPTURE_SHORTCUT_CHANGE = "CAPTURE_SHORTCUT_CHANGE"
    OVERLAY = "OVERLAY"
    OVERLAY_UPDATE = "OVERLAY_UPDATE"
    ENTITLEMENT_CREATE = "ENTITLEMENT_CREATE"
    ENTITLEMENT_DELETE = "ENTITLEMENT_DELETE"
    USER_ACHIEVEMENT_UPDATE = "USER_ACHIEVEMENT_UPDATE"
    READY = "READY"
    ERROR = "ERROR"


class CriticalErrorCode(enum.IntEnum):
    """
    Error codes that end the connection or session.
    """
    CLOSE_NORMAL = 1000
    CLOSE_UNSUPPORTED = 1003
    CLOSE_ABNORMAL = 1006
    INVALID_CLIENT_ID = 4000
    INVALID_ORIGIN = 4001
    RATE_LIMITED = 4002
    TOKEN_REVOKED = 4003
    INVALID_VERSION = 4004
    INVALID_ENCODING = 4005


class NonCriticalErrorCode(enum.IntEnum):
    """
    Error codes for a single failed command.
    """
    UNKNOWN_ERROR = 1000
    SERVICE_UNAVAILABLE = 1001
    TRANSACTION_ABORTED = 1002
    INVALID_PAYLOAD = 4000
    INVALID_COMMAND = 4002
    INVALID_GUILD = 4003
    INVALID_EVENT = 4004
    INVALID_CHANNEL = 4005
    INVALID_PERMISSIONS = 4006
    INVALID_CLIENT_ID = 4007
    INVALID_ORIGIN = 4008
    INVALID_TOKEN = 4009
    INVALID_USER = 4010
    INVALID_INVITE = 4011
    INVALID_ACTIVITY_JOIN_REQUEST = 4012
    INVALID_LOBBY = 4013
    INVALID_LOBBY_SECRET = 4014
    INVALID_ENTITLEMENT = 4015
    INVALID_GIFT_CODE = 4016
    OAUTH2_ERROR = 5000
    SELECT_CHANNEL_TIMED_OUT = 5001
    GET_GUILD_TIMED_OUT = 5002
    SELECT_VOICE_FORCE_REQUIRED = 5003
    CAPTURE_SHORTCUT_ALREADY_LISTENING = 5004
    INVALID_ACTIVITY_SECRET = 5005
    NO_ELIGIBLE_ACTIVITY = 5006
    LOBBY_FULL = 5007
    PURCHASE_CANCELED = 5008
    PURCHASE_ERROR = 5009
    UNAUTHORIZED_FOR_ACHIEVEMENT = 5010
    RATE_LIMITED = 5011


_MISSING = object()

ErrorCode = Union[CriticalErrorCode, NonCriticalErrorCode]

#: The order error code tables are tried in. The two tables share values (1000 is both
#: CLOSE_NORMAL and UNKNOWN_ERROR); the critical table wins.
DEFAULT_ERROR_CODE_ORDER = (CriticalErrorCode, NonCriticalErrorCode)


def resolve_error_code(value: Any,
                       order: Sequence[Type[enum.IntEnum]] = DEFAULT_ERROR_CODE_ORDER) -> ErrorCode:
    """
    Resolves a raw error code against each error code table in turn.

    :param value: The raw code.
    :param order: The tables to try, first match wins.
    :return: The member of the first table that knows this code.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError("Error code must be an integer, not {!r}".format(value))

    for table in order:
        try:
            return table(value)
        except ValueError:
            continue

    raise InvalidErrorCode(value)


@dataclass
class ErrorResponse:
    """
    An error notification from Discord.
    """

    #: The decoded error code.
    code: ErrorCode

    #: A human readable message.
    message: str

    @property
    def critical(self) -> bool:
        """
        :return: If this error ends the connection.
        """
        return isinstance(self.code, CriticalErrorCode)


@dataclass
class CommandResponse:
    """
    A command echo or event dispatch from Discord.
    """

    #: The command this responds to.
    cmd: ActivityCmd

    #: The payload of this response.
    data: Any = None

    #: The nonce of the request that triggered this response.
    nonce: Optional[str] = None

    #: The arguments of the request that triggered this response.
    args: Any = None

    #: The event this is, if any.
    evt: Optional[ActivityEvent] = None

    #: The error code tables used to decode :attr:`error`.
    error_code_order: Sequence[Type[enum.IntEnum]] = field(default=DEFAULT_ERROR_CODE_ORDER,
                                                           repr=False, compare=False)

    @property
    def error(self) -> Optional[ErrorResponse]:
        """
        Discord also reports a failed command as an echo with an ``ERROR`` event, with the code
        and message in ``data``.

        :return: The :class:`.ErrorResponse` carried by this response, or None.
        """
        if self.evt != ActivityEvent.ERROR or not isinstance(self.data, dict):
            return None

        code = resolve_error_code(self.data.get("code"), self.error_code_order)
        return ErrorResponse(code=code, message=str(self.data.get("message", "")))


Response = Union[CommandResponse, ErrorResponse]


def _decode_enum(enum_type: Type[enum.Enum], key: str, value: Any, optional: bool = True):
    if value is None and optional:
        return None

    try:
        return enum_type(value)
    except ValueError:
        raise DecodeError("invalid response: unknown {} {!r}".format(key, value)) from None


def _decode_command(fields: dict, order: Sequence[Type[enum.IntEnum]]) -> CommandResponse:
    if "cmd" not in fields:
        raise DecodeError("invalid response: missing field 'cmd'")

    if "data" not in fields:
        raise DecodeError("invalid response: missing field 'data'")

    nonce = fields.get("nonce")
    if nonce is not None and not isinstance(nonce, str):
        raise DecodeError("invalid response: nonce must be a string, not {!r}".format(nonce))

    return CommandResponse(
        cmd=_decode_enum(ActivityCmd, "cmd", fields["cmd"], optional=False),
        data=fields["data"],
        nonce=nonce,
        args=fields.get("args"),
        evt=_decode_enum(ActivityEvent, "evt", fields.get("evt")),
        error_code_order=order,
    )


def decode_response(obj: Any,
                    order: Sequence[Type[enum.IntEnum]] = DEFAULT_ERROR_CODE_ORDER) -> Response:
    """
    Decodes a parsed JSON object into a response.

    :param obj: The parsed JSON object.
    :param order: The error code tables to try, in order.
    :return: An :class:`.ErrorResponse` if the object has both ``error`` and ``message``, \
        otherwise a :class:`.CommandResponse`.
    """
    if not isinstance(obj, dict):
        raise DecodeError("invalid response: expected an object, got {}".format(type(obj).__name__))

    # one pass over the keys; stop as soon as both error fields are seen
    error = message = _MISSING
    remaining = {}
    for key, value in obj.items():
        if key == "error":
            error = value
        elif key == "message":
            message = value
        else:
            remaining[key] = value

        if error is not _MISSING and message is not _MISSING:
            break

    if error is not _MISSING and message is not _MISSING:
        if not isinstance(message, str):
            raise DecodeError("invalid response: message must be a string, not {!r}"
                              .format(message))

        return ErrorResponse(code=resolve_error_code(error, order), message=message)

    # put back a lone error or message key, unknown keys are ignored anyway
    if error is not _MISSING:
        remaining["error"] = error
    if message is not _MISSING:
        remaining["message"] = message

    return _decode_command(remaining, order)


def parse_response(body: bytes,
                   order: Sequence[Type[enum.IntEnum]] = DEFAULT_ERROR_CODE_ORDER) -> Response:
    """
    Parses a frame body into a response.

    :param body: The raw UTF-8 JSON body.
    :param order: The error code tables to try, in order.
    """
    try:
        obj = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError("invalid response: {}".format(e)) from e

    return decode_response(obj, order)
