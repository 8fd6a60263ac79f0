from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F


class ClientMessageType(StrEnum):
    JOIN = "join"
    CONTROLLER_ATTACH = "controller_attach"


class RelayMessageType(StrEnum):
    JOIN_CONFIRMATION = "join_confirmation"
    RECONNECTION_CONFIRMATION = "reconnection_confirmation"
    PLAYER_JOINED = "player_joined"
    AVATAR_SELECTED = "avatar_selected"
    PLAYER_LEFT = "player_left"
    ERROR = "error"
    PING = "ping"


class RelayErrorCode(StrEnum):
    ROOM_NOT_FOUND = "room_not_found"


_ROOM_CODE_FIELD = Field(min_length=1, max_length=16)


class JoinMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN] = ClientMessageType.JOIN
    room_code: str = _ROOM_CODE_FIELD
    name: str = Field(min_length=1, max_length=50)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD for c in v):
            raise ValueError("name must not contain control characters")
        return v


class ControllerAttachMessage(BaseModel):
    type: Literal[ClientMessageType.CONTROLLER_ATTACH] = ClientMessageType.CONTROLLER_ATTACH
    room_code: str = _ROOM_CODE_FIELD


ClientMessage = JoinMessage | ControllerAttachMessage


class JoinConfirmationMessage(BaseModel):
    """Reply to a connection that joined a room as a new player."""

    type: Literal[RelayMessageType.JOIN_CONFIRMATION] = RelayMessageType.JOIN_CONFIRMATION
    id: int
    avatar: str | None = None


class ReconnectionConfirmationMessage(BaseModel):
    """Reply to a connection that took over an existing player by name."""

    type: Literal[RelayMessageType.RECONNECTION_CONFIRMATION] = RelayMessageType.RECONNECTION_CONFIRMATION
    id: int
    reconnected: Literal[True] = True
    avatar: str | None = None


class PlayerJoinedMessage(BaseModel):
    type: Literal[RelayMessageType.PLAYER_JOINED] = RelayMessageType.PLAYER_JOINED
    id: int
    name: str


class AvatarSelectedMessage(BaseModel):
    type: Literal[RelayMessageType.AVATAR_SELECTED] = RelayMessageType.AVATAR_SELECTED
    id: int
    avatar: str


class PlayerLeftMessage(BaseModel):
    type: Literal[RelayMessageType.PLAYER_LEFT] = RelayMessageType.PLAYER_LEFT
    id: int


class ErrorMessage(BaseModel):
    type: Literal[RelayMessageType.ERROR] = RelayMessageType.ERROR
    code: RelayErrorCode
    message: str


class PingMessage(BaseModel):
    type: Literal[RelayMessageType.PING] = RelayMessageType.PING


# Events that travel to a room's controller, directly or through the pending queue.
ControllerEvent = PlayerJoinedMessage | AvatarSelectedMessage | PlayerLeftMessage


_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(
    Annotated[ClientMessage, Field(discriminator="type")],
)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a decoded frame into a typed ClientMessage.

    Raises pydantic.ValidationError for an unknown ``type`` or invalid fields.
    """
    return _client_message_adapter.validate_python(data)
