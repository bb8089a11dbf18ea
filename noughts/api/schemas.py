"""
Pydantic Schemas for the wire protocol and the HTTP endpoints.

WebSocket envelopes are JSON objects with a `type` discriminator.

Client -> server commands:
- createRoom
- joinRoom   {roomId}
- startGame
- makeMove   {position}
- resetGame
- leaveRoom

Server -> client events live in session.events and are re-exported here.

Anything that fails to decode (bad JSON, unknown type, missing or mistyped
fields) raises CommandDecodeError. The gateway logs and drops those.
"""

from typing import Annotated, Literal, Optional, Union
import json

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, TypeAdapter, ValidationError

from ..engine_core.board import Mark
from ..session.room import RoomPhase
from ..session.events import (
    AnyOutboundEvent,
    OutboundEvent,
    Connected,
    RoomCreated,
    RoomJoined,
    RoomFull,
    PlayerJoined,
    PlayerLeft,
    GameStarted,
    MoveMade,
    GameReset,
)


class CommandDecodeError(ValueError):
    """An inbound payload could not be turned into a command."""


# =============================================================================
# Inbound commands
# =============================================================================

class Command(BaseModel):
    """Base for all client-to-server envelopes. Extra keys are ignored."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CreateRoom(Command):
    type: Literal["createRoom"] = "createRoom"


class JoinRoom(Command):
    type: Literal["joinRoom"] = "joinRoom"
    room_id: StrictStr = Field(alias="roomId", min_length=1)


class StartGame(Command):
    type: Literal["startGame"] = "startGame"


class MakeMove(Command):
    # Range is checked by the room so out-of-range cells reject as InvalidIndex
    type: Literal["makeMove"] = "makeMove"
    position: StrictInt


class ResetGame(Command):
    type: Literal["resetGame"] = "resetGame"


class LeaveRoom(Command):
    type: Literal["leaveRoom"] = "leaveRoom"


AnyCommand = Annotated[
    Union[CreateRoom, JoinRoom, StartGame, MakeMove, ResetGame, LeaveRoom],
    Field(discriminator="type"),
]

_command_adapter = TypeAdapter(AnyCommand)
_event_adapter = TypeAdapter(AnyOutboundEvent)


def decode_command(raw: str | bytes) -> Command:
    """
    Decode one inbound frame.

    Raises:
        CommandDecodeError: if the frame is not a valid command envelope
    """
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise CommandDecodeError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CommandDecodeError("Envelope must be a JSON object")

    try:
        return _command_adapter.validate_python(data)
    except ValidationError as e:
        raise CommandDecodeError(f"Invalid {data.get('type')!r} envelope: {e}") from e


def encode_command(command: Command) -> str:
    """Serialize a command the way a client sends it (used by tests and tools)."""
    return command.model_dump_json(by_alias=True)


def encode_event(event: OutboundEvent) -> str:
    """Serialize an outbound event to JSON text with camelCase keys."""
    return event.model_dump_json(by_alias=True)


def decode_event(raw: str | bytes) -> OutboundEvent:
    """Parse outbound JSON text back into its event model."""
    return _event_adapter.validate_json(raw)


# =============================================================================
# HTTP responses
# =============================================================================

class RoomInfo(BaseModel):
    """A live room, for the room listing."""
    room_id: str
    phase: RoomPhase
    player_count: int = Field(..., ge=0, le=2)
    started: bool
    current_player: Mark
    winner: Optional[Mark] = None
    is_draw: bool = False
    move_count: int = 0
    created_at: float

    model_config = {"from_attributes": True}


class RoomListResponse(BaseModel):
    """Response listing live rooms."""
    rooms: list[RoomInfo]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    rooms: int = 0
    connections: int = 0


__all__ = [
    "CommandDecodeError",
    "Command",
    "AnyCommand",
    "CreateRoom",
    "JoinRoom",
    "StartGame",
    "MakeMove",
    "ResetGame",
    "LeaveRoom",
    "decode_command",
    "encode_command",
    "encode_event",
    "decode_event",
    "OutboundEvent",
    "Connected",
    "RoomCreated",
    "RoomJoined",
    "RoomFull",
    "PlayerJoined",
    "PlayerLeft",
    "GameStarted",
    "MoveMade",
    "GameReset",
    "RoomInfo",
    "RoomListResponse",
    "HealthResponse",
]
