"""
Outbound events - Server-to-client envelopes produced by rooms.

Every event carries a `type` discriminator and serializes with the camelCase
keys the browser client expects (playerId, playerCount, currentPlayer, ...).
"""

from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from ..engine_core.board import Mark


class OutboundEvent(BaseModel):
    """Base for all server-to-client envelopes."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Connected(OutboundEvent):
    """Identity confirmation sent once per connection."""
    type: Literal["connected"] = "connected"
    player_id: str = Field(alias="playerId")


class RoomCreated(OutboundEvent):
    type: Literal["roomCreated"] = "roomCreated"
    room_id: str = Field(alias="roomId")
    symbol: Mark


class RoomJoined(OutboundEvent):
    type: Literal["roomJoined"] = "roomJoined"
    room_id: str = Field(alias="roomId")
    symbol: Mark


class RoomFull(OutboundEvent):
    type: Literal["roomFull"] = "roomFull"
    room_id: str = Field(alias="roomId")


class PlayerJoined(OutboundEvent):
    type: Literal["playerJoined"] = "playerJoined"
    player_id: str = Field(alias="playerId")
    symbol: Mark
    player_count: int = Field(alias="playerCount")
    is_host: bool = Field(alias="isHost")


class PlayerLeft(OutboundEvent):
    """
    A seat was vacated.

    `host_id` names whoever holds the host seat afterwards, so a player
    promoted by the host leaving learns it may now start the game.
    """
    type: Literal["playerLeft"] = "playerLeft"
    player_id: str = Field(alias="playerId")
    player_count: int = Field(alias="playerCount")
    host_id: Optional[str] = Field(default=None, alias="hostId")


class GameStarted(OutboundEvent):
    type: Literal["gameStarted"] = "gameStarted"
    squares: list[Optional[Mark]]
    current_player: Mark = Field(alias="currentPlayer")


class MoveMade(OutboundEvent):
    """
    A move was applied.

    `symbol` is the mark just placed, `current_player` is the turn after the
    move. When the move ended the game the turn does not flip, so the two are
    equal in that case.
    """
    type: Literal["moveMade"] = "moveMade"
    position: int
    symbol: Mark
    squares: list[Optional[Mark]]
    current_player: Mark = Field(alias="currentPlayer")
    winner: Optional[Mark] = None
    is_draw: bool = Field(default=False, alias="isDraw")
    move_number: int = Field(alias="moveNumber")


class GameReset(OutboundEvent):
    type: Literal["gameReset"] = "gameReset"
    squares: list[Optional[Mark]]
    current_player: Mark = Field(alias="currentPlayer")


AnyOutboundEvent = Annotated[
    Union[
        Connected,
        RoomCreated,
        RoomJoined,
        RoomFull,
        PlayerJoined,
        PlayerLeft,
        GameStarted,
        MoveMade,
        GameReset,
    ],
    Field(discriminator="type"),
]
