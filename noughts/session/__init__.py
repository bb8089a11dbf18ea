"""
Session Module - Manages live multiplayer rooms.

A room represents one two-player game:
- Created when the first player creates or joins it
- Holds seats, the grid, the turn and the outcome
- Destroyed when its last player leaves

Rooms are in-memory only. Nothing survives a restart.
"""

from .connection import Connection
from .events import (
    OutboundEvent,
    AnyOutboundEvent,
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
from .manager import SessionDirectory
from .room import Session, Seat, RoomPhase, RoomSummary

__all__ = [
    "Connection",
    "SessionDirectory",
    "Session",
    "Seat",
    "RoomPhase",
    "RoomSummary",
    "OutboundEvent",
    "AnyOutboundEvent",
    "Connected",
    "RoomCreated",
    "RoomJoined",
    "RoomFull",
    "PlayerJoined",
    "PlayerLeft",
    "GameStarted",
    "MoveMade",
    "GameReset",
]
