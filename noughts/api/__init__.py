"""
API Module - Network interface.

Exposes the session engine to browser clients:
1. Clients open a WebSocket and receive a connection id
2. They create or join a room by id
3. The host starts the game
4. Moves, resets and departures are broadcast to both players

The gateway holds no game rules; it routes envelopes to rooms and delivers
the events rooms produce.
"""

from .schemas import (
    # Commands
    Command,
    CreateRoom,
    JoinRoom,
    StartGame,
    MakeMove,
    ResetGame,
    LeaveRoom,
    CommandDecodeError,
    decode_command,
    encode_command,
    # Events
    encode_event,
    decode_event,
    # HTTP
    RoomInfo,
    RoomListResponse,
    HealthResponse,
)
from .gateway import ConnectionGateway
from .app import create_app

__all__ = [
    # Commands
    "Command",
    "CreateRoom",
    "JoinRoom",
    "StartGame",
    "MakeMove",
    "ResetGame",
    "LeaveRoom",
    "CommandDecodeError",
    "decode_command",
    "encode_command",
    # Events
    "encode_event",
    "decode_event",
    # HTTP
    "RoomInfo",
    "RoomListResponse",
    "HealthResponse",
    # Gateway
    "ConnectionGateway",
    "create_app",
]
