"""
Pytest fixtures for Noughts tests.
"""

import json
import pytest

from ..engine_core.board import Mark
from ..session.connection import Connection
from ..session.manager import SessionDirectory
from ..session.room import Session
from ..api.gateway import ConnectionGateway


HOST = "player_host"
GUEST = "player_guest"


def sequential_ids(prefix: str):
    """Deterministic id factory: prefix_1, prefix_2, ..."""
    counter = {"n": 0}

    def factory() -> str:
        counter["n"] += 1
        return f"{prefix}{counter['n']}"
    return factory


def messages(connection: Connection) -> list[dict]:
    """Drain a connection's outbox as decoded JSON objects."""
    return [json.loads(text) for text in connection.drain()]


def types(connection: Connection) -> list[str]:
    return [m["type"] for m in messages(connection)]


@pytest.fixture
def room() -> Session:
    """An empty room."""
    return Session(room_id="room_test")


@pytest.fixture
def full_room(room: Session) -> Session:
    """A room with host (X) and guest (O) seated, not started."""
    room.seat(HOST)
    room.seat(GUEST)
    return room


@pytest.fixture
def started_room(full_room: Session) -> Session:
    """A started room with X to move."""
    result = full_room.start(HOST)
    assert result.success
    assert full_room.current_player == Mark.X
    return full_room


def play(room: Session, positions: list[int]):
    """Alternate host/guest moves starting with the host. Returns the last result."""
    result = None
    players = [HOST, GUEST]
    for i, position in enumerate(positions):
        result = room.move(players[i % 2], position)
        assert result.success, f"move {i} at {position} rejected: {result.rejection}"
    return result


@pytest.fixture
def directory() -> SessionDirectory:
    return SessionDirectory(
        room_id_factory=sequential_ids("room_"),
        connection_id_factory=sequential_ids("player_"),
    )


@pytest.fixture
def gateway(directory: SessionDirectory) -> ConnectionGateway:
    return ConnectionGateway(directory)
