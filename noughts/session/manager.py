"""
Session Directory - Tracks rooms and connections for one server process.

Three mappings, all keyed by opaque string ids:
- room id       -> Session
- connection id -> Connection
- connection id -> room id (membership)

The directory is an explicit object created by the app factory and handed
to the gateway. There are no module-level registries; clear() tears
everything down.

Rooms are created on first join/create and removed as soon as their last
seat is vacated. Ids are generated server-side and collision-checked
against the live keys before being committed.
"""

from __future__ import annotations
from typing import Callable
import logging
import secrets
import threading

from .connection import Connection
from .room import Session, RoomSummary

logger = logging.getLogger(__name__)

ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
ROOM_ID_PREFIX = "room_"
ROOM_ID_LENGTH = 6
CONNECTION_ID_PREFIX = "player_"
CONNECTION_ID_LENGTH = 9
MAX_ID_ATTEMPTS = 32


def random_id(prefix: str, length: int) -> str:
    """Short base-36 id, e.g. room_k3x9qa."""
    return prefix + "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def make_room_id() -> str:
    return random_id(ROOM_ID_PREFIX, ROOM_ID_LENGTH)


def make_connection_id() -> str:
    return random_id(CONNECTION_ID_PREFIX, CONNECTION_ID_LENGTH)


class SessionDirectory:
    """
    Registry of live rooms and connections.

    Responsibilities:
    - Create, look up and remove rooms
    - Register and unregister connections
    - Track which room each connection sits in

    A single coarse lock guards the mappings. Each room serializes its own
    operations, so distinct rooms never block each other.
    """

    def __init__(
        self,
        room_id_factory: Callable[[], str] = make_room_id,
        connection_id_factory: Callable[[], str] = make_connection_id,
    ):
        self._rooms: dict[str, Session] = {}
        self._connections: dict[str, Connection] = {}
        self._memberships: dict[str, str] = {}
        self._lock = threading.RLock()
        self._room_id_factory = room_id_factory
        self._connection_id_factory = connection_id_factory

    # =========================================================================
    # Rooms
    # =========================================================================

    def get(self, room_id: str) -> Session | None:
        """Get a room by id."""
        with self._lock:
            return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Session:
        """Return the room for room_id, creating an empty one if absent."""
        with self._lock:
            session = self._rooms.get(room_id)
            if session is None:
                session = Session(room_id=room_id)
                self._rooms[room_id] = session
                logger.info("Room %s created on join", room_id)
            return session

    def create_new(self) -> Session:
        """
        Create a room under a freshly generated id.

        Generation is retried on collision with a live room id.
        """
        with self._lock:
            room_id = self._unique_id(self._room_id_factory, self._rooms)
            session = Session(room_id=room_id)
            self._rooms[room_id] = session
            logger.info("Room %s created", room_id)
            return session

    def remove(self, room_id: str) -> None:
        """Deregister a room and drop any membership still pointing at it."""
        with self._lock:
            if self._rooms.pop(room_id, None) is None:
                return
            stale = [cid for cid, rid in self._memberships.items() if rid == room_id]
            for connection_id in stale:
                del self._memberships[connection_id]
            logger.info("Room %s removed", room_id)

    def list_rooms(self) -> list[RoomSummary]:
        with self._lock:
            sessions = list(self._rooms.values())
        return [session.snapshot() for session in sessions]

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    # =========================================================================
    # Connections
    # =========================================================================

    def new_connection_id(self) -> str:
        with self._lock:
            return self._unique_id(self._connection_id_factory, self._connections)

    def register_connection(self, connection: Connection) -> None:
        with self._lock:
            if connection.connection_id in self._connections:
                raise ValueError(f"Connection {connection.connection_id} already registered")
            self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection_id: str) -> Connection | None:
        with self._lock:
            self._memberships.pop(connection_id, None)
            return self._connections.pop(connection_id, None)

    def get_connection(self, connection_id: str) -> Connection | None:
        with self._lock:
            return self._connections.get(connection_id)

    def all_connections(self) -> list[Connection]:
        with self._lock:
            return list(self._connections.values())

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # =========================================================================
    # Membership
    # =========================================================================

    def bind(self, connection_id: str, room_id: str) -> None:
        with self._lock:
            self._memberships[connection_id] = room_id

    def unbind(self, connection_id: str) -> None:
        with self._lock:
            self._memberships.pop(connection_id, None)

    def room_of(self, connection_id: str) -> Session | None:
        """
        Resolve the room a connection sits in.

        A membership pointing at a vanished room is dropped rather than
        raised, so one room's inconsistency never leaks into another.
        """
        with self._lock:
            room_id = self._memberships.get(connection_id)
            if room_id is None:
                return None
            session = self._rooms.get(room_id)
            if session is None:
                logger.warning(
                    "Connection %s bound to missing room %s; unbinding",
                    connection_id, room_id,
                )
                del self._memberships[connection_id]
            return session

    def members(self, room_id: str) -> list[Connection]:
        """Connections seated in a room, in seat order."""
        with self._lock:
            session = self._rooms.get(room_id)
            if session is None:
                return []
            return [
                self._connections[cid]
                for cid in session.member_ids()
                if cid in self._connections
            ]

    # =========================================================================
    # Teardown
    # =========================================================================

    def clear(self) -> None:
        """Drop every room, connection and membership."""
        with self._lock:
            self._rooms.clear()
            self._connections.clear()
            self._memberships.clear()

    def _unique_id(self, factory: Callable[[], str], taken: dict) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = factory()
            if candidate not in taken:
                return candidate
            logger.debug("Id collision on %s, retrying", candidate)
        raise RuntimeError(f"Could not generate a unique id after {MAX_ID_ATTEMPTS} attempts")
