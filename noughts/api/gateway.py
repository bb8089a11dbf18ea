"""
Connection Gateway - Routes client envelopes to rooms and fans events out.

The gateway is transport-agnostic. The WebSocket endpoint in app.py:
1. Calls connect() when a socket opens
2. Runs pump() as the socket's writer task
3. Feeds every text frame to handle_raw()
4. Calls disconnect() when the socket closes, whatever the reason

Dispatch and delivery are synchronous: a command is applied to its room and
the resulting events are queued on each recipient's outbox before the next
command is looked at. Per-client ordering therefore always matches the order
in which the server accepted operations.

Only roomFull is ever reported back for a refused request. Every other
rejection is dropped silently (and logged at DEBUG).
"""

from __future__ import annotations
from typing import Awaitable, Callable
import logging

from ..engine_core.result import OperationResult, Rejection
from ..session.connection import CLOSE_SENTINEL, Connection
from ..session.events import Connected, OutboundEvent, RoomCreated, RoomFull, RoomJoined
from ..session.manager import SessionDirectory
from ..session.room import Session
from .schemas import (
    Command,
    CommandDecodeError,
    CreateRoom,
    JoinRoom,
    LeaveRoom,
    MakeMove,
    ResetGame,
    StartGame,
    decode_command,
    encode_event,
)

logger = logging.getLogger(__name__)


class ConnectionGateway:
    """
    Terminates client connections for one server process.

    Usage:
        gateway = ConnectionGateway(directory)
        connection = gateway.connect()
        gateway.handle_raw(connection.connection_id, '{"type": "createRoom"}')
        gateway.disconnect(connection.connection_id)
    """

    def __init__(self, directory: SessionDirectory):
        self.directory = directory
        self._handlers: dict[type, Callable[[Connection, Command], None]] = {
            CreateRoom: self._handle_create_room,
            JoinRoom: self._handle_join_room,
            StartGame: self._handle_start_game,
            MakeMove: self._handle_make_move,
            ResetGame: self._handle_reset_game,
            LeaveRoom: self._handle_leave_room,
        }

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    def connect(self) -> Connection:
        """Register a new connection and queue its identity confirmation."""
        connection = Connection(connection_id=self.directory.new_connection_id())
        self.directory.register_connection(connection)
        logger.info("Player %s connected", connection.connection_id)
        self.send(connection, Connected(player_id=connection.connection_id))
        return connection

    def disconnect(self, connection_id: str) -> None:
        """
        Tear a connection down: leave its room, then unregister it.

        Safe to call more than once and at any point in a game.
        """
        connection = self.directory.get_connection(connection_id)
        if connection is None:
            return
        connection.close()
        logger.info("Player %s disconnected", connection_id)
        self._leave_current_room(connection)
        self.directory.unregister_connection(connection_id)

    # =========================================================================
    # Inbound
    # =========================================================================

    def handle_raw(self, connection_id: str, raw: str | bytes) -> None:
        """Decode one frame and dispatch it. Malformed frames are dropped."""
        connection = self.directory.get_connection(connection_id)
        if connection is None:
            logger.warning("Frame from unknown connection %s dropped", connection_id)
            return
        try:
            command = decode_command(raw)
        except CommandDecodeError as e:
            logger.warning("Discarding payload from %s: %s", connection_id, e)
            return
        self.dispatch(connection, command)

    def dispatch(self, connection: Connection, command: Command) -> None:
        handler = self._handlers.get(type(command))
        if handler is None:
            logger.warning("No handler for command %s", type(command).__name__)
            return
        handler(connection, command)

    def _handle_create_room(self, connection: Connection, command: CreateRoom) -> None:
        self._leave_current_room(connection)
        session = self.directory.create_new()
        result = self._seat(connection, session)
        if result.success:
            self.send(connection, RoomCreated(room_id=session.room_id, symbol=result.mark))

    def _handle_join_room(self, connection: Connection, command: JoinRoom) -> None:
        current = self.directory.room_of(connection.connection_id)
        if current is not None and current.room_id == command.room_id:
            logger.debug("%s already in room %s", connection.connection_id, command.room_id)
            return

        # Refuse a full room before leaving the current one
        target = self.directory.get(command.room_id)
        if target is not None and target.player_count >= 2:
            self.send(connection, RoomFull(room_id=command.room_id))
            return

        self._leave_current_room(connection)
        session = self.directory.get_or_create(command.room_id)
        result = self._seat(connection, session)
        if result.success:
            self.send(connection, RoomJoined(room_id=session.room_id, symbol=result.mark))
        elif result.rejection == Rejection.ROOM_FULL:
            self.send(connection, RoomFull(room_id=command.room_id))

    def _handle_start_game(self, connection: Connection, command: StartGame) -> None:
        session = self._room_for(connection)
        if session is not None:
            self._publish(session, session.start(connection.connection_id), "startGame")

    def _handle_make_move(self, connection: Connection, command: MakeMove) -> None:
        session = self._room_for(connection)
        if session is not None:
            result = session.move(connection.connection_id, command.position)
            self._publish(session, result, "makeMove")

    def _handle_reset_game(self, connection: Connection, command: ResetGame) -> None:
        session = self._room_for(connection)
        if session is not None:
            self._publish(session, session.reset(connection.connection_id), "resetGame")

    def _handle_leave_room(self, connection: Connection, command: LeaveRoom) -> None:
        self._leave_current_room(connection)

    # =========================================================================
    # Room plumbing
    # =========================================================================

    def _room_for(self, connection: Connection) -> Session | None:
        session = self.directory.room_of(connection.connection_id)
        if session is None:
            logger.debug("%s is not in a room; ignoring", connection.connection_id)
        return session

    def _seat(self, connection: Connection, session: Session):
        result = session.seat(connection.connection_id)
        if result.success:
            self.directory.bind(connection.connection_id, session.room_id)
            self.broadcast(session, result.events)
        return result

    def _leave_current_room(self, connection: Connection) -> None:
        session = self.directory.room_of(connection.connection_id)
        if session is None:
            return
        result = session.vacate(connection.connection_id)
        self.directory.unbind(connection.connection_id)
        if not result.success:
            logger.debug(
                "Vacate of %s from %s refused: %s",
                connection.connection_id, session.room_id, result.rejection.value,
            )
            return
        if result.now_empty:
            self.directory.remove(session.room_id)
        else:
            self.broadcast(session, result.events)

    def _publish(self, session: Session, result: OperationResult, action: str) -> None:
        if result.success:
            self.broadcast(session, result.events)
        else:
            logger.debug(
                "Room %s: %s rejected (%s)",
                session.room_id, action, result.rejection.value,
            )

    # =========================================================================
    # Outbound
    # =========================================================================

    def send(self, connection: Connection, event: OutboundEvent) -> None:
        """Queue one event for one connection."""
        connection.deliver(encode_event(event))

    def broadcast(self, session: Session, events: list[OutboundEvent]) -> None:
        """
        Queue events for every seated connection still open.

        Each event is serialized once. Closed transports are skipped.
        """
        members = self.directory.members(session.room_id)
        for event in events:
            text = encode_event(event)
            for member in members:
                member.deliver(text)

    async def pump(self, connection: Connection, send: Callable[[str], Awaitable[None]]) -> None:
        """
        Writer task: push queued envelopes through `send` until closed.

        A failing send closes the connection; the reader side notices and
        calls disconnect().
        """
        while True:
            text = await connection.outbox.get()
            if text is CLOSE_SENTINEL:
                return
            try:
                await send(text)
            except Exception as e:
                logger.info("Send to %s failed: %s", connection.connection_id, e)
                connection.close()
                return

    def shutdown(self) -> None:
        """Close every connection and clear the directory."""
        for connection in self.directory.all_connections():
            connection.close()
        self.directory.clear()
