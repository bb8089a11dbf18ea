"""
Room - One game's authoritative state.

A room owns:
- Up to two seats, in join order
- The 9-cell grid
- The active turn, the started flag, and the outcome (winner / draw)

LIFECYCLE:
    EMPTY -> SEATING (1 seat) -> READY (2 seats, not started)
          -> PLAYING (started, no outcome) -> OVER (started, outcome set)

    reset() goes OVER -> PLAYING directly; started stays true.
    vacate() from any phase drops a seat. When the last seat goes the room
    is destroyed and rejects everything with ROOM_CLOSED.

Rooms do no I/O. Each operation returns a result carrying the events to
broadcast; the gateway delivers them. Seats hold connection ids only, the
connection records themselves live in the directory.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import threading
import time

from ..engine_core.board import (
    Grid,
    Mark,
    empty_grid,
    evaluate_winner,
    is_draw,
    is_valid_position,
    other_mark,
)
from ..engine_core.result import (
    MoveResult,
    Rejection,
    ResetResult,
    SeatResult,
    StartResult,
    VacateResult,
)
from .events import GameReset, GameStarted, MoveMade, PlayerJoined, PlayerLeft

logger = logging.getLogger(__name__)

MAX_SEATS = 2

# Seat order decides the mark: the first free mark in this order is assigned.
MARK_ORDER = (Mark.X, Mark.O)


class RoomPhase(str, Enum):
    """Where a room sits in its lifecycle."""
    EMPTY = "empty"
    SEATING = "seating"
    READY = "ready"
    PLAYING = "playing"
    OVER = "over"


@dataclass
class Seat:
    """A connection's membership slot in a room."""
    connection_id: str
    mark: Mark
    is_host: bool


@dataclass
class RoomSummary:
    """Read-only view of a room for listings."""
    room_id: str
    phase: RoomPhase
    player_count: int
    started: bool
    current_player: Mark
    winner: Mark | None
    is_draw: bool
    move_count: int
    created_at: float


@dataclass
class Session:
    """
    An authoritative two-player game room.

    Every public operation runs under the room's own lock so that threaded
    callers never interleave operations on the same room.
    """
    room_id: str
    created_at: float = field(default_factory=time.time)

    seats: list[Seat] = field(default_factory=list)
    squares: Grid = field(default_factory=empty_grid)
    current_player: Mark = Mark.X
    started: bool = False
    winner: Mark | None = None
    is_draw: bool = False

    # Accepted moves since the last start/reset
    move_count: int = 0
    destroyed: bool = False

    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def player_count(self) -> int:
        return len(self.seats)

    @property
    def is_terminal(self) -> bool:
        return self.winner is not None or self.is_draw

    @property
    def phase(self) -> RoomPhase:
        if not self.seats:
            return RoomPhase.EMPTY
        if not self.started:
            return RoomPhase.SEATING if len(self.seats) < MAX_SEATS else RoomPhase.READY
        return RoomPhase.OVER if self.is_terminal else RoomPhase.PLAYING

    def seat_of(self, connection_id: str) -> Seat | None:
        for seat in self.seats:
            if seat.connection_id == connection_id:
                return seat
        return None

    def member_ids(self) -> list[str]:
        """Seated connection ids in seat order."""
        return [seat.connection_id for seat in self.seats]

    def snapshot(self) -> RoomSummary:
        with self._lock:
            return RoomSummary(
                room_id=self.room_id,
                phase=self.phase,
                player_count=self.player_count,
                started=self.started,
                current_player=self.current_player,
                winner=self.winner,
                is_draw=self.is_draw,
                move_count=self.move_count,
                created_at=self.created_at,
            )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def seat(self, connection_id: str) -> SeatResult:
        """
        Seat a connection.

        The first seat gets X and host; the second gets O. If a player left
        and someone new joins, the newcomer gets whichever mark is free.
        """
        with self._lock:
            if self.destroyed:
                return SeatResult.failure(Rejection.ROOM_CLOSED)
            if self.seat_of(connection_id):
                return SeatResult.failure(Rejection.ALREADY_SEATED)
            if len(self.seats) >= MAX_SEATS:
                return SeatResult.failure(Rejection.ROOM_FULL)

            taken = {seat.mark for seat in self.seats}
            mark = next(m for m in MARK_ORDER if m not in taken)
            new_seat = Seat(
                connection_id=connection_id,
                mark=mark,
                is_host=not self.seats,
            )
            self.seats.append(new_seat)
            logger.info(
                "Room %s: %s seated as %s (%d/%d)",
                self.room_id, connection_id, mark.value, len(self.seats), MAX_SEATS,
            )

            event = PlayerJoined(
                player_id=connection_id,
                symbol=mark,
                player_count=len(self.seats),
                is_host=new_seat.is_host,
            )
            return SeatResult(
                success=True,
                events=[event],
                mark=mark,
                seat_index=len(self.seats) - 1,
                is_host=new_seat.is_host,
            )

    def vacate(self, connection_id: str) -> VacateResult:
        """
        Remove a connection's seat.

        A remaining player becomes host if the host left. The room is
        destroyed when its last seat goes.
        """
        with self._lock:
            if self.destroyed:
                return VacateResult.failure(Rejection.ROOM_CLOSED)
            seat = self.seat_of(connection_id)
            if seat is None:
                return VacateResult.failure(Rejection.NOT_SEATED)

            self.seats.remove(seat)
            if seat.is_host and self.seats:
                self.seats[0].is_host = True

            logger.info(
                "Room %s: %s left (%d/%d)",
                self.room_id, connection_id, len(self.seats), MAX_SEATS,
            )

            event = PlayerLeft(
                player_id=connection_id,
                player_count=len(self.seats),
                host_id=self.seats[0].connection_id if self.seats else None,
            )
            now_empty = not self.seats
            if now_empty:
                self.destroyed = True
            return VacateResult(success=True, events=[event], now_empty=now_empty)

    # =========================================================================
    # Gameplay
    # =========================================================================

    def start(self, connection_id: str) -> StartResult:
        """Start (or restart) the game. Host only, with both seats filled."""
        with self._lock:
            if self.destroyed:
                return StartResult.failure(Rejection.ROOM_CLOSED)
            seat = self.seat_of(connection_id)
            if seat is None:
                return StartResult.failure(Rejection.NOT_SEATED)
            if not seat.is_host:
                return StartResult.failure(Rejection.NOT_HOST)
            if len(self.seats) < MAX_SEATS:
                return StartResult.failure(Rejection.INCOMPLETE_ROSTER)

            self.started = True
            self._clear_board()
            logger.info("Room %s: game started", self.room_id)

            event = GameStarted(
                squares=list(self.squares),
                current_player=self.current_player,
            )
            return StartResult(success=True, events=[event])

    def move(self, connection_id: str, position: int) -> MoveResult:
        """
        Place the mover's mark on a cell.

        Validation order:
        1. Mover is seated
        2. Game started and not over
        3. Position addresses a cell
        4. It is the mover's turn
        5. Cell is empty
        """
        with self._lock:
            if self.destroyed:
                return MoveResult.failure(Rejection.ROOM_CLOSED)
            seat = self.seat_of(connection_id)
            if seat is None:
                return MoveResult.failure(Rejection.NOT_SEATED)
            if not self.started:
                return MoveResult.failure(Rejection.NOT_STARTED)
            if self.is_terminal:
                return MoveResult.failure(Rejection.GAME_OVER)
            if not is_valid_position(position):
                return MoveResult.failure(Rejection.INVALID_INDEX)
            if seat.mark != self.current_player:
                return MoveResult.failure(Rejection.NOT_YOUR_TURN)
            if self.squares[position] is not None:
                return MoveResult.failure(Rejection.CELL_OCCUPIED)

            placed = seat.mark
            self.squares[position] = placed
            self.move_count += 1

            self.winner = evaluate_winner(self.squares)
            self.is_draw = self.winner is None and is_draw(self.squares)
            if not self.is_terminal:
                self.current_player = other_mark(placed)
            elif self.winner:
                logger.info("Room %s: %s wins", self.room_id, self.winner.value)
            else:
                logger.info("Room %s: draw", self.room_id)

            event = MoveMade(
                position=position,
                symbol=placed,
                squares=list(self.squares),
                current_player=self.current_player,
                winner=self.winner,
                is_draw=self.is_draw,
                move_number=self.move_count,
            )
            return MoveResult(
                success=True,
                events=[event],
                position=position,
                placed=placed,
                winner=self.winner,
                is_draw=self.is_draw,
                move_number=self.move_count,
            )

    def reset(self, connection_id: str | None = None) -> ResetResult:
        """
        Clear the board and hand the turn back to X.

        Seats and the started flag are untouched, so a started game goes
        straight back to PLAYING.
        """
        with self._lock:
            if self.destroyed:
                return ResetResult.failure(Rejection.ROOM_CLOSED)
            if connection_id is not None and self.seat_of(connection_id) is None:
                return ResetResult.failure(Rejection.NOT_SEATED)

            self._clear_board()
            logger.info("Room %s: board reset", self.room_id)

            event = GameReset(
                squares=list(self.squares),
                current_player=self.current_player,
            )
            return ResetResult(success=True, events=[event])

    def _clear_board(self) -> None:
        self.squares = empty_grid()
        self.current_player = Mark.X
        self.winner = None
        self.is_draw = False
        self.move_count = 0
