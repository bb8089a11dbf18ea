"""
Operation results for room operations.

Rooms never raise on an illegal request. Each operation returns a result
with success/failure, a rejection code, and the outbound events it produced
(empty on failure). The caller decides who receives the events.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .board import Mark


class Rejection(str, Enum):
    """Why a room refused an operation."""
    ROOM_FULL = "RoomFull"
    ROOM_CLOSED = "RoomClosed"
    ALREADY_SEATED = "AlreadySeated"
    NOT_SEATED = "NotSeated"
    NOT_HOST = "NotHost"
    INCOMPLETE_ROSTER = "IncompleteRoster"
    NOT_STARTED = "NotStarted"
    GAME_OVER = "GameOver"
    NOT_YOUR_TURN = "NotYourTurn"
    CELL_OCCUPIED = "CellOccupied"
    INVALID_INDEX = "InvalidIndex"


@dataclass
class OperationResult:
    """
    Result of a room operation.

    Contains:
    - Whether the operation was accepted
    - The rejection code (if refused)
    - Outbound events to broadcast (if accepted)
    """
    success: bool
    rejection: Rejection | None = None
    events: list[Any] = field(default_factory=list)

    @classmethod
    def failure(cls, rejection: Rejection):
        """Create a failure result."""
        return cls(success=False, rejection=rejection)

    @property
    def accepted(self) -> bool:
        return self.success


@dataclass
class SeatResult(OperationResult):
    mark: Mark | None = None
    seat_index: int | None = None
    is_host: bool = False


@dataclass
class VacateResult(OperationResult):
    # True once the last seat has gone and the room is destroyed
    now_empty: bool = False


@dataclass
class StartResult(OperationResult):
    pass


@dataclass
class MoveResult(OperationResult):
    position: int | None = None
    placed: Mark | None = None
    winner: Mark | None = None
    is_draw: bool = False
    move_number: int = 0

    @property
    def game_over(self) -> bool:
        return self.winner is not None or self.is_draw


@dataclass
class ResetResult(OperationResult):
    pass
