"""
Engine Core - Tic-tac-toe rules and operation results.

Components:
- board: Pure win/draw evaluation over a 9-cell grid
- result: Result objects and rejection codes returned by room operations
"""

from .board import (
    GRID_SIZE,
    WIN_LINES,
    Mark,
    Grid,
    empty_grid,
    other_mark,
    evaluate_winner,
    is_full,
    is_draw,
    is_valid_position,
)
from .result import (
    Rejection,
    OperationResult,
    SeatResult,
    VacateResult,
    StartResult,
    MoveResult,
    ResetResult,
)

__all__ = [
    "GRID_SIZE",
    "WIN_LINES",
    "Mark",
    "Grid",
    "empty_grid",
    "other_mark",
    "evaluate_winner",
    "is_full",
    "is_draw",
    "is_valid_position",
    "Rejection",
    "OperationResult",
    "SeatResult",
    "VacateResult",
    "StartResult",
    "MoveResult",
    "ResetResult",
]
