"""
Board Rules - Pure functions over a 3x3 tic-tac-toe grid.

The grid is a flat list of 9 cells, row-major:

     0 | 1 | 2
    ---+---+---
     3 | 4 | 5
    ---+---+---
     6 | 7 | 8

Each cell is a Mark or None (empty). Nothing in this module holds state.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional, Sequence


GRID_SIZE = 9

WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)


class Mark(str, Enum):
    """The two per-game symbols. X always belongs to the host."""
    X = "X"
    O = "O"


Grid = list[Optional[Mark]]


def empty_grid() -> Grid:
    """A fresh all-empty grid."""
    return [None] * GRID_SIZE


def other_mark(mark: Mark) -> Mark:
    return Mark.O if mark == Mark.X else Mark.X


def _check_grid(grid: Sequence[Optional[Mark]]) -> None:
    if len(grid) != GRID_SIZE:
        raise ValueError(f"Grid must have {GRID_SIZE} cells, got {len(grid)}")


def evaluate_winner(grid: Sequence[Optional[Mark]]) -> Mark | None:
    """
    Return the mark owning a complete line, or None.

    Checks the 8 fixed triples in order; the first full triple wins.
    """
    _check_grid(grid)
    for a, b, c in WIN_LINES:
        if grid[a] is not None and grid[a] == grid[b] == grid[c]:
            return Mark(grid[a])
    return None


def is_full(grid: Sequence[Optional[Mark]]) -> bool:
    _check_grid(grid)
    return all(cell is not None for cell in grid)


def is_draw(grid: Sequence[Optional[Mark]]) -> bool:
    """A draw is a full grid with no winning line."""
    return is_full(grid) and evaluate_winner(grid) is None


def is_valid_position(position: object) -> bool:
    """True for an int addressing an existing cell (bools excluded)."""
    return (
        isinstance(position, int)
        and not isinstance(position, bool)
        and 0 <= position < GRID_SIZE
    )
