"""
Grid State
==========

Owns the column x row matrix of placed balls. Every other component reads
and writes cells through this class; nobody keeps references into the matrix.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from tubes.tube_core.ball_catalog import Ball
from tubes.tube_core.config_loader import GameConfig, get_config


Cell = Tuple[int, int]  # (column, row), row 0 is the bottom

EMPTY_CODE = -1


class ColumnFull(Exception):
    """Raised when a ball is placed into a column with no empty row."""

    def __init__(self, column: int):
        super().__init__(f"Column {column} is full")
        self.column = column


class GridNotCompacted(RuntimeError):
    """Raised when a placement is attempted before gaps have been compacted."""


class GridState:
    """
    Column-major grid of optional balls.

    Invariant: a column is filled bottom-up with no gaps. Removing cells may
    break this until the cascade compacts the columns again, and placements
    are refused in the meantime.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._columns = config.grid.columns
        self._rows = config.grid.rows
        self._cells: List[List[Optional[Ball]]] = [
            [None] * self._rows for _ in range(self._columns)
        ]

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def rows(self) -> int:
        return self._rows

    def _check(self, col: int, row: int) -> None:
        if not (0 <= col < self._columns and 0 <= row < self._rows):
            raise IndexError(
                f"Cell ({col}, {row}) out of range [0, {self._columns}) x [0, {self._rows})"
            )

    def _check_column(self, col: int) -> None:
        if not 0 <= col < self._columns:
            raise IndexError(f"Column {col} out of range [0, {self._columns})")

    def in_bounds(self, col: int, row: int) -> bool:
        """True if (col, row) is a valid cell."""
        return 0 <= col < self._columns and 0 <= row < self._rows

    def get(self, col: int, row: int) -> Optional[Ball]:
        """Ball at a cell, or None if empty."""
        self._check(col, row)
        return self._cells[col][row]

    def lowest_empty_row(self, col: int) -> Optional[int]:
        """Lowest empty row in a column, or None if the column is full."""
        self._check_column(col)
        for row, ball in enumerate(self._cells[col]):
            if ball is None:
                return row
        return None

    def place(self, col: int, ball: Ball) -> int:
        """
        Put a ball into the lowest empty row of a column.

        Args:
            col: Target column.
            ball: Ball to place.

        Returns:
            The row the ball landed in.

        Raises:
            ColumnFull: If the column has no empty row.
            GridNotCompacted: If a previous clear has not been compacted yet.
        """
        self._check_column(col)
        if self.has_gaps():
            raise GridNotCompacted("Grid has gaps; compact before placing")
        row = self.lowest_empty_row(col)
        if row is None:
            raise ColumnFull(col)
        self._cells[col][row] = ball
        return row

    def remove(self, cells: Iterable[Cell]) -> List[Ball]:
        """
        Clear the given cells unconditionally.

        Returns:
            The removed balls.

        Raises:
            ValueError: If a cell is already empty.
        """
        cells = list(cells)
        for col, row in cells:
            self._check(col, row)
            if self._cells[col][row] is None:
                raise ValueError(f"Cannot remove empty cell ({col}, {row})")

        removed = []
        for col, row in cells:
            ball = self._cells[col][row]
            if ball is not None:
                removed.append(ball)
                self._cells[col][row] = None
        return removed

    def column_balls(self, col: int) -> List[Tuple[int, Ball]]:
        """Occupied cells of a column as (row, ball), bottom to top."""
        self._check_column(col)
        return [(row, ball) for row, ball in enumerate(self._cells[col]) if ball is not None]

    def rewrite_column(self, col: int, balls: List[Ball]) -> None:
        """Replace a column's contents with balls stacked from row 0."""
        self._check_column(col)
        if len(balls) > self._rows:
            raise ValueError(f"Column {col} holds {self._rows} balls, got {len(balls)}")
        self._cells[col] = list(balls) + [None] * (self._rows - len(balls))

    def occupied_count(self, col: int) -> int:
        """Number of balls in a column."""
        self._check_column(col)
        return sum(1 for ball in self._cells[col] if ball is not None)

    def column_has_gap(self, col: int) -> bool:
        """True if any ball in the column sits above an empty slot."""
        self._check_column(col)
        found_empty = False
        for ball in self._cells[col]:
            if ball is None:
                found_empty = True
            elif found_empty:
                return True
        return False

    def has_gaps(self) -> bool:
        """True if any column needs compaction."""
        return any(self.column_has_gap(col) for col in range(self._columns))

    def is_full(self) -> bool:
        """True iff every column's topmost row is occupied."""
        top = self._rows - 1
        return all(self._cells[col][top] is not None for col in range(self._columns))

    def is_empty(self) -> bool:
        return all(ball is None for column in self._cells for ball in column)

    def balls(self) -> Iterator[Tuple[Cell, Ball]]:
        """Iterate ((col, row), ball) over occupied cells."""
        for col, column in enumerate(self._cells):
            for row, ball in enumerate(column):
                if ball is not None:
                    yield (col, row), ball

    def clear(self) -> List[Ball]:
        """Empty the grid and return every ball that was on it."""
        removed = [ball for _, ball in self.balls()]
        self._cells = [[None] * self._rows for _ in range(self._columns)]
        return removed

    def to_color_array(self) -> np.ndarray:
        """Color codes as an int8 (columns, rows) array, -1 for empty cells."""
        codes = np.full((self._columns, self._rows), EMPTY_CODE, dtype=np.int8)
        for (col, row), ball in self.balls():
            codes[col, row] = int(ball.color)
        return codes

    def __repr__(self) -> str:
        lines = []
        for row in reversed(range(self._rows)):
            lines.append(" ".join(
                "." if self._cells[col][row] is None else self._cells[col][row].color.name[0]
                for col in range(self._columns)
            ))
        return "GridState(\n  " + "\n  ".join(lines) + "\n)"
