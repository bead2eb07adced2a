"""
Cascade
=======

Drops the remaining balls of each column into the lowest slots after a clear.

Only one pass runs per placement. The settled layout is not searched for new
matches, so cascades never chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from tubes.tube_core.ball_catalog import Ball
from tubes.tube_core.grid_state import GridState


@dataclass(slots=True)
class CascadeMove:
    ball: Ball
    column: int
    source_row: int
    target_row: int


class CascadeEngine:
    """Gravity compaction over a GridState."""

    def __init__(self, grid: GridState):
        self._grid = grid

    def compact_column(self, col: int) -> List[CascadeMove]:
        """Compact one column, keeping the balls' bottom-to-top order."""
        occupied = self._grid.column_balls(col)
        moves = [
            CascadeMove(ball=ball, column=col, source_row=row, target_row=target)
            for target, (row, ball) in enumerate(occupied)
            if row != target
        ]
        if moves:
            self._grid.rewrite_column(col, [ball for _, ball in occupied])
        return moves

    def compact(self) -> List[CascadeMove]:
        """
        Compact every column.

        Returns:
            One move per ball that changed rows, column by column.
        """
        moves: List[CascadeMove] = []
        for col in range(self._grid.columns):
            moves.extend(self.compact_column(col))
        return moves
