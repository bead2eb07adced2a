"""
Lids
====

Per-column lid signal for the presentation layer.

A column with fewer than 3 balls is open. A fuller column is open only while
it holds a vertical run of 3 same-colored balls, and closed otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from tubes.tube_core.grid_state import GridState


# Fixed by the lid rule, independent of the match length
LID_RUN = 3


@dataclass(slots=True)
class LidTransition:
    column: int
    is_open: bool


class LidStateMachine:
    """
    Lid states derived from the grid.

    The stored states are only used to report transitions; refresh()
    recomputes every lid from the grid.
    """

    def __init__(self, grid: GridState):
        self._grid = grid
        self._open: List[bool] = [True] * grid.columns

    def is_open(self, col: int) -> bool:
        return self._open[col]

    @property
    def states(self) -> List[bool]:
        """Open flags, one per column."""
        return list(self._open)

    def has_vertical_run(self, col: int) -> bool:
        """True if the column holds LID_RUN consecutive same-colored balls."""
        last_color = None
        streak = 0
        for row in range(self._grid.rows):
            ball = self._grid.get(col, row)
            if ball is None:
                last_color = None
                streak = 0
                continue
            streak = streak + 1 if ball.color == last_color else 1
            last_color = ball.color
            if streak >= LID_RUN:
                return True
        return False

    def compute(self, col: int) -> bool:
        """Lid state for a column from the current grid."""
        if self._grid.occupied_count(col) < LID_RUN:
            return True
        return self.has_vertical_run(col)

    def refresh(self) -> List[LidTransition]:
        """
        Recompute every lid.

        Returns:
            Transitions for the columns whose lid changed.
        """
        transitions = []
        for col in range(self._grid.columns):
            is_open = self.compute(col)
            if is_open != self._open[col]:
                self._open[col] = is_open
                transitions.append(LidTransition(column=col, is_open=is_open))
        return transitions

    def reset(self) -> None:
        """Open every lid."""
        self._open = [True] * self._grid.columns
