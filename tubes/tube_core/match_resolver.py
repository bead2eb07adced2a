"""
Match Resolver
==============

Finds the cells cleared by a newly placed ball.

Four lines run through the anchor cell. The row and the column are scanned
end to end and every cell of the anchor's color counts, whether or not the
cells touch. The two diagonals only look at a short window around the anchor.
Any line holding at least `min_match` anchor-colored cells contributes all of
those cells to the match.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from tubes.tube_core.ball_catalog import BallColor
from tubes.tube_core.config_loader import GameConfig, get_config
from tubes.tube_core.grid_state import Cell, GridState


class Direction(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL_RISING = "diagonal_rising"    # "/"
    DIAGONAL_FALLING = "diagonal_falling"  # "\"


@dataclass
class MatchResult:
    """
    Outcome of a match search anchored at one cell.

    `lines` holds every anchor-colored cell found along each direction, even
    for lines that did not qualify; scoring reads the counts from here.
    """
    anchor: Cell
    color: BallColor
    lines: Dict[Direction, Tuple[Cell, ...]]
    cells: FrozenSet[Cell] = field(default_factory=frozenset)
    qualified: Tuple[Direction, ...] = ()

    @property
    def matched(self) -> bool:
        return bool(self.cells)

    def count(self, direction: Direction) -> int:
        return len(self.lines.get(direction, ()))

    @property
    def horizontal_count(self) -> int:
        return self.count(Direction.HORIZONTAL)

    @property
    def vertical_count(self) -> int:
        return self.count(Direction.VERTICAL)

    @property
    def diagonal_count(self) -> int:
        """Best of the two diagonal windows."""
        return max(self.count(Direction.DIAGONAL_RISING), self.count(Direction.DIAGONAL_FALLING))

    def __repr__(self) -> str:
        return (
            f"MatchResult(anchor={self.anchor}, color={self.color.name.lower()}, "
            f"cells={len(self.cells)})"
        )


class MatchResolver:
    """Match search over a GridState."""

    def __init__(self, grid: GridState, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._grid = grid
        self._min_match = config.scoring.min_match
        self._reach = config.scoring.diagonal_reach

    def _same_color(self, col: int, row: int, color: BallColor) -> bool:
        ball = self._grid.get(col, row)
        return ball is not None and ball.color == color

    def line_cells(self, col: int, row: int, direction: Direction, color: BallColor) -> Tuple[Cell, ...]:
        """
        Cells of `color` along one line through (col, row).

        Args:
            col: Anchor column.
            row: Anchor row.
            direction: Line to scan.
            color: Color to collect.

        Returns:
            Matching cells in scan order.
        """
        grid = self._grid
        if direction is Direction.HORIZONTAL:
            candidates = [(x, row) for x in range(grid.columns)]
        elif direction is Direction.VERTICAL:
            candidates = [(col, y) for y in range(grid.rows)]
        else:
            step = 1 if direction is Direction.DIAGONAL_RISING else -1
            candidates = [
                (col + d, row + step * d)
                for d in range(-self._reach, self._reach + 1)
            ]
            candidates = [(x, y) for x, y in candidates if grid.in_bounds(x, y)]
        return tuple((x, y) for x, y in candidates if self._same_color(x, y, color))

    def find_matches(self, col: int, row: int) -> MatchResult:
        """
        Find every cell cleared by the ball at (col, row).

        Args:
            col: Column of the newly placed ball.
            row: Row of the newly placed ball.

        Returns:
            MatchResult whose `cells` is the deduplicated union of all
            qualifying lines (empty if nothing qualified).

        Raises:
            ValueError: If the anchor cell is empty.
        """
        anchor = self._grid.get(col, row)
        if anchor is None:
            raise ValueError(f"No ball at anchor cell ({col}, {row})")

        color = anchor.color
        lines = {
            direction: self.line_cells(col, row, direction, color)
            for direction in Direction
        }

        cells = set()
        qualified = []
        for direction, line in lines.items():
            if len(line) >= self._min_match:
                cells.update(line)
                qualified.append(direction)

        return MatchResult(
            anchor=(col, row),
            color=color,
            lines=lines,
            cells=frozenset(cells),
            qualified=tuple(qualified)
        )
