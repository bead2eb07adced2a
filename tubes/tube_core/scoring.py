"""
Scoring System
==============

Turns a match into a score delta.

Every cleared ball is worth the same base value. The sum is multiplied:
- 4x when both the anchor's row and column hold 5+ anchor-colored balls
- 2x otherwise, when a diagonal window is completely filled (5 of 5)
- 1x in every other case
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from tubes.tube_core.config_loader import GameConfig, get_config
from tubes.tube_core.grid_state import Cell
from tubes.tube_core.match_resolver import MatchResult


@dataclass
class ScoreEvent:
    """Record of a scoring event."""
    points: int
    base_points: int
    multiplier: int
    cells: FrozenSet[Cell]
    horizontal_count: int
    vertical_count: int
    diagonal_count: int

    @property
    def cleared(self) -> int:
        return len(self.cells)

    def __repr__(self) -> str:
        if self.multiplier > 1:
            return f"ScoreEvent(clear_{self.cleared}={self.base_points}, multiplier={self.multiplier}x)"
        return f"ScoreEvent(clear_{self.cleared}={self.points})"


class ScoringPolicy:
    """Computes score deltas from match results."""

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize scoring policy.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._base_value = config.scoring.base_value
        self._threshold = config.scoring.bonus_threshold

    @property
    def base_value(self) -> int:
        """Points per cleared ball."""
        return self._base_value

    def get_multiplier(self, horizontal: int, vertical: int, diagonal: int) -> int:
        """
        Multiplier for the given line counts through the anchor.

        Args:
            horizontal: Anchor-colored cells in the full row.
            vertical: Anchor-colored cells in the full column.
            diagonal: Best diagonal window count.
        """
        scoring = self._config.scoring
        if horizontal >= self._threshold and vertical >= self._threshold:
            return scoring.cross_multiplier
        if diagonal >= self._threshold:
            return scoring.diagonal_multiplier
        return 1

    def score_match(self, match: MatchResult) -> ScoreEvent:
        """
        Score a match.

        Args:
            match: Result of MatchResolver.find_matches. An empty match
                scores zero.

        Returns:
            ScoreEvent describing the points awarded.
        """
        base_points = self._base_value * len(match.cells)
        multiplier = self.get_multiplier(
            match.horizontal_count,
            match.vertical_count,
            match.diagonal_count
        )
        return ScoreEvent(
            points=base_points * multiplier,
            base_points=base_points,
            multiplier=multiplier,
            cells=match.cells,
            horizontal_count=match.horizontal_count,
            vertical_count=match.vertical_count,
            diagonal_count=match.diagonal_count
        )
