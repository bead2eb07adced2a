"""
State Snapshot
==============

Packs game state into fixed-size numpy arrays for Gymnasium observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING
import numpy as np

from tubes.tube_core.ball_catalog import BallColor
from tubes.tube_core.config_loader import GameConfig, get_config

if TYPE_CHECKING:
    from tubes.tube_core.grid_state import GridState
    from tubes.tube_core.session import GameState


# Observation codes for session states
STATE_CODES = {
    "main_menu": 0,
    "animating_in": 1,
    "playing": 2,
    "game_over": 3,
}


@dataclass
class GameSnapshot:
    """
    Complete game state snapshot.

    Grid cells hold BallColor codes, -1 for empty. Upcoming colors are
    padded with the NONE code.
    """
    grid: np.ndarray            # (columns, rows) int8
    lids: np.ndarray            # (columns,) int8, 1 = open
    upcoming: np.ndarray        # (peek_size,) int8
    column_heights: np.ndarray  # (columns,) int32
    score: int
    hearts: int
    state: str
    drops_used: int
    balls_in_flight: int

    @property
    def free_slots(self) -> int:
        return int(np.count_nonzero(self.grid < 0))

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to observation dictionary."""
        return {
            "grid": self.grid.copy(),
            "lids": self.lids.copy(),
            "upcoming": self.upcoming.copy(),
            "column_heights": self.column_heights.copy(),
            "score": np.array(self.score, dtype=np.int64),
            "hearts": np.array(self.hearts, dtype=np.int32),
            "state": np.array(STATE_CODES[self.state], dtype=np.int32),
            "drops_used": np.array(self.drops_used, dtype=np.int32),
        }


class SnapshotBuilder:
    """Builds GameSnapshot objects from live game state."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._columns = config.grid.columns
        self._peek_size = config.queue.peek_size

    def build(
        self,
        grid: "GridState",
        lids: Sequence[bool],
        upcoming: List[BallColor],
        score: int,
        hearts: int,
        state: "GameState",
        drops_used: int,
        balls_in_flight: int = 0
    ) -> GameSnapshot:
        """
        Build a snapshot.

        Args:
            grid: Current grid.
            lids: Open flag per column.
            upcoming: Queue preview.
            score: Current score.
            hearts: Hearts left.
            state: Session state.
            drops_used: Balls spawned so far.
            balls_in_flight: Released balls not yet placed.
        """
        padded = list(upcoming)[:self._peek_size]
        padded.extend([BallColor.NONE] * (self._peek_size - len(padded)))

        heights = np.array(
            [grid.occupied_count(col) for col in range(self._columns)],
            dtype=np.int32
        )

        return GameSnapshot(
            grid=grid.to_color_array(),
            lids=np.array([1 if is_open else 0 for is_open in lids], dtype=np.int8),
            upcoming=np.array([int(c) for c in padded], dtype=np.int8),
            column_heights=heights,
            score=score,
            hearts=hearts,
            state=state.value,
            drops_used=drops_used,
            balls_in_flight=balls_in_flight
        )
