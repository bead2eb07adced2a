"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the tube puzzle.
Each step drops the next ball straight into the chosen lane.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from tubes.tube_core.ball_catalog import BallColor
from tubes.tube_core.config_loader import GameConfig, load_config
from tubes.tube_core.game import CoreGame
from tubes.tube_core.state_snapshot import GameSnapshot


logger = logging.getLogger(__name__)


class TubeEnv(gym.Env):
    """
    Tube color-matching puzzle as a Gymnasium environment.

    Action Space:
        Discrete(columns) - the lane the next ball drops into.

    Observation Space:
        Dict with the grid colors, lid flags, upcoming colors and counters.

    Reward:
        Score gained by the step.

    Info:
        Contains score, hearts, delta_score, cleared, multiplier, etc.
    """

    metadata = {
        "render_modes": ["ansi"],
        "render_fps": 4,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        debug: bool = False,
    ):
        """
        Initialize tube environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            config: Already loaded config; takes precedence over config_path.
            render_mode: "ansi" for a text board, None for headless.
            debug: If True, logs every step at DEBUG level.
        """
        super().__init__()

        self._config = config if config is not None else load_config(config_path)
        self.render_mode = render_mode
        self._debug = debug
        if debug:
            logger.setLevel(logging.DEBUG)

        self._game = CoreGame(config=self._config)

        self.action_space = spaces.Discrete(self._config.grid.columns)
        self.observation_space = self._build_observation_space()

        logger.debug(
            "TubeEnv initialized: %dx%d grid, %d hearts",
            self._config.grid.columns, self._config.grid.rows, self._config.session.max_hearts
        )

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        grid = self._config.grid
        max_code = int(BallColor.NONE)

        return spaces.Dict({
            "grid": spaces.Box(low=-1, high=max_code, shape=(grid.columns, grid.rows), dtype=np.int8),
            "lids": spaces.Box(low=0, high=1, shape=(grid.columns,), dtype=np.int8),
            "upcoming": spaces.Box(low=0, high=max_code, shape=(self._config.queue.peek_size,), dtype=np.int8),
            "column_heights": spaces.Box(low=0, high=grid.rows, shape=(grid.columns,), dtype=np.int32),
            "score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "hearts": spaces.Box(low=0, high=self._config.session.max_hearts, shape=(), dtype=np.int32),
            "state": spaces.Box(low=0, high=3, shape=(), dtype=np.int32),
            "drops_used": spaces.Box(low=0, high=self._config.caps.max_drops, shape=(), dtype=np.int32),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Random seed for reproducibility.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        snapshot = self._game.reset(seed=seed)

        obs = self._snapshot_to_obs(snapshot)
        info = self._game.get_info()
        info["delta_score"] = 0

        return obs, info

    def step(
        self,
        action: Union[int, np.integer, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one step.

        Args:
            action: Lane index in [0, columns).

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
        """
        if isinstance(action, np.ndarray):
            action = action.item() if action.ndim == 0 else action[0]
        column = int(action)
        if not self.action_space.contains(column):
            raise ValueError(f"Invalid lane {column} for {self._config.grid.columns} columns")

        result = self._game.drop(column)

        obs = self._snapshot_to_obs(self._game.build_snapshot())
        terminated = self._game.is_over
        truncated = (not terminated) and self._game.drops_used >= self._config.caps.max_drops

        info = self._game.get_info()
        info["delta_score"] = result.delta_score
        info["cleared"] = len(result.cleared)
        info["multiplier"] = result.score_event.multiplier if result.score_event else 1
        info["rejected"] = result.rejected

        logger.debug(
            "Step: lane=%d, delta_score=%d, hearts=%d", column, result.delta_score, info["hearts"]
        )
        if terminated:
            logger.debug("TERMINATED: %s", info.get("terminated_reason", "unknown"))

        return obs, float(result.delta_score), terminated, truncated, info

    def _snapshot_to_obs(self, snapshot: GameSnapshot) -> Dict[str, np.ndarray]:
        """Convert snapshot to observation dict."""
        return snapshot.to_obs_dict()

    def render(self) -> Optional[str]:
        """
        Render the current game state.

        Returns:
            Text board if render_mode is "ansi", None otherwise.
        """
        if self.render_mode != "ansi":
            return None

        grid = self._game.grid
        lines = [
            " ".join("o" if is_open else "-" for is_open in self._game.lids.states)
        ]
        for row in reversed(range(grid.rows)):
            cells = []
            for col in range(grid.columns):
                ball = grid.get(col, row)
                cells.append("." if ball is None else ball.color.name[0])
            lines.append(" ".join(cells))
        lines.append(f"score={self._game.score} hearts={self._game.hearts}")
        return "\n".join(lines)

    def close(self) -> None:
        """Clean up resources."""

    @property
    def game(self) -> CoreGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
