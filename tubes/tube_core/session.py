"""
Game Session
============

Top-level session state: menu flow, score, hearts and game-over conditions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tubes.tube_core.config_loader import GameConfig, get_config
from tubes.tube_core.events import (
    EventBus,
    EVENT_GAME_OVER,
    EVENT_HEARTS_CHANGED,
    EVENT_SCORE_CHANGED,
    EVENT_STATE_CHANGED,
)


logger = logging.getLogger(__name__)


class GameState(Enum):
    MAIN_MENU = "main_menu"
    ANIMATING_IN = "animating_in"
    PLAYING = "playing"
    GAME_OVER = "game_over"


@dataclass
class TerminationResult:
    """Result of termination check."""
    terminated: bool
    reason: str

    @staticmethod
    def none() -> "TerminationResult":
        return TerminationResult(False, "")

    @staticmethod
    def game_over(reason: str) -> "TerminationResult":
        return TerminationResult(True, reason)


class GameSession:
    """
    Session state machine.

    MAIN_MENU -> ANIMATING_IN -> PLAYING -> GAME_OVER, with replay going
    straight back to PLAYING and return_to_menu available from anywhere.

    - Score only grows, and only while PLAYING
    - Hearts start at max_hearts and reaching 0 ends the game
    - A full grid ends the game unless the last placement cleared a match
    """

    def __init__(self, config: Optional[GameConfig] = None, bus: Optional[EventBus] = None):
        """
        Initialize session.

        Args:
            config: Game configuration. Uses default if None.
            bus: Event bus for score/hearts/state notifications.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._bus = bus if bus is not None else EventBus()
        self._max_hearts = config.session.max_hearts

        self._state = GameState.MAIN_MENU
        self._score: int = 0
        self._hearts: int = self._max_hearts
        self._termination_reason: str = ""

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def score(self) -> int:
        """Current total score."""
        return self._score

    @property
    def hearts(self) -> int:
        return self._hearts

    @property
    def max_hearts(self) -> int:
        return self._max_hearts

    @property
    def is_playing(self) -> bool:
        return self._state is GameState.PLAYING

    @property
    def is_over(self) -> bool:
        return self._state is GameState.GAME_OVER

    @property
    def termination_reason(self) -> str:
        """Reason for game end, or empty string."""
        return self._termination_reason

    def _transition(self, new_state: GameState) -> None:
        previous = self._state
        self._state = new_state
        logger.info("Session %s -> %s", previous.value, new_state.value)
        self._bus.emit(EVENT_STATE_CHANGED, previous=previous, current=new_state)

    def _reset_counters(self) -> None:
        self._score = 0
        self._hearts = self._max_hearts
        self._termination_reason = ""
        self._bus.emit(EVENT_SCORE_CHANGED, score=self._score, delta=0)
        self._bus.emit(EVENT_HEARTS_CHANGED, hearts=self._hearts, delta=0)

    def start(self) -> None:
        """Leave the main menu and play the intro animation."""
        if self._state is not GameState.MAIN_MENU:
            raise RuntimeError(f"Cannot start from {self._state.value}")
        self._transition(GameState.ANIMATING_IN)

    def begin_play(self) -> None:
        """Intro finished: start a fresh game."""
        if self._state is not GameState.ANIMATING_IN:
            raise RuntimeError(f"Cannot begin play from {self._state.value}")
        self._reset_counters()
        self._transition(GameState.PLAYING)

    def replay(self) -> None:
        """Restart with fresh score and hearts."""
        if self._state not in (GameState.PLAYING, GameState.GAME_OVER):
            raise RuntimeError(f"Cannot replay from {self._state.value}")
        self._reset_counters()
        self._transition(GameState.PLAYING)

    def return_to_menu(self) -> None:
        self._termination_reason = ""
        if self._state is not GameState.MAIN_MENU:
            self._transition(GameState.MAIN_MENU)

    def add_score(self, amount: int) -> int:
        """
        Add points while playing.

        Args:
            amount: Points to add, never negative.

        Returns:
            The new score (unchanged when not playing).
        """
        if amount < 0:
            raise ValueError(f"Score delta must not be negative, got {amount}")
        if not self.is_playing or amount == 0:
            return self._score
        self._score += amount
        self._bus.emit(EVENT_SCORE_CHANGED, score=self._score, delta=amount)
        return self._score

    def subtract_heart(self, reason: str = "ball_lost") -> int:
        """
        Lose one heart, ending the game at zero.

        Returns:
            Hearts remaining.
        """
        if not self.is_playing or self._hearts == 0:
            return self._hearts
        self._hearts = max(0, self._hearts - 1)
        self._bus.emit(EVENT_HEARTS_CHANGED, hearts=self._hearts, delta=-1)
        logger.debug("Heart lost (%s), %d left", reason, self._hearts)
        if self._hearts == 0:
            self.game_over("out_of_hearts")
        return self._hearts

    def check_board(self, grid_full: bool, matched: bool) -> TerminationResult:
        """
        Game-over check after a placement cycle.

        Args:
            grid_full: Whether every column's top row is occupied.
            matched: Whether the placement cleared a match.
        """
        if grid_full and not matched:
            return TerminationResult.game_over("grid_full")
        return TerminationResult.none()

    def game_over(self, reason: str) -> None:
        if self._state is GameState.GAME_OVER:
            return
        self._termination_reason = reason
        self._transition(GameState.GAME_OVER)
        logger.info("Game over (%s), final score %d", reason, self._score)
        self._bus.emit(EVENT_GAME_OVER, reason=reason, score=self._score)
