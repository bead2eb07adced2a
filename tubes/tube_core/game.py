"""
Core Game
=========

Main game orchestrator combining the grid, matching, scoring, cascades,
lids, color queue, settle detection and session state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from tubes.tube_core.ball_catalog import Ball, BallColor, BallState, ColorPalette
from tubes.tube_core.cascade import CascadeEngine, CascadeMove
from tubes.tube_core.config_loader import GameConfig, get_config
from tubes.tube_core.events import (
    EventBus,
    EVENT_BALL_LOST,
    EVENT_BALL_PLACED,
    EVENT_BALL_SPAWNED,
    EVENT_CASCADE_APPLIED,
    EVENT_LID_CHANGED,
    EVENT_MATCH_CLEARED,
)
from tubes.tube_core.grid_state import Cell, ColumnFull, GridState
from tubes.tube_core.lids import LidStateMachine, LidTransition
from tubes.tube_core.match_resolver import MatchResolver
from tubes.tube_core.rng import ColorQueue
from tubes.tube_core.scoring import ScoreEvent, ScoringPolicy
from tubes.tube_core.session import GameSession, GameState
from tubes.tube_core.settle import MotionSample, SettleTracker
from tubes.tube_core.state_snapshot import GameSnapshot, SnapshotBuilder


logger = logging.getLogger(__name__)


@dataclass
class PlacementResult:
    """Result of one placement/resolution cycle."""
    ball: Optional[Ball]
    column: int
    row: Optional[int] = None
    rejected: bool = False
    cleared: FrozenSet[Cell] = frozenset()
    score_event: Optional[ScoreEvent] = None
    cascade: List[CascadeMove] = field(default_factory=list)
    lids: List[LidTransition] = field(default_factory=list)
    game_over: bool = False

    @property
    def placed(self) -> bool:
        return self.row is not None

    @property
    def matched(self) -> bool:
        return bool(self.cleared)

    @property
    def delta_score(self) -> int:
        return self.score_event.points if self.score_event is not None else 0


@dataclass
class TickResult:
    """Result of advancing the game by one tick."""
    tick: int
    placements: List[PlacementResult] = field(default_factory=list)
    lost_balls: List[Ball] = field(default_factory=list)
    game_over: bool = False

    @property
    def delta_score(self) -> int:
        return sum(p.delta_score for p in self.placements)


class CoreGame:
    """
    Main game simulation class.

    Orchestrates:
    - Grid state, match search, scoring, cascades and lids
    - Color queue (RNG) and ball spawning
    - Settle detection fed by an external motion provider
    - Session state, score and hearts

    One placement runs the whole cycle: place, match, clear, cascade,
    lids, game-over check. Grid mutations never interleave.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        bus: Optional[EventBus] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for the color queue.
            bus: Event bus for presentation notifications. A private bus
                is created if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._seed = seed
        self._bus = bus if bus is not None else EventBus()

        # Initialize subsystems
        self._palette = ColorPalette(config)
        self._grid = GridState(config)
        self._resolver = MatchResolver(self._grid, config)
        self._scoring = ScoringPolicy(config)
        self._cascade = CascadeEngine(self._grid)
        self._lids = LidStateMachine(self._grid)
        self._queue = ColorQueue(config, seed)
        self._settle = SettleTracker(config)
        self._session = GameSession(config, self._bus)
        self._snapshot_builder = SnapshotBuilder(config)

        # Game state
        self._next_uid: int = 0
        self._tick: int = 0
        self._drops_used: int = 0
        self._matches: int = 0

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def palette(self) -> ColorPalette:
        return self._palette

    @property
    def grid(self) -> GridState:
        return self._grid

    @property
    def lids(self) -> LidStateMachine:
        return self._lids

    @property
    def color_queue(self) -> ColorQueue:
        """The color queue (for preview access)."""
        return self._queue

    @property
    def session(self) -> GameSession:
        return self._session

    @property
    def settle_tracker(self) -> SettleTracker:
        return self._settle

    @property
    def state(self) -> GameState:
        return self._session.state

    @property
    def score(self) -> int:
        """Current score."""
        return self._session.score

    @property
    def hearts(self) -> int:
        return self._session.hearts

    @property
    def drops_used(self) -> int:
        """Number of balls spawned this game."""
        return self._drops_used

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def is_over(self) -> bool:
        """True if game has ended."""
        return self._session.is_over

    @property
    def termination_reason(self) -> str:
        """Reason for game end, or empty string."""
        return self._session.termination_reason

    def upcoming(self, count: Optional[int] = None) -> List[BallColor]:
        """Next colors for the preview display."""
        return self._queue.peek(count)

    # ------------------------------------------------------------------
    # Session flow
    # ------------------------------------------------------------------

    def _reset_board(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self._seed = seed
        self.clear_board()
        self._lids.reset()
        self._queue.reset(self._seed)
        self._next_uid = 0
        self._tick = 0
        self._drops_used = 0
        self._matches = 0

    def start(self) -> None:
        """Main menu start button: begin the intro animation."""
        self._session.start()

    def begin_play(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Intro finished: start playing on a fresh board.

        Args:
            seed: New random seed. Uses previous if None.

        Returns:
            Initial game snapshot.
        """
        self._reset_board(seed)
        self._session.begin_play()
        return self.build_snapshot()

    def replay(self, seed: Optional[int] = None) -> GameSnapshot:
        """Reset score, hearts, grid and queue and play again."""
        self._reset_board(seed)
        self._session.replay()
        return self.build_snapshot()

    def reset(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Reset game to a fresh PLAYING state from whatever state it is in.

        Args:
            seed: New random seed. Uses previous if None.

        Returns:
            Initial game snapshot.
        """
        if self._session.state is GameState.MAIN_MENU:
            self._session.start()
        if self._session.state is GameState.ANIMATING_IN:
            return self.begin_play(seed)
        return self.replay(seed)

    def return_to_menu(self) -> None:
        """Back to the main menu, clearing every tube."""
        self.clear_board()
        self._lids.reset()
        self._session.return_to_menu()

    def clear_board(self) -> List[Ball]:
        """
        Destroy every ball on the grid and in flight.

        Returns:
            The destroyed balls.
        """
        destroyed = self._grid.clear() + self._settle.clear()
        for ball in destroyed:
            ball.destroy()
        return destroyed

    # ------------------------------------------------------------------
    # Spawning and placement
    # ------------------------------------------------------------------

    def spawn_ball(self) -> Optional[Ball]:
        """
        Create the next ball from the color queue and start tracking it.

        Returns:
            The new ball, or None if the game is not being played.
        """
        if not self._session.is_playing:
            return None

        color = self._queue.consume()
        ball = Ball(color=color, uid=self._next_uid)
        self._next_uid += 1
        self._drops_used += 1
        self._settle.track(ball)
        self._bus.emit(EVENT_BALL_SPAWNED, ball=ball, upcoming=self._queue.peek())
        return ball

    def place(self, column: int, ball: Ball) -> PlacementResult:
        """
        Run one placement/resolution cycle for a settled ball.

        Args:
            column: Lane the ball came to rest in.
            ball: The settled ball.

        Returns:
            PlacementResult describing everything that happened.

        Raises:
            IndexError: If column is out of range.
        """
        result = PlacementResult(ball=ball, column=column)
        if not self._session.is_playing:
            return result

        self._settle.discard(ball)

        try:
            row = self._grid.place(column, ball)
        except ColumnFull:
            logger.warning("Column %d is full, ball %d lost", column, ball.uid)
            result.rejected = True
            self._lose_ball(ball, "column_full")
            result.game_over = self._session.is_over
            return result

        ball.state = BallState.PLACED
        result.row = row
        logger.debug("Placed %r at (%d, %d)", ball, column, row)
        self._bus.emit(EVENT_BALL_PLACED, ball=ball, column=column, row=row)

        match = self._resolver.find_matches(column, row)
        if match.matched:
            score_event = self._scoring.score_match(match)
            for col, r in match.cells:
                self._grid.get(col, r).state = BallState.CLEARING
            removed = self._grid.remove(match.cells)
            for cleared in removed:
                cleared.destroy()
            self._matches += 1
            result.cleared = match.cells
            result.score_event = score_event
            logger.debug("Cleared %d cells, %r", len(match.cells), score_event)
            self._bus.emit(EVENT_MATCH_CLEARED, cells=match.cells, score_event=score_event)
            self._session.add_score(score_event.points)

            result.cascade = self._cascade.compact()
            if result.cascade:
                logger.debug("Cascade moved %d balls", len(result.cascade))
            self._bus.emit(
                EVENT_CASCADE_APPLIED,
                moves=result.cascade,
                columns=self.column_colors()
            )

        result.lids = self._lids.refresh()
        for transition in result.lids:
            self._bus.emit(EVENT_LID_CHANGED, column=transition.column, is_open=transition.is_open)

        termination = self._session.check_board(self._grid.is_full(), match.matched)
        if termination.terminated:
            self._session.game_over(termination.reason)
        result.game_over = self._session.is_over
        return result

    def drop(self, column: int) -> PlacementResult:
        """
        Spawn the next ball and place it straight into a lane.

        Used when no motion provider is attached.

        Args:
            column: Target lane.
        """
        ball = self.spawn_ball()
        if ball is None:
            return PlacementResult(ball=None, column=column)
        return self.place(column, ball)

    def _lose_ball(self, ball: Ball, reason: str) -> None:
        ball.destroy()
        self._bus.emit(EVENT_BALL_LOST, ball=ball, reason=reason)
        self._session.subtract_heart(reason)

    # ------------------------------------------------------------------
    # Tick driver
    # ------------------------------------------------------------------

    def advance(self, samples: Iterable[MotionSample] = ()) -> TickResult:
        """
        Advance the game by one tick.

        Args:
            samples: Motion samples for released balls this tick.

        Returns:
            TickResult with the placements and losses this tick.
        """
        self._tick += 1
        result = TickResult(tick=self._tick)
        if not self._session.is_playing:
            result.game_over = self._session.is_over
            return result

        update = self._settle.update(samples)

        # Balls reported by update() are no longer tracked, so each one is
        # either placed, lost or discarded here.
        for ball, column in update.settled:
            if not self._session.is_playing:
                self._discard_ball(ball, result)
                continue
            result.placements.append(self.place(column, ball))

        for ball in update.expired:
            if not self._session.is_playing:
                self._discard_ball(ball, result)
                continue
            logger.debug("Ball %d expired outside the tubes", ball.uid)
            result.lost_balls.append(ball)
            self._lose_ball(ball, "out_of_bounds")

        result.game_over = self._session.is_over
        return result

    def _discard_ball(self, ball: Ball, result: TickResult) -> None:
        """Destroy a ball left over after the game ended, without a heart."""
        ball.destroy()
        result.lost_balls.append(ball)
        self._bus.emit(EVENT_BALL_LOST, ball=ball, reason="game_over")

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def column_colors(self) -> List[List[BallColor]]:
        """Colors of each column, bottom to top."""
        return [
            [ball.color for _, ball in self._grid.column_balls(col)]
            for col in range(self._grid.columns)
        ]

    def build_snapshot(self) -> GameSnapshot:
        """Build current game state snapshot."""
        return self._snapshot_builder.build(
            grid=self._grid,
            lids=self._lids.states,
            upcoming=self._queue.peek(),
            score=self._session.score,
            hearts=self._session.hearts,
            state=self._session.state,
            drops_used=self._drops_used,
            balls_in_flight=len(self._settle)
        )

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "score": self._session.score,
            "hearts": self._session.hearts,
            "drops_used": self._drops_used,
            "matches": self._matches,
            "state": self._session.state.value,
            "terminated_reason": self._session.termination_reason,
        }
