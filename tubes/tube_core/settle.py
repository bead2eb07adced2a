"""
Settle Detection
================

Debounced rest detection for released balls.

The motion provider reports one sample per ball per tick. A ball that stays
below the velocity threshold inside a lane for enough consecutive ticks is
committed for placement; any faster sample resets its counter. A ball that
sits at rest without being placed for the grace period is given up on.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from tubes.tube_core.ball_catalog import Ball, BallState
from tubes.tube_core.config_loader import GameConfig, get_config


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MotionSample:
    """One tick of motion for a released ball."""
    uid: int
    column: Optional[int]               # Lane the ball overlaps, None if outside every lane
    velocity: Tuple[float, float] = (0.0, 0.0)

    @property
    def speed(self) -> float:
        """Linear speed magnitude."""
        vx, vy = self.velocity
        return math.sqrt(vx * vx + vy * vy)


@dataclass
class _Tracked:
    ball: Ball
    rest_frames: int = 0     # Consecutive slow ticks inside a lane
    idle_ticks: int = 0      # Consecutive slow ticks anywhere


@dataclass
class SettleUpdate:
    """Balls that changed status during one tick."""
    settled: List[Tuple[Ball, int]] = field(default_factory=list)
    expired: List[Ball] = field(default_factory=list)


class SettleTracker:
    """
    Tracks released balls until they settle in a lane or expire.

    Settled and expired balls are dropped from tracking, so each ball is
    reported at most once.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._threshold = config.settle.velocity_threshold
        self._frames_required = config.settle.frames_at_rest_required
        self._grace_ticks = config.settle.out_of_bounds_grace_ticks
        self._tracked: Dict[int, _Tracked] = {}

    def __len__(self) -> int:
        return len(self._tracked)

    def __contains__(self, uid: int) -> bool:
        return uid in self._tracked

    @property
    def balls(self) -> List[Ball]:
        """Balls currently in flight."""
        return [entry.ball for entry in self._tracked.values()]

    def track(self, ball: Ball) -> None:
        """Start tracking a released ball."""
        ball.state = BallState.TRAVELING
        self._tracked[ball.uid] = _Tracked(ball=ball)

    def discard(self, ball: Ball) -> bool:
        """Stop tracking a ball, e.g. when it is placed by other means."""
        entry = self._tracked.get(ball.uid)
        if entry is None or entry.ball is not ball:
            return False
        del self._tracked[ball.uid]
        return True

    def rest_frames(self, uid: int) -> int:
        return self._tracked[uid].rest_frames

    def idle_ticks(self, uid: int) -> int:
        return self._tracked[uid].idle_ticks

    def update(self, samples: Iterable[MotionSample]) -> SettleUpdate:
        """
        Apply one tick of samples.

        Args:
            samples: Motion samples; samples for untracked balls are ignored,
                tracked balls without a sample keep their counters.

        Returns:
            SettleUpdate listing balls to place and balls to destroy.
        """
        update = SettleUpdate()

        for sample in samples:
            entry = self._tracked.get(sample.uid)
            if entry is None:
                continue

            at_rest = sample.speed < self._threshold
            entry.idle_ticks = entry.idle_ticks + 1 if at_rest else 0

            if sample.column is None:
                # Left every lane
                entry.rest_frames = 0
            elif at_rest:
                entry.rest_frames += 1
            else:
                entry.rest_frames = 0

            if entry.rest_frames >= self._frames_required:
                del self._tracked[sample.uid]
                update.settled.append((entry.ball, sample.column))
                logger.debug("Ball %d settled in lane %d", sample.uid, sample.column)
                continue

            if entry.idle_ticks >= self._grace_ticks and self._grace_ticks > 0:
                del self._tracked[sample.uid]
                update.expired.append(entry.ball)
                logger.debug("Ball %d idle for %d ticks outside a lane", sample.uid, entry.idle_ticks)
                continue

            entry.ball.state = BallState.SETTLING if entry.rest_frames > 0 else BallState.TRAVELING

        return update

    def clear(self) -> List[Ball]:
        """Stop tracking everything and return the balls that were in flight."""
        balls = self.balls
        self._tracked.clear()
        return balls
