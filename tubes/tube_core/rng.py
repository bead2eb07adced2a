"""
RNG - Constrained Color Queue
=============================

Provides the sequence of ball colors dealt to the spawner.

Colors are generated in chunks holding an even share of each active color.
Each chunk is reshuffled until it has no run longer than `max_run` of one
color, or until the attempt budget runs out, in which case the last shuffle
is kept as-is.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from typing import Deque, List, Optional, Sequence, Tuple

from tubes.tube_core.ball_catalog import BallColor, ColorPalette
from tubes.tube_core.config_loader import GameConfig, get_config


logger = logging.getLogger(__name__)


def longest_run(colors: Sequence[BallColor]) -> int:
    """Length of the longest run of one color."""
    best = 0
    streak = 0
    previous = None
    for color in colors:
        streak = streak + 1 if color == previous else 1
        previous = color
        best = max(best, streak)
    return best


class ColorQueue:
    """
    Continuously refilled queue of upcoming ball colors.

    The queue is refilled when it runs dry and topped up after every
    consumption so that at least `min_buffer` colors are always waiting.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize color queue.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = random.Random(seed)
        self._palette: Tuple[BallColor, ...] = ColorPalette(config).active_colors

        self._queue: Deque[BallColor] = deque()
        self._consumed: int = 0
        self._chunks_generated: int = 0
        self._fallbacks: int = 0

        self._top_up()

    @property
    def palette(self) -> Tuple[BallColor, ...]:
        """Colors this queue deals."""
        return self._palette

    @property
    def consumed(self) -> int:
        """Colors consumed since the last reset."""
        return self._consumed

    @property
    def chunks_generated(self) -> int:
        return self._chunks_generated

    @property
    def fallbacks(self) -> int:
        """Chunks accepted without satisfying the run constraint."""
        return self._fallbacks

    def __len__(self) -> int:
        return len(self._queue)

    def build_multiset(self, size: int) -> List[BallColor]:
        """
        Evenly distributed colors for a chunk.

        Each color appears size // n times; the remainder goes to the first
        colors of the palette.
        """
        count = len(self._palette)
        share, remainder = divmod(size, count)
        colors: List[BallColor] = []
        for index, color in enumerate(self._palette):
            colors.extend([color] * (share + (1 if index < remainder else 0)))
        return colors

    def generate_chunk(self, size: int, tail: Sequence[BallColor] = ()) -> List[BallColor]:
        """
        Generate a shuffled chunk of colors.

        Args:
            size: Number of colors in the chunk.
            tail: Colors already queued ahead of this chunk. Runs that would
                continue across the boundary count against the chunk.

        Returns:
            The chunk. Best effort: may still contain a long run when the
            attempt budget is exhausted.
        """
        max_run = self._config.queue.max_run
        attempts = self._config.queue.max_shuffle_attempts
        tail = list(tail)[-max_run:]

        chunk = self.build_multiset(size)
        for _ in range(attempts):
            self._rng.shuffle(chunk)
            if longest_run(tail + chunk) <= max_run:
                break
        else:
            self._fallbacks += 1
            logger.debug(
                "No valid shuffle of %d colors after %d attempts; keeping last",
                size, attempts
            )

        self._chunks_generated += 1
        return chunk

    def _refill(self) -> None:
        chunk = self.generate_chunk(self._config.queue.chunk_size, tail=list(self._queue))
        self._queue.extend(chunk)
        logger.debug("Queued chunk of %d colors (%d waiting)", len(chunk), len(self._queue))

    def _top_up(self) -> None:
        while len(self._queue) < self._config.queue.min_buffer or not self._queue:
            self._refill()

    def consume(self) -> BallColor:
        """
        Dequeue the next color.

        Returns:
            The color for the next ball.
        """
        if not self._queue:
            self._refill()
        color = self._queue.popleft()
        self._consumed += 1
        self._top_up()
        return color

    def peek(self, count: Optional[int] = None) -> List[BallColor]:
        """
        Upcoming colors without consuming.

        Args:
            count: Number of colors to return. Defaults to peek_size.

        Returns:
            Exactly `count` colors, padded with BallColor.NONE.
        """
        if count is None:
            count = self._config.queue.peek_size
        if count < 0:
            raise ValueError(f"Peek count must not be negative, got {count}")
        upcoming = list(self._queue)[:count]
        upcoming.extend([BallColor.NONE] * (count - len(upcoming)))
        return upcoming

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset the queue with optional new seed.

        Args:
            seed: New random seed. Keeps current if None.
        """
        if seed is not None:
            self._rng = random.Random(seed)
        self._queue.clear()
        self._consumed = 0
        self._chunks_generated = 0
        self._fallbacks = 0
        self._top_up()

    def get_state(self) -> Tuple[List[BallColor], int, int]:
        """
        Get serializable state for checkpointing.

        Returns:
            Tuple of (queued colors, consumed count, rng_state_hash).
        """
        return (list(self._queue), self._consumed, hash(self._rng.getstate()))

    def set_state(self, queued: Sequence[BallColor], consumed: int = 0) -> None:
        """
        Restore queue contents.

        Args:
            queued: Colors waiting in the queue, front first.
            consumed: Consumption counter to restore.

        Raises:
            ValueError: If a color is not dealt by this queue's palette.
        """
        colors = [BallColor(c) for c in queued]
        for color in colors:
            if color not in self._palette:
                raise ValueError(f"Cannot restore {color.name} into a queue dealing {self._palette}")
        self._queue = deque(colors)
        self._consumed = consumed
        self._top_up()
