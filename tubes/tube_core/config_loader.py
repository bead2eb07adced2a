"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Optional

import yaml


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridConfig:
    """Tube grid dimensions."""
    columns: int    # Number of lanes
    rows: int       # Slots per lane, row 0 is the bottom


@dataclass(frozen=True)
class ColorConfig:
    """A single palette entry."""
    name: str
    rgb: Tuple[int, int, int]


@dataclass(frozen=True)
class PaletteConfig:
    """Ball colors and how many of them the queue deals."""
    colors: Tuple[ColorConfig, ...]
    active_count: int


@dataclass(frozen=True)
class QueueConfig:
    """Color queue generation parameters."""
    chunk_size: int              # Colors generated per refill
    min_buffer: int              # Queue is topped up to at least this many colors
    peek_size: int               # Upcoming colors shown to the player
    max_shuffle_attempts: int    # Shuffles tried before accepting a chunk as-is
    max_run: int                 # Longest allowed run of one color


@dataclass(frozen=True)
class SettleConfig:
    """Rest detection parameters for released balls."""
    velocity_threshold: float
    frames_at_rest_required: int
    out_of_bounds_grace_ticks: int


@dataclass(frozen=True)
class ScoringConfig:
    """Scoring parameters."""
    base_value: int          # Points per cleared ball, identical for every color
    min_match: int           # Same-color cells needed along one line
    diagonal_reach: int      # Diagonal window spans anchor +/- reach
    bonus_threshold: int     # Line count that unlocks a multiplier
    cross_multiplier: int    # Row and column both reach the threshold
    diagonal_multiplier: int # A diagonal window reaches the threshold


@dataclass(frozen=True)
class SessionConfig:
    """Session parameters."""
    max_hearts: int


@dataclass(frozen=True)
class CapsConfig:
    """Game limits."""
    max_drops: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    grid: GridConfig
    palette: PaletteConfig
    queue: QueueConfig
    settle: SettleConfig
    scoring: ScoringConfig
    session: SessionConfig
    caps: CapsConfig

    @property
    def num_colors(self) -> int:
        """Total number of palette colors."""
        return len(self.palette.colors)

    @property
    def active_colors(self) -> Tuple[ColorConfig, ...]:
        """Palette entries dealt by the color queue."""
        return self.palette.colors[:self.palette.active_count]

    def with_grid(self, columns: int, rows: int) -> "GameConfig":
        """Return a validated copy of this config with another grid size."""
        config = dataclasses.replace(self, grid=GridConfig(columns=columns, rows=rows))
        _validate_config(config)
        return config


def _parse_color(color_data: dict) -> ColorConfig:
    """Parse a palette entry from YAML."""
    rgb = color_data.get("rgb", [255, 255, 255])
    if len(rgb) != 3:
        raise ValueError(f"Color must have 3 values [R, G, B], got {rgb}")
    return ColorConfig(
        name=str(color_data["name"]),
        rgb=(int(rgb[0]), int(rgb[1]), int(rgb[2]))
    )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    if config.grid.columns <= 0 or config.grid.rows <= 0:
        raise ValueError(
            f"Grid must have positive dimensions, got {config.grid.columns}x{config.grid.rows}"
        )

    if not config.palette.colors:
        raise ValueError("Palette must contain at least one color")

    if not 1 <= config.palette.active_count <= len(config.palette.colors):
        raise ValueError(
            f"active_count ({config.palette.active_count}) must be in "
            f"[1, {len(config.palette.colors)}]"
        )

    names = [c.name for c in config.palette.colors]
    if len(set(names)) != len(names):
        raise ValueError(f"Palette color names must be unique, got {names}")

    queue = config.queue
    if queue.chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {queue.chunk_size}")
    if queue.peek_size < 0:
        raise ValueError(f"peek_size must not be negative, got {queue.peek_size}")
    if queue.min_buffer < queue.peek_size:
        raise ValueError(
            f"min_buffer ({queue.min_buffer}) must be at least "
            f"peek_size ({queue.peek_size})"
        )
    if queue.max_shuffle_attempts <= 0:
        raise ValueError(
            f"max_shuffle_attempts must be positive, got {queue.max_shuffle_attempts}"
        )
    if queue.max_run < 1:
        raise ValueError(f"max_run must be at least 1, got {queue.max_run}")

    settle = config.settle
    if settle.frames_at_rest_required <= 0:
        raise ValueError(
            f"frames_at_rest_required must be positive, got {settle.frames_at_rest_required}"
        )
    if settle.out_of_bounds_grace_ticks < 0:
        raise ValueError(
            f"out_of_bounds_grace_ticks must not be negative, got {settle.out_of_bounds_grace_ticks}"
        )

    scoring = config.scoring
    if scoring.min_match < 2:
        raise ValueError(f"min_match must be at least 2, got {scoring.min_match}")
    if scoring.diagonal_reach < 0:
        raise ValueError(f"diagonal_reach must not be negative, got {scoring.diagonal_reach}")

    if config.session.max_hearts <= 0:
        raise ValueError(f"max_hearts must be positive, got {config.session.max_hearts}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    grid_data = raw["grid"]
    grid = GridConfig(
        columns=int(grid_data["columns"]),
        rows=int(grid_data["rows"])
    )

    palette_data = raw["palette"]
    colors: List[ColorConfig] = [_parse_color(c) for c in palette_data.get("colors", [])]
    palette = PaletteConfig(
        colors=tuple(colors),
        active_count=int(palette_data.get("active_count", len(colors)))
    )

    queue_data = raw["queue"]
    queue = QueueConfig(
        chunk_size=int(queue_data["chunk_size"]),
        min_buffer=int(queue_data.get("min_buffer", queue_data["chunk_size"])),
        peek_size=int(queue_data.get("peek_size", 3)),
        max_shuffle_attempts=int(queue_data.get("max_shuffle_attempts", 30)),
        max_run=int(queue_data.get("max_run", 2))
    )

    settle_data = raw["settle"]
    settle = SettleConfig(
        velocity_threshold=float(settle_data["velocity_threshold"]),
        frames_at_rest_required=int(settle_data["frames_at_rest_required"]),
        out_of_bounds_grace_ticks=int(settle_data.get("out_of_bounds_grace_ticks", 120))
    )

    scoring_data = raw["scoring"]
    scoring = ScoringConfig(
        base_value=int(scoring_data["base_value"]),
        min_match=int(scoring_data.get("min_match", 3)),
        diagonal_reach=int(scoring_data.get("diagonal_reach", 2)),
        bonus_threshold=int(scoring_data.get("bonus_threshold", 5)),
        cross_multiplier=int(scoring_data.get("cross_multiplier", 4)),
        diagonal_multiplier=int(scoring_data.get("diagonal_multiplier", 2))
    )

    session_data = raw["session"]
    session = SessionConfig(
        max_hearts=int(session_data["max_hearts"])
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_drops=int(caps_data.get("max_drops", 500))
    )

    config = GameConfig(
        grid=grid,
        palette=palette,
        queue=queue,
        settle=settle,
        scoring=scoring,
        session=session,
        caps=caps
    )

    _validate_config(config)
    logger.debug("Loaded config from %s (%dx%d grid)", config_path, grid.columns, grid.rows)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
