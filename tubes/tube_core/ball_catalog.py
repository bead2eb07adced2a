"""
Ball Catalog
============

Ball colors, lifecycle states and the palette loaded from config.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

from tubes.tube_core.config_loader import GameConfig, get_config


class BallColor(IntEnum):
    """
    Ball colors. Values double as observation codes.

    NONE is the sentinel used to pad queue previews; it never matches.
    """
    RED = 0
    GREEN = 1
    BLUE = 2
    MAGENTA = 3
    NONE = 4


class BallState(Enum):
    """Lifecycle of a single ball."""
    TRAVELING = "traveling"
    SETTLING = "settling"
    PLACED = "placed"
    CLEARING = "clearing"
    DESTROYED = "destroyed"


@dataclass(eq=False)
class Ball:
    """
    A ball instance.

    Identity matters: two balls of the same color are different balls,
    so equality is by object identity.
    """
    color: BallColor
    uid: int = 0
    state: BallState = BallState.TRAVELING

    @property
    def is_alive(self) -> bool:
        return self.state is not BallState.DESTROYED

    def destroy(self) -> None:
        self.state = BallState.DESTROYED

    def __repr__(self) -> str:
        return f"Ball({self.uid}: {self.color.name.lower()}, {self.state.value})"


class ColorPalette:
    """
    Palette resolved from config.

    Maps configured color names onto BallColor members and keeps their RGB
    values for the presentation layer.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize palette from game config.

        Args:
            config: GameConfig instance. If None, loads from default location.

        Raises:
            ValueError: If a configured name is not a known ball color.
        """
        if config is None:
            config = get_config()

        self._config = config
        colors = []
        rgb = {}
        for entry in config.palette.colors:
            try:
                color = BallColor[entry.name.upper()]
            except KeyError:
                raise ValueError(f"Unknown ball color in palette: {entry.name!r}") from None
            if color is BallColor.NONE:
                raise ValueError("The 'none' sentinel cannot be a palette color")
            colors.append(color)
            rgb[color] = entry.rgb
        self._colors: Tuple[BallColor, ...] = tuple(colors)
        self._rgb = rgb
        self._active_count = config.palette.active_count

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self):
        return iter(self._colors)

    def __contains__(self, color: object) -> bool:
        return color in self._colors

    @property
    def all_colors(self) -> Tuple[BallColor, ...]:
        """Every configured color in order."""
        return self._colors

    @property
    def active_colors(self) -> Tuple[BallColor, ...]:
        """Colors dealt by the queue (first N of the palette)."""
        return self._colors[:self._active_count]

    def rgb(self, color: BallColor) -> Tuple[int, int, int]:
        """RGB for a color; unconfigured colors and NONE render white."""
        return self._rgb.get(color, (255, 255, 255))


def get_palette(config: Optional[GameConfig] = None) -> ColorPalette:
    """Build the palette for a config (default config if None)."""
    return ColorPalette(config)
