"""
Tubes Package
=============

Grid engine for the pendulum ball color-matching puzzle. Balls swing on a
pendulum, drop into one of several tubes, stack into a grid and clear when
three or more of the same color line up.

The package holds:

- Grid placement, match detection and cascade compaction
- Scoring with positional multipliers
- Lid signaling and game-over detection
- The constrained color queue that feeds the spawner

All tunable parameters are in game_config.yaml.
"""
