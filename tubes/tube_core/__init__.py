"""
Tube Core - The heart of the puzzle engine.

This module provides the grid engine, the color queue, settle detection,
session state and a Gymnasium environment wrapper.

Main exports:
- CoreGame: Orchestrates one placement/resolution cycle per settled ball
- GridState, MatchResolver, ScoringPolicy, CascadeEngine, LidStateMachine
- ColorQueue: Constrained random color sequence for the spawner
- GameSession: Menu/playing/game-over state, score and hearts
- TubeEnv: Gymnasium environment
- GameConfig: Configuration loaded from game_config.yaml
"""

from tubes.tube_core.config_loader import GameConfig, load_config
from tubes.tube_core.ball_catalog import Ball, BallColor, BallState, ColorPalette
from tubes.tube_core.grid_state import GridState, ColumnFull, GridNotCompacted
from tubes.tube_core.match_resolver import MatchResolver, MatchResult, Direction
from tubes.tube_core.scoring import ScoringPolicy, ScoreEvent
from tubes.tube_core.cascade import CascadeEngine, CascadeMove
from tubes.tube_core.lids import LidStateMachine, LidTransition
from tubes.tube_core.rng import ColorQueue
from tubes.tube_core.settle import SettleTracker, MotionSample
from tubes.tube_core.session import GameSession, GameState
from tubes.tube_core.events import EventBus
from tubes.tube_core.game import CoreGame, PlacementResult, TickResult
from tubes.tube_core.env_gym import TubeEnv

__all__ = [
    "GameConfig",
    "load_config",
    "Ball",
    "BallColor",
    "BallState",
    "ColorPalette",
    "GridState",
    "ColumnFull",
    "GridNotCompacted",
    "MatchResolver",
    "MatchResult",
    "Direction",
    "ScoringPolicy",
    "ScoreEvent",
    "CascadeEngine",
    "CascadeMove",
    "LidStateMachine",
    "LidTransition",
    "ColorQueue",
    "SettleTracker",
    "MotionSample",
    "GameSession",
    "GameState",
    "EventBus",
    "CoreGame",
    "PlacementResult",
    "TickResult",
    "TubeEnv",
]
