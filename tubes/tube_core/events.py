"""
Events
======

Notifications for the presentation layer.
"""

from blinker import Signal
from typing import Dict


class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Strong references so lambdas and bound methods stay connected.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SPAWNING & PLACEMENT
# ============================================================================
EVENT_BALL_SPAWNED = "ball_spawned"        # payload: ball=Ball, upcoming=[BallColor,...]
EVENT_BALL_PLACED = "ball_placed"          # payload: ball=Ball, column=int, row=int
EVENT_BALL_LOST = "ball_lost"              # payload: ball=Ball, reason=str


# ============================================================================
# GRID RESOLUTION
# ============================================================================
EVENT_MATCH_CLEARED = "match_cleared"      # payload: cells=frozenset[(c,r)], score_event=ScoreEvent
EVENT_CASCADE_APPLIED = "cascade_applied"  # payload: moves=[CascadeMove,...], columns=[[BallColor,...],...]
EVENT_LID_CHANGED = "lid_changed"          # payload: column=int, is_open=bool


# ============================================================================
# SESSION
# ============================================================================
EVENT_SCORE_CHANGED = "score_changed"      # payload: score=int, delta=int
EVENT_HEARTS_CHANGED = "hearts_changed"    # payload: hearts=int, delta=int
EVENT_STATE_CHANGED = "state_changed"      # payload: previous=GameState, current=GameState
EVENT_GAME_OVER = "game_over"              # payload: reason=str, score=int
