"""
End-to-end tests for the placement/resolution cycle.
"""

import pytest

from tubes.tube_core.ball_catalog import Ball, BallColor, BallState
from tubes.tube_core.config_loader import load_config
from tubes.tube_core.events import (
    EVENT_BALL_LOST,
    EVENT_BALL_PLACED,
    EVENT_BALL_SPAWNED,
    EVENT_CASCADE_APPLIED,
    EVENT_GAME_OVER,
    EVENT_MATCH_CLEARED,
)
from tubes.tube_core.game import CoreGame
from tubes.tube_core.session import GameState


R, G, B, M = BallColor.RED, BallColor.GREEN, BallColor.BLUE, BallColor.MAGENTA


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def game(config):
    game = CoreGame(config=config, seed=42)
    game.reset()
    return game


def place_all(game, moves):
    """Place (column, color) pairs in order and return the last result."""
    result = None
    for column, color in moves:
        result = game.place(column, Ball(color))
    return result


class TestClears:
    """Test matches cleared by a placement."""

    def test_vertical_clear(self, game):
        result = place_all(game, [(0, R), (0, R), (0, R)])

        assert result.cleared == {(0, 0), (0, 1), (0, 2)}
        assert result.delta_score == 30
        assert game.score == 30
        assert game.grid.is_empty()
        assert result.ball.state == BallState.DESTROYED
        assert not result.ball.is_alive

    def test_horizontal_clear(self, game):
        result = place_all(game, [(0, G), (1, G), (2, G)])

        assert result.cleared == {(0, 0), (1, 0), (2, 0)}
        assert game.score == 30
        assert game.grid.is_empty()

    def test_diagonal_clear(self, game):
        result = place_all(game, [
            (0, B), (1, M), (1, B), (2, M), (2, M), (2, B),
        ])

        assert result.cleared == {(0, 0), (1, 1), (2, 2)}
        assert game.score == 30
        # Magenta fillers stay in place
        assert game.column_colors() == [[], [M], [M, M]]

    def test_anti_diagonal_clear(self, game):
        result = place_all(game, [
            (2, B), (1, M), (1, B), (0, M), (0, M), (0, B),
        ])

        assert result.cleared == {(0, 2), (1, 1), (2, 0)}
        assert game.column_colors() == [[M, M], [M], []]

    def test_cascade_after_clear(self, game):
        moves_seen = []
        game.bus.subscribe(EVENT_CASCADE_APPLIED, lambda sender, moves, columns: moves_seen.append(columns))

        result = place_all(game, [(0, R), (0, B), (1, R), (2, R)])

        assert result.cleared == {(0, 0), (1, 0), (2, 0)}
        assert [(m.column, m.source_row, m.target_row) for m in result.cascade] == [(0, 1, 0)]
        assert game.column_colors() == [[B], [], []]
        assert moves_seen == [[[B], [], []]]

    def test_match_event(self, game):
        cleared = []
        game.bus.subscribe(
            EVENT_MATCH_CLEARED,
            lambda sender, cells, score_event: cleared.append((cells, score_event.points))
        )

        place_all(game, [(1, G), (1, G), (1, G)])

        assert cleared == [(frozenset({(1, 0), (1, 1), (1, 2)}), 30)]

    def test_out_of_range_column(self, game):
        with pytest.raises(IndexError):
            game.place(3, Ball(R))


class TestGameOver:
    """Test the full-grid and hearts game-over rules."""

    NO_MATCH_FILL = [
        (0, R), (1, G), (2, B),
        (0, G), (1, M), (2, R),
        (0, B), (1, R), (2, M),
    ]

    def test_full_grid_without_match(self, game):
        ended = []
        game.bus.subscribe(EVENT_GAME_OVER, lambda sender, reason, score: ended.append((reason, score)))

        result = place_all(game, self.NO_MATCH_FILL)

        assert not result.matched
        assert result.game_over
        assert game.state == GameState.GAME_OVER
        assert game.termination_reason == "grid_full"
        assert game.score == 0
        assert ended == [("grid_full", 0)]

    def test_full_grid_with_match_continues(self, game):
        fill = [(0, M)] + self.NO_MATCH_FILL[1:]
        result = place_all(game, fill)

        assert result.cleared == {(0, 0), (1, 1), (2, 2)}
        assert not result.game_over
        assert game.state == GameState.PLAYING
        assert game.column_colors() == [[G, B], [G, R], [B, R]]

    def test_placement_ignored_after_game_over(self, game):
        place_all(game, self.NO_MATCH_FILL)
        result = game.place(0, Ball(R))

        assert not result.placed
        assert game.drop(0).ball is None

    def test_column_full_costs_heart(self, game):
        lost = []
        game.bus.subscribe(EVENT_BALL_LOST, lambda sender, ball, reason: lost.append(reason))
        place_all(game, [(0, R), (0, G), (0, B)])
        extra = Ball(R)

        result = game.place(0, extra)

        assert result.rejected
        assert not result.placed
        assert extra.state == BallState.DESTROYED
        assert game.hearts == 2
        assert lost == ["column_full"]
        assert game.column_colors()[0] == [R, G, B]

    def test_hearts_run_out(self, game):
        place_all(game, [(0, R), (0, G), (0, B)])
        for _ in range(3):
            result = game.place(0, Ball(R))

        assert result.game_over
        assert game.termination_reason == "out_of_hearts"
        assert game.hearts == 0


class TestSessionFlow:
    """Test spawning, replay and menu handling through CoreGame."""

    def test_spawn_before_play(self, config):
        game = CoreGame(config=config, seed=1)

        assert game.state == GameState.MAIN_MENU
        assert game.spawn_ball() is None

    def test_start_and_begin_play(self, config):
        game = CoreGame(config=config, seed=1)
        game.start()
        assert game.state == GameState.ANIMATING_IN

        game.begin_play()
        assert game.state == GameState.PLAYING

    def test_drop_uses_queue(self, game):
        spawned = []
        placed = []
        game.bus.subscribe(EVENT_BALL_SPAWNED, lambda sender, ball, upcoming: spawned.append(ball))
        game.bus.subscribe(EVENT_BALL_PLACED, lambda sender, ball, column, row: placed.append((column, row)))
        expected = game.upcoming(1)[0]

        result = game.drop(1)

        assert result.ball.color == expected
        assert game.grid.get(1, 0) is result.ball
        assert game.drops_used == 1
        assert spawned == [result.ball]
        assert placed == [(1, 0)]

    def test_replay_resets_everything(self, game):
        first_preview = game.upcoming()
        place_all(game, TestGameOver.NO_MATCH_FILL)
        assert game.is_over

        game.replay()

        assert game.state == GameState.PLAYING
        assert game.score == 0
        assert game.hearts == 3
        assert game.drops_used == 0
        assert game.grid.is_empty()
        assert game.lids.states == [True, True, True]
        assert game.upcoming() == first_preview

    def test_return_to_menu_clears_board(self, game):
        in_flight = game.spawn_ball()
        place_all(game, [(0, R), (1, G)])

        game.return_to_menu()

        assert game.state == GameState.MAIN_MENU
        assert game.grid.is_empty()
        assert in_flight.state == BallState.DESTROYED
        assert len(game.settle_tracker) == 0

        game.reset()
        assert game.state == GameState.PLAYING


class TestSnapshot:
    """Test the observation snapshot."""

    def test_snapshot_contents(self, game):
        place_all(game, [(0, R), (0, G), (2, B)])
        snapshot = game.build_snapshot()

        assert snapshot.grid[0].tolist() == [int(R), int(G), -1]
        assert snapshot.column_heights.tolist() == [2, 0, 1]
        assert snapshot.free_slots == 6
        assert len(snapshot.upcoming) == 3
        assert snapshot.state == "playing"

        obs = snapshot.to_obs_dict()
        assert int(obs["state"]) == 2
        assert int(obs["hearts"]) == 3

    def test_info(self, game):
        place_all(game, [(0, R), (0, R), (0, R)])
        info = game.get_info()

        assert info["score"] == 30
        assert info["matches"] == 1
        assert info["state"] == "playing"
        assert info["terminated_reason"] == ""
