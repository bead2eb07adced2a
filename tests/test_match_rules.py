"""
Tests for match detection along rows, columns and diagonals.
"""

import pytest

from tubes.tube_core.ball_catalog import Ball, BallColor
from tubes.tube_core.config_loader import load_config
from tubes.tube_core.grid_state import GridState
from tubes.tube_core.match_resolver import Direction, MatchResolver


R, G, B, M = BallColor.RED, BallColor.GREEN, BallColor.BLUE, BallColor.MAGENTA


@pytest.fixture
def config():
    return load_config()


def build(config, columns, rows, stacks):
    """Grid with each column filled bottom-up from `stacks`."""
    grid = GridState(config.with_grid(columns, rows))
    for col, colors in enumerate(stacks):
        for color in colors:
            grid.place(col, Ball(color))
    return grid


def resolver_for(config, grid):
    return MatchResolver(grid, config)


class TestStraightLines:
    """Test horizontal and vertical matches."""

    def test_vertical_three(self, config):
        grid = build(config, 3, 3, [[R, R, R], [], []])
        match = resolver_for(config, grid).find_matches(0, 2)

        assert match.matched
        assert match.cells == {(0, 0), (0, 1), (0, 2)}
        assert match.qualified == (Direction.VERTICAL,)

    def test_horizontal_three(self, config):
        grid = build(config, 3, 3, [[G], [G], [G]])
        match = resolver_for(config, grid).find_matches(2, 0)

        assert match.cells == {(0, 0), (1, 0), (2, 0)}
        assert match.horizontal_count == 3

    def test_two_is_not_a_match(self, config):
        grid = build(config, 3, 3, [[R, R], [], []])
        match = resolver_for(config, grid).find_matches(0, 1)

        assert not match.matched
        assert match.cells == frozenset()

    def test_row_counts_are_not_contiguous(self, config):
        """Same-colored cells anywhere in the row count toward the match."""
        grid = build(config, 4, 3, [[R], [G], [R], [R]])
        match = resolver_for(config, grid).find_matches(3, 0)

        assert match.cells == {(0, 0), (2, 0), (3, 0)}
        assert (1, 0) not in match.cells

    def test_column_counts_are_not_contiguous(self, config):
        grid = build(config, 3, 4, [[R, G, R, R], [], []])
        match = resolver_for(config, grid).find_matches(0, 3)

        assert match.cells == {(0, 0), (0, 2), (0, 3)}

    def test_cross_union_counts_anchor_once(self, config):
        """Row and column qualifying together share the anchor cell."""
        grid = build(config, 3, 3, [[R], [R], [R, R, R]])
        match = resolver_for(config, grid).find_matches(2, 0)

        assert set(match.qualified) == {Direction.HORIZONTAL, Direction.VERTICAL}
        assert len(match.cells) == 5


class TestDiagonals:
    """Test rising and falling diagonal matches."""

    def test_rising_diagonal(self, config):
        grid = build(config, 3, 3, [[B], [R, B], [R, R, B]])
        match = resolver_for(config, grid).find_matches(2, 2)

        assert match.cells == {(0, 0), (1, 1), (2, 2)}
        assert match.qualified == (Direction.DIAGONAL_RISING,)

    def test_falling_diagonal(self, config):
        grid = build(config, 3, 3, [[R, R, B], [R, B], [B]])
        match = resolver_for(config, grid).find_matches(2, 0)

        assert match.cells == {(0, 2), (1, 1), (2, 0)}
        assert match.qualified == (Direction.DIAGONAL_FALLING,)

    def test_diagonal_window_is_bounded(self, config):
        """Cells more than two steps from the anchor are not considered."""
        stacks = [
            [R, G, B, G, B],
            [G, R, G, B, G],
            [B, G, B, G, B],
            [G, B, G, B, G],
            [B, G, B, G, R],
        ]
        grid = build(config, 5, 5, stacks)
        resolver = resolver_for(config, grid)

        window = resolver.line_cells(4, 4, Direction.DIAGONAL_RISING, R)
        assert window == ((4, 4),)

        match = resolver.find_matches(4, 4)
        assert not match.matched

    def test_diagonal_clipped_at_edges(self, config):
        grid = build(config, 3, 3, [[R], [], []])
        cells = resolver_for(config, grid).line_cells(0, 0, Direction.DIAGONAL_FALLING, R)
        assert cells == ((0, 0),)


class TestCompleteness:
    """Test matches on a single-colored grid."""

    @pytest.mark.parametrize("col,row", [(0, 0), (1, 1), (2, 0), (0, 2), (2, 2)])
    def test_full_row_and_column_returned(self, config, col, row):
        grid = build(config, 3, 3, [[R, R, R]] * 3)
        match = resolver_for(config, grid).find_matches(col, row)

        for c in range(3):
            assert (c, row) in match.cells
        for r in range(3):
            assert (col, r) in match.cells

    def test_center_anchor_returns_every_cell(self, config):
        grid = build(config, 3, 3, [[R, R, R]] * 3)
        match = resolver_for(config, grid).find_matches(1, 1)

        assert len(match.cells) == 9
        assert len(match.qualified) == 4


class TestPreconditions:
    """Test anchor validation."""

    def test_empty_anchor_rejected(self, config):
        grid = build(config, 3, 3, [[R], [], []])
        with pytest.raises(ValueError):
            resolver_for(config, grid).find_matches(1, 0)

    def test_out_of_range_anchor(self, config):
        grid = build(config, 3, 3, [[R], [], []])
        with pytest.raises(IndexError):
            resolver_for(config, grid).find_matches(5, 0)
