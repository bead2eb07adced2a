"""
Tests for the Gymnasium environment API.
"""

import numpy as np
import pytest

from tubes.tube_core.config_loader import load_config
from tubes.tube_core.env_gym import TubeEnv


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def env(config):
    env = TubeEnv(config=config, render_mode="ansi")
    yield env
    env.close()


class TestSpaces:
    """Test action and observation spaces."""

    def test_action_space(self, env):
        assert env.action_space.n == 3

    def test_reset_observation(self, env):
        obs, info = env.reset(seed=42)

        assert env.observation_space.contains(obs)
        assert obs["grid"].shape == (3, 3)
        assert (obs["grid"] == -1).all()
        assert obs["upcoming"].shape == (3,)
        assert info["delta_score"] == 0
        assert info["hearts"] == 3

    def test_step_observation(self, env):
        env.reset(seed=42)
        obs, reward, terminated, truncated, info = env.step(1)

        assert env.observation_space.contains(obs)
        assert obs["column_heights"].tolist() == [0, 1, 0]
        assert isinstance(reward, float)
        assert not terminated
        assert not truncated
        assert info["drops_used"] == 1


class TestStep:
    """Test step semantics."""

    def test_invalid_action(self, env):
        env.reset(seed=0)
        with pytest.raises(ValueError):
            env.step(3)

    def test_numpy_action(self, env):
        env.reset(seed=0)
        obs, *_ = env.step(np.array(2))
        assert obs["column_heights"][2] == 1

    def test_reward_matches_score(self, env):
        env.reset(seed=3)
        total = 0.0
        for step in range(200):
            _, reward, terminated, truncated, info = env.step(step % 3)
            total += reward
            assert reward == info["delta_score"]
            if terminated or truncated:
                break
        assert total == info["score"]

    def test_episode_ends(self, env):
        env.reset(seed=7)
        rng = np.random.default_rng(0)
        for _ in range(env.config.caps.max_drops + 1):
            _, _, terminated, truncated, _ = env.step(int(rng.integers(3)))
            if terminated or truncated:
                break
        assert terminated or truncated

    def test_seeded_reset_is_reproducible(self, env):
        first, _ = env.reset(seed=11)
        env.step(0)
        second, _ = env.reset(seed=11)

        np.testing.assert_array_equal(first["upcoming"], second["upcoming"])


class TestRender:
    """Test ansi rendering."""

    def test_render_text(self, env):
        env.reset(seed=0)
        env.step(0)
        text = env.render()

        lines = text.splitlines()
        assert lines[0] == "o o o"
        assert lines[-2][0] in "RGB"
        assert lines[-1].startswith("score=")

    def test_headless_render(self, config):
        env = TubeEnv(config=config)
        env.reset()
        assert env.render() is None
