"""
Tests for Gymnasium environment API.
"""

import pytest
import numpy as np

from bunny_bag.core.config_loader import load_config
from bunny_bag.core.entities import Obstacle
from bunny_bag.core.env_gym import (
    ACTION_JUMP,
    ACTION_LEFT,
    ACTION_NOOP,
    ACTION_RIGHT,
    BunnyBagEnv,
)
from bunny_bag.core.rules import PHASE_CODES, GamePhase
from bunny_bag.core.vector_env import BunnyBagVectorEnv


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def env():
    env = BunnyBagEnv()
    yield env
    env.close()


@pytest.fixture
def vec_env():
    env = BunnyBagVectorEnv(num_envs=4, seed=42, max_frames=50)
    yield env
    env.close()


def place_obstacle_on_player(env):
    game = env.game
    cfg = env.config
    game.obstacles.append(Obstacle(
        x=game.player.x + 10,
        y=cfg.board.ground_y - cfg.obstacle.height,
        width=cfg.obstacle.width,
        height=cfg.obstacle.height,
        speed=2.5
    ))


class TestBunnyBagEnv:
    """Test single environment API."""

    def test_reset_returns_obs_and_info(self, env):
        """Reset should return (observation, info) tuple."""
        result = env.reset(seed=42)

        assert isinstance(result, tuple)
        assert len(result) == 2

        obs, info = result
        assert isinstance(obs, dict)
        assert isinstance(info, dict)
        assert info["delta_score"] == 0

    def test_reset_starts_playing(self, env):
        obs, info = env.reset(seed=42)

        assert int(obs["phase"]) == PHASE_CODES[GamePhase.PLAYING]
        assert info["phase"] == "playing"
        assert int(obs["lives"]) == env.config.player.starting_lives
        assert int(obs["score"]) == 0

    def test_observation_structure(self, env):
        """Observation should have expected keys and shapes."""
        obs, _ = env.reset(seed=42)

        for key in ("player_x", "player_y", "bag_x", "bag_y", "score", "lives",
                    "combo", "carrots_count", "nearest_carrot_dx"):
            assert key in obs

        max_c = env.config.observation.max_carrots
        max_o = env.config.observation.max_obstacles
        assert obs["carrot_x"].shape == (max_c,)
        assert obs["carrot_mask"].shape == (max_c,)
        assert obs["obstacle_x"].shape == (max_o,)
        assert obs["obstacle_kind"].dtype == np.int8

    def test_observation_keys_match_space(self, env):
        obs, _ = env.reset(seed=42)
        assert set(obs.keys()) == set(env.observation_space.spaces.keys())

    def test_step_returns_five_values(self, env):
        """Step should return (obs, reward, terminated, truncated, info)."""
        env.reset(seed=42)

        result = env.step(ACTION_NOOP)

        assert isinstance(result, tuple)
        assert len(result) == 5

        obs, reward, terminated, truncated, info = result
        assert isinstance(obs, dict)
        assert isinstance(terminated, bool)
        assert isinstance(truncated, bool)
        assert "delta_score" in info

    def test_reward_is_always_zero(self, env):
        """Reward must always be 0.0."""
        env.reset(seed=42)
        for _ in range(200):
            _, reward, terminated, truncated, _ = env.step(env.action_space.sample())
            assert reward == 0.0
            if terminated or truncated:
                break

    def test_actions_move_player(self, env):
        obs, _ = env.reset(seed=42)
        start = float(obs["player_x"])

        obs, *_ = env.step(ACTION_LEFT)
        assert float(obs["player_x"]) < start

        obs, *_ = env.step(ACTION_RIGHT)
        obs, *_ = env.step(ACTION_RIGHT)
        assert float(obs["player_x"]) > start

    def test_jump_action(self, env):
        env.reset(seed=42)
        obs, *_ = env.step(ACTION_JUMP)

        assert int(obs["player_on_ground"]) == 0
        assert float(obs["player_vy"]) < 0

    @pytest.mark.parametrize("action", [-1, 4, 10])
    def test_invalid_action_raises(self, env, action):
        env.reset(seed=42)
        with pytest.raises(ValueError):
            env.step(action)

    def test_numpy_action_accepted(self, env):
        env.reset(seed=42)
        env.step(np.array(ACTION_RIGHT))
        env.step(np.int64(ACTION_LEFT))

    def test_deterministic_with_seed(self):
        """Same seed and actions should give identical results."""
        actions = np.random.default_rng(0).integers(0, 4, size=400)

        def run():
            env = BunnyBagEnv()
            env.reset(seed=42)
            history = []
            for action in actions:
                obs, _, terminated, truncated, info = env.step(int(action))
                history.append((info["score"], float(obs["player_x"]), int(obs["carrots_count"])))
                if terminated or truncated:
                    break
            env.close()
            return history

        assert run() == run()

    def test_truncates_at_max_frames(self):
        env = BunnyBagEnv(max_frames=50)
        env.reset(seed=1)

        for step in range(50):
            _, _, terminated, truncated, info = env.step(ACTION_NOOP)
            if step < 49:
                assert truncated is False

        assert terminated is False
        assert truncated is True
        assert info["terminated_reason"] == "max_frames"

    def test_terminates_when_out_of_lives(self, env):
        """Hits auto-continue until the last life is gone."""
        env.reset(seed=42)

        hits = 0
        terminated = False
        info = {}
        for _ in range(env.config.player.starting_lives):
            place_obstacle_on_player(env)
            _, _, terminated, _, info = env.step(ACTION_NOOP)
            hits += int(info["hit"])

        assert hits == env.config.player.starting_lives
        assert terminated is True
        assert info["terminated_reason"] == "out_of_lives"
        assert info["lives"] == 0

    def test_reset_after_termination(self, env):
        env.reset(seed=42)
        for _ in range(env.config.player.starting_lives):
            place_obstacle_on_player(env)
            env.step(ACTION_NOOP)

        obs, info = env.reset(seed=43)
        assert info["lives"] == env.config.player.starting_lives
        assert info["phase"] == "playing"

    def test_render_rgb_array(self):
        env = BunnyBagEnv(render_mode="rgb_array")
        env.reset(seed=42)
        frame = env.render()

        assert frame.shape == (env.config.board.height, env.config.board.width, 3)
        assert frame.dtype == np.uint8
        env.close()

    def test_render_headless(self, env):
        env.reset(seed=42)
        assert env.render() is None


class TestBunnyBagVectorEnv:
    """Test vectorized environment API."""

    def test_reset_returns_batched_obs(self, vec_env):
        obs, infos = vec_env.reset()

        assert obs["player_x"].shape == (4,)
        max_c = vec_env.config.observation.max_carrots
        assert obs["carrot_x"].shape == (4, max_c)
        assert infos["score"].shape == (4,)

    def test_step_accepts_batched_actions(self, vec_env):
        vec_env.reset()
        obs, rewards, terminateds, truncateds, infos = vec_env.step(vec_env.sample_actions())

        assert rewards.shape == (4,)
        assert np.all(rewards == 0.0)
        assert terminateds.dtype == bool
        assert truncateds.dtype == bool

    def test_wrong_action_count(self, vec_env):
        vec_env.reset()
        with pytest.raises(ValueError):
            vec_env.step([0, 0])

    def test_auto_reset_on_truncation(self, vec_env):
        """Every env truncates on frame 50 and restarts with final_info kept."""
        vec_env.reset()
        for _ in range(49):
            _, _, _, truncateds, infos = vec_env.step([ACTION_NOOP] * 4)
            assert not truncateds.any()

        _, _, _, truncateds, infos = vec_env.step([ACTION_NOOP] * 4)

        assert truncateds.all()
        assert all(info["terminated_reason"] == "max_frames" for info in infos["final_info"])
        assert np.all(infos["frames"] == 0)
        assert vec_env.get_game(0).frames == 0

    def test_sample_actions(self, vec_env):
        actions = vec_env.sample_actions()
        assert actions.shape == (4,)
        assert np.all((actions >= 0) & (actions < 4))
