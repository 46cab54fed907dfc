"""
Tests for carrot and obstacle spawning.
"""

from dataclasses import replace

import pytest

from bunny_bag.core.config_loader import load_config
from bunny_bag.core.difficulty import compute_difficulty
from bunny_bag.core.entities import ObstacleKind
from bunny_bag.core.spawner import Spawner


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def always_multi_config(config):
    """Config where every carrot spawn schedules at least one follow-up."""
    difficulty = replace(config.difficulty, multi_spawn_slope=1.0, multi_spawn_max=1.0)
    return replace(config, difficulty=difficulty)


@pytest.fixture
def always_obstacle_config(config):
    """Config where every obstacle roll succeeds."""
    difficulty = replace(
        config.difficulty,
        obstacle_spawn_base=1.0,
        obstacle_spawn_cap=1.0,
        obstacle_spawn_rapid_cap=1.0
    )
    return replace(config, difficulty=difficulty)


class TestCarrotTimer:
    """Test the carrot spawn gate."""

    def test_gate_is_strict(self, config):
        """No carrot at exactly the interval, one just after."""
        spawner = Spawner(config, seed=1)
        carrots, obstacles = [], []

        result = spawner.tick(2000.0, 0, carrots, obstacles)
        assert result.carrot_count == 0

        result = spawner.tick(2000.5, 0, carrots, obstacles)
        assert result.carrot_count == 1
        assert len(carrots) == 1
        assert spawner.last_carrot_spawn_time == 2000.5

    def test_first_carrot_waits_full_interval_after_reset(self, config):
        """A run opens with a full spawn interval before the first carrot."""
        spawner = Spawner(config, seed=1)
        carrots, obstacles = [], []
        spawner.tick(2500.0, 0, carrots, obstacles)

        spawner.reset(seed=2)
        carrots.clear()
        assert spawner.tick(1999.0, 0, carrots, obstacles).carrot_count == 0
        assert spawner.tick(2000.5, 0, carrots, obstacles).carrot_count == 1

    def test_carrot_starts_above_screen(self, config):
        spawner = Spawner(config, seed=1)
        carrots = []
        spawner.tick(2001.0, 0, carrots, [])

        carrot = carrots[0]
        assert carrot.y == -config.carrot.size
        assert 0 <= carrot.x <= config.board.width - config.carrot.size

    def test_speed_jitter_window(self, config):
        """Speed is fall speed +-0.15."""
        spawner = Spawner(config, seed=3)
        for _ in range(200):
            carrot = spawner.create_carrot(0)
            assert 1.85 <= carrot.speed <= 2.15

    def test_deterministic_with_seed(self, config):
        """Same seed and same ticks give the same carrots."""
        def run(seed):
            spawner = Spawner(config, seed=seed)
            carrots = []
            for step in range(1, 600):
                spawner.tick(step * 50.0, 350, carrots, [])
            return [(c.x, c.speed) for c in carrots]

        assert run(42) == run(42)
        assert run(42) != run(43)


class TestPlacement:
    """Test horizontal clustering by score."""

    def test_uniform_below_cluster_start(self, config):
        spawner = Spawner(config, seed=5)
        xs = [spawner.carrot_x(100, previous_x=400.0) for _ in range(500)]

        assert min(xs) < 100
        assert max(xs) > 680

    def test_clustered_near_previous(self, config):
        """Between 200 and 500 carrots land within 75px of the previous one."""
        spawner = Spawner(config, seed=5)
        for _ in range(500):
            assert 325.0 <= spawner.carrot_x(250, previous_x=400.0) <= 475.0

    def test_wide_cluster(self, config):
        """From 500 the window widens to 100px."""
        spawner = Spawner(config, seed=5)
        xs = [spawner.carrot_x(600, previous_x=400.0) for _ in range(500)]

        assert all(300.0 <= x <= 500.0 for x in xs)
        assert max(abs(x - 400.0) for x in xs) > 75.0

    def test_cluster_clamped_to_board(self, config):
        spawner = Spawner(config, seed=5)
        max_x = config.board.width - config.carrot.size
        for _ in range(200):
            assert 0.0 <= spawner.carrot_x(600, previous_x=5.0) <= max_x
            assert 0.0 <= spawner.carrot_x(600, previous_x=max_x) <= max_x


class TestMultiSpawn:
    """Test deferred follow-up carrots."""

    def test_follow_up_released_after_delay(self, always_multi_config):
        spawner = Spawner(always_multi_config, seed=9)
        carrots = []

        assert spawner.tick(5000.0, 600, carrots, []).carrot_count == 1
        assert len(spawner.pending) >= 1
        assert spawner.pending[0].due_time == 5200.0

        assert spawner.tick(5100.0, 600, carrots, []).carrot_count == 0
        assert spawner.tick(5200.0, 600, carrots, []).carrot_count == 1

    def test_pending_does_not_survive_reset(self, always_multi_config):
        """A follow-up queued before reset never appears after it."""
        spawner = Spawner(always_multi_config, seed=9)
        carrots = []
        spawner.tick(5000.0, 600, carrots, [])
        assert spawner.pending

        generation = spawner.generation
        spawner.reset()

        assert spawner.pending == []
        assert spawner.generation == generation + 1
        assert spawner.last_carrot_spawn_time == 0.0

        # Well past the old due times: only the regular spawn happens
        carrots = []
        result = spawner.tick(6000.0, 0, carrots, [])
        assert result.carrot_count == 1


class TestObstacles:
    """Test obstacle gating and creation."""

    def test_disabled_below_threshold(self, always_obstacle_config):
        spawner = Spawner(always_obstacle_config, seed=2)
        obstacles = []
        spawner.tick(10000.0, 99, [], obstacles)
        assert obstacles == []

    def test_interval_gate(self, always_obstacle_config):
        spawner = Spawner(always_obstacle_config, seed=2)
        obstacles = []

        spawner.tick(4000.0, 100, [], obstacles)
        assert obstacles == []

        spawner.tick(4000.5, 100, [], obstacles)
        assert len(obstacles) == 1
        assert spawner.last_obstacle_spawn_time == 4000.5

    def test_failed_roll_does_not_reset_timer(self, config):
        """At probability 0.05 most ticks fail and the timer stays put."""
        spawner = Spawner(config, seed=4)
        obstacles = []
        for step in range(1, 200):
            spawner.tick(4000.0 + step, 100, [], obstacles)
            if obstacles:
                break
        else:
            pytest.fail("no obstacle after 199 rolls at p=0.05")

        assert spawner.last_obstacle_spawn_time > 4000.0

    def test_obstacle_geometry(self, config):
        spawner = Spawner(config, seed=2)
        settings = compute_difficulty(200, config)
        obstacle = spawner.create_obstacle(settings)

        assert obstacle.x == config.board.width
        assert obstacle.y == config.board.ground_y - config.obstacle.height
        assert obstacle.speed == pytest.approx(settings.obstacle_speed)

    def test_kind_split(self, config):
        """Roughly 70% logs, 30% rocks."""
        spawner = Spawner(config, seed=11)
        settings = compute_difficulty(150, config)
        kinds = [spawner.create_obstacle(settings).kind for _ in range(2000)]

        logs = kinds.count(ObstacleKind.LOG)
        assert 1300 < logs < 1500
        assert kinds.count(ObstacleKind.ROCK) == 2000 - logs
