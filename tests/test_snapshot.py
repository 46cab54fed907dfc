"""
Tests for fixed-size state snapshots.
"""

import numpy as np
import pytest

from bunny_bag.core.config_loader import load_config
from bunny_bag.core.entities import Carrot, Obstacle, ObstacleKind
from bunny_bag.core.game import CoreGame
from bunny_bag.core.rules import GamePhase


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def game(config):
    game = CoreGame(config=config, seed=42)
    game.press_primary()
    return game


def add_carrot(game, x, y, speed=2.0):
    game.carrots.append(Carrot(x=x, y=y, size=game.config.carrot.size, speed=speed))


class TestSnapshotArrays:
    """Test padded entity arrays."""

    def test_empty_board(self, game, config):
        snap = game.snapshot()

        assert snap.carrots_count == 0
        assert not snap.carrot_mask.any()
        assert snap.carrot_x.shape == (config.observation.max_carrots,)
        assert np.all(snap.obstacle_kind == -1)
        assert snap.nearest_carrot_time == -1.0
        assert snap.nearest_obstacle_dx == -1.0

    def test_carrots_sorted_lowest_first(self, game):
        add_carrot(game, 100, 50)
        add_carrot(game, 200, 300)
        add_carrot(game, 300, 120)

        snap = game.snapshot()

        assert snap.carrots_count == 3
        assert list(snap.carrot_y[:3]) == [300.0, 120.0, 50.0]
        assert list(snap.carrot_x[:3]) == [200.0, 300.0, 100.0]
        assert list(snap.carrot_mask[:4]) == [True, True, True, False]

    def test_overflow_drops_highest(self, game, config):
        """Past the cap only the lowest carrots are kept."""
        max_c = config.observation.max_carrots
        for i in range(max_c + 5):
            add_carrot(game, 10.0 * i, float(i))

        snap = game.snapshot()

        assert snap.carrots_count == max_c
        assert snap.carrot_mask.all()
        assert snap.carrot_y.min() == pytest.approx(5.0)

    def test_obstacles_keep_spawn_order(self, game, config):
        y = config.board.ground_y - config.obstacle.height
        game.obstacles.append(Obstacle(x=700, y=y, width=24, height=32, speed=3.0,
                                       kind=ObstacleKind.ROCK))
        game.obstacles.append(Obstacle(x=600, y=y, width=24, height=32, speed=3.0))

        snap = game.snapshot()

        assert snap.obstacles_count == 2
        assert list(snap.obstacle_x[:2]) == [700.0, 600.0]
        assert list(snap.obstacle_kind[:3]) == [1, 0, -1]

    def test_arrays_are_copies(self, game):
        add_carrot(game, 100, 50)
        first = game.snapshot()
        game.carrots.clear()
        game.snapshot()

        assert first.carrot_mask[0]


class TestDerivedFeatures:
    """Test agent helper features."""

    def test_nearest_carrot(self, game, config):
        bag_center = game.player.x + game.player.width / 2
        add_carrot(game, bag_center + 42 - config.carrot.size / 2, 100)

        snap = game.snapshot()

        assert snap.nearest_carrot_dx == pytest.approx(42.0)
        distance = snap.bag_y - (100 + config.carrot.size)
        assert snap.nearest_carrot_time == pytest.approx(distance / (2.0 * 0.1))

    def test_nearest_obstacle_gap(self, game, config):
        right_edge = game.player.x + game.player.width
        game.obstacles.append(Obstacle(x=right_edge + 120, y=548, width=24, height=32, speed=3.0))
        game.obstacles.append(Obstacle(x=right_edge + 60, y=548, width=24, height=32, speed=3.0))

        snap = game.snapshot()
        assert snap.nearest_obstacle_dx == pytest.approx(60.0)

    def test_passed_obstacle_ignored(self, game):
        game.obstacles.append(Obstacle(x=game.player.x - 30, y=548, width=24, height=32, speed=3.0))
        assert game.snapshot().nearest_obstacle_dx == -1.0

    def test_phase_code(self, game):
        snap = game.snapshot()
        assert snap.game_phase is GamePhase.PLAYING

        game.press_primary()
        assert game.snapshot().game_phase is GamePhase.PAUSED

    def test_obs_dict_dtypes(self, game):
        obs = game.snapshot().to_obs_dict()

        assert obs["score"].dtype == np.int64
        assert obs["player_x"].dtype == np.float32
        assert obs["player_on_ground"].dtype == np.int8
        assert obs["carrot_mask"].dtype == bool
