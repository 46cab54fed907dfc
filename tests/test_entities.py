"""
Tests for entity motion and collision rules.
"""

import pytest

from bunny_bag.core.collision import CollisionRules, rects_overlap
from bunny_bag.core.config_loader import load_config
from bunny_bag.core.entities import Carrot, Obstacle, ObstacleKind, Particle, Player, Rect


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def player(config):
    return Player.spawn(config)


class TestPlayer:
    """Test bunny movement and jumping."""

    def test_spawn_centered_on_ground(self, config, player):
        """Player starts horizontally centred, standing on the ground line."""
        assert player.x == config.board.width / 2 - config.player.width / 2
        assert player.y == config.board.ground_y - config.player.height
        assert player.on_ground is True
        assert player.can_jump is True

    def test_horizontal_motion_is_per_frame(self, config, player):
        """Movement does not depend on frame duration."""
        start = player.x
        player.move(1)
        player.update(16.0)
        player.update(100.0)
        assert player.x == pytest.approx(start + 2 * config.player.speed)

    def test_clamped_to_board(self, config, player):
        """Player cannot leave the board."""
        player.move(-1)
        for _ in range(500):
            player.update(16.0)
        assert player.x == 0.0

        player.move(1)
        for _ in range(500):
            player.update(16.0)
        assert player.x == config.board.width - player.width

    def test_jump_from_ground(self, config, player):
        """Grounded jump sets velocity to exactly -jump_power."""
        assert player.jump() is True
        assert player.velocity_y == -config.player.jump_power
        assert player.on_ground is False
        assert player.can_jump is False

    def test_jump_while_airborne_ignored(self, player):
        """A second jump mid-air has no effect."""
        player.jump()
        player.update(16.0)
        velocity = player.velocity_y

        assert player.jump() is False
        assert player.velocity_y == velocity

    def test_jump_without_can_jump_ignored(self, player):
        """Jump is refused while can_jump is cleared even on the ground."""
        player.can_jump = False
        assert player.jump() is False
        assert player.velocity_y == 0.0

    def test_lands_and_rearms(self, config, player):
        """Gravity brings the player back to the ground and re-enables jumping."""
        player.jump()
        for _ in range(200):
            player.update(16.0)
            if player.on_ground:
                break

        assert player.on_ground is True
        assert player.can_jump is True
        assert player.velocity_y == 0.0
        assert player.y == config.board.ground_y - player.height


class TestCarrotAndObstacle:
    """Test pickup and hazard motion."""

    def test_carrot_falls_with_elapsed_time(self):
        """Carrot moves speed * dt * 0.1 pixels."""
        carrot = Carrot(x=100, y=0, size=16, speed=2.0)
        carrot.update(50.0)
        assert carrot.y == pytest.approx(10.0)

    def test_carrot_crosses_ground_strictly(self):
        """Crossing needs the top edge strictly past the ground line."""
        carrot = Carrot(x=100, y=580, size=16, speed=2.0)
        assert carrot.crossed_ground(580) is False
        carrot.y = 580.5
        assert carrot.crossed_ground(580) is True

    def test_obstacle_moves_left_per_frame(self):
        """Obstacle speed is pixels per frame."""
        obstacle = Obstacle(x=800, y=548, width=24, height=32, speed=3.0)
        obstacle.update(16.0)
        obstacle.update(33.0)
        assert obstacle.x == pytest.approx(794.0)

    def test_obstacle_off_screen(self):
        """Off-screen once fully past the left edge."""
        obstacle = Obstacle(x=-23, y=548, width=24, height=32, speed=3.0,
                            kind=ObstacleKind.ROCK)
        assert obstacle.is_off_screen() is False
        obstacle.update(16.0)
        assert obstacle.is_off_screen() is True


class TestParticle:
    """Test cosmetic particles."""

    def test_fades_and_dies(self):
        particle = Particle(x=0, y=0, vx=1.0, vy=-1.0, life=100, max_life=100, color="carrot")
        particle.update(50.0)

        assert particle.alpha == pytest.approx(0.5)
        assert particle.x == pytest.approx(5.0)
        assert particle.y == pytest.approx(-5.0)
        assert particle.is_dead() is False

        particle.update(50.0)
        assert particle.is_dead() is True
        assert particle.alpha == 0.0


class TestCollision:
    """Test AABB overlap and catch/hit rules."""

    def test_touching_edges_do_not_overlap(self):
        a = Rect(0, 0, 10, 10)
        assert rects_overlap(a, Rect(10, 0, 10, 10)) is False
        assert rects_overlap(a, Rect(0, 10, 10, 10)) is False
        assert rects_overlap(a, Rect(9.5, 9.5, 10, 10)) is True

    def test_catch_zone_above_player(self, config, player):
        """Bag is centred on the player and rests on top of it."""
        rules = CollisionRules(config)
        zone = rules.catch_zone(player)

        assert zone.width == config.bag.width
        assert zone.height == config.bag.height
        assert zone.bottom == player.y
        assert zone.center[0] == pytest.approx(player.bounds().center[0])

    def test_carrot_caught_by_bag_only(self, config, player):
        """A carrot touching only the body is not caught."""
        rules = CollisionRules(config)
        zone = rules.catch_zone(player)

        in_bag = Carrot(x=zone.x + 10, y=zone.y - 4, size=16, speed=2.0)
        assert rules.is_caught(player, in_bag) is True

        on_body = Carrot(x=player.x + 8, y=player.y + 8, size=16, speed=2.0)
        assert rules.is_caught(player, on_body) is False

    def test_obstacle_hits_full_body(self, config, player):
        rules = CollisionRules(config)

        touching = Obstacle(x=player.x + player.width, y=player.y, width=24, height=32, speed=3)
        assert rules.is_hit(player, touching) is False

        overlapping = Obstacle(x=player.x + player.width - 1, y=player.y, width=24, height=32, speed=3)
        assert rules.is_hit(player, overlapping) is True

    def test_jumping_clears_obstacle(self, config, player):
        """Once airborne above the obstacle top there is no hit."""
        rules = CollisionRules(config)
        obstacle = Obstacle(x=player.x, y=config.board.ground_y - 32, width=24, height=32, speed=3)

        player.jump()
        for _ in range(10):
            player.update(16.0)
        assert player.bounds().bottom < obstacle.y
        assert rules.is_hit(player, obstacle) is False
