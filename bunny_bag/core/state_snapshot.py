"""
State Snapshot
==============

Packs game state into fixed-size numpy arrays for Gymnasium observations.
Includes a few derived features for agent decision-making.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

import numpy as np

from bunny_bag.core.config_loader import GameConfig, get_config
from bunny_bag.core.entities import ObstacleKind
from bunny_bag.core.rules import PHASE_CODES, GamePhase

if TYPE_CHECKING:
    from bunny_bag.core.game import CoreGame

OBSTACLE_KIND_CODES: Dict[ObstacleKind, int] = {
    ObstacleKind.LOG: 0,
    ObstacleKind.ROCK: 1,
}


@dataclass
class GameSnapshot:
    """
    Complete game state snapshot.

    Carrot arrays are ordered lowest-first (closest to the ground). Obstacle
    arrays keep spawn order. Both are padded and masked.
    """
    # Core state
    phase: int
    score: int
    lives: int
    combo: int
    level: int
    best_score: int
    game_time: float

    # Board info (for normalization)
    board_width: float
    board_height: float
    ground_y: float

    # Player
    player_x: float
    player_y: float
    player_vy: float
    player_on_ground: bool
    bag_x: float
    bag_y: float
    bag_width: float

    # Derived features
    carrots_count: int
    obstacles_count: int
    nearest_carrot_dx: float          # Carrot centre minus bag centre, 0 if none
    nearest_carrot_time: float        # ms until the lowest carrot reaches the bag, -1 if none
    nearest_obstacle_dx: float        # Gap from player to the closest incoming obstacle, -1 if none
    fall_speed: float
    spawn_interval: float

    # Object arrays (fixed size, padded)
    carrot_x: np.ndarray              # (MAX_CARROTS,) float32
    carrot_y: np.ndarray              # (MAX_CARROTS,) float32
    carrot_speed: np.ndarray          # (MAX_CARROTS,) float32
    carrot_mask: np.ndarray           # (MAX_CARROTS,) bool
    obstacle_x: np.ndarray            # (MAX_OBSTACLES,) float32
    obstacle_y: np.ndarray            # (MAX_OBSTACLES,) float32
    obstacle_speed: np.ndarray        # (MAX_OBSTACLES,) float32
    obstacle_kind: np.ndarray         # (MAX_OBSTACLES,) int8
    obstacle_mask: np.ndarray         # (MAX_OBSTACLES,) bool

    @property
    def game_phase(self) -> GamePhase:
        return list(GamePhase)[self.phase]

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        return {
            # Core state
            "phase": np.array(self.phase, dtype=np.int32),
            "score": np.array(self.score, dtype=np.int64),
            "lives": np.array(self.lives, dtype=np.int32),
            "combo": np.array(self.combo, dtype=np.int32),
            "level": np.array(self.level, dtype=np.int32),
            "game_time": np.array(self.game_time, dtype=np.float32),

            # Board info
            "board_width": np.array(self.board_width, dtype=np.float32),
            "board_height": np.array(self.board_height, dtype=np.float32),
            "ground_y": np.array(self.ground_y, dtype=np.float32),

            # Player
            "player_x": np.array(self.player_x, dtype=np.float32),
            "player_y": np.array(self.player_y, dtype=np.float32),
            "player_vy": np.array(self.player_vy, dtype=np.float32),
            "player_on_ground": np.array(self.player_on_ground, dtype=np.int8),
            "bag_x": np.array(self.bag_x, dtype=np.float32),
            "bag_y": np.array(self.bag_y, dtype=np.float32),
            "bag_width": np.array(self.bag_width, dtype=np.float32),

            # Derived
            "carrots_count": np.array(self.carrots_count, dtype=np.int32),
            "obstacles_count": np.array(self.obstacles_count, dtype=np.int32),
            "nearest_carrot_dx": np.array(self.nearest_carrot_dx, dtype=np.float32),
            "nearest_carrot_time": np.array(self.nearest_carrot_time, dtype=np.float32),
            "nearest_obstacle_dx": np.array(self.nearest_obstacle_dx, dtype=np.float32),
            "fall_speed": np.array(self.fall_speed, dtype=np.float32),
            "spawn_interval": np.array(self.spawn_interval, dtype=np.float32),

            # Object arrays
            "carrot_x": self.carrot_x,
            "carrot_y": self.carrot_y,
            "carrot_speed": self.carrot_speed,
            "carrot_mask": self.carrot_mask,
            "obstacle_x": self.obstacle_x,
            "obstacle_y": self.obstacle_y,
            "obstacle_speed": self.obstacle_speed,
            "obstacle_kind": self.obstacle_kind,
            "obstacle_mask": self.obstacle_mask,
        }


class SnapshotBuilder:
    """Builds game state snapshots with pre-allocated arrays."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_carrots = config.observation.max_carrots
        self._max_obstacles = config.observation.max_obstacles

        self._carrot_x = np.zeros(self._max_carrots, dtype=np.float32)
        self._carrot_y = np.zeros(self._max_carrots, dtype=np.float32)
        self._carrot_speed = np.zeros(self._max_carrots, dtype=np.float32)
        self._carrot_mask = np.zeros(self._max_carrots, dtype=bool)
        self._obstacle_x = np.zeros(self._max_obstacles, dtype=np.float32)
        self._obstacle_y = np.zeros(self._max_obstacles, dtype=np.float32)
        self._obstacle_speed = np.zeros(self._max_obstacles, dtype=np.float32)
        self._obstacle_kind = np.zeros(self._max_obstacles, dtype=np.int8)
        self._obstacle_mask = np.zeros(self._max_obstacles, dtype=bool)

    @property
    def max_carrots(self) -> int:
        return self._max_carrots

    @property
    def max_obstacles(self) -> int:
        return self._max_obstacles

    def build(self, game: "CoreGame") -> GameSnapshot:
        """Build a snapshot from current game state."""
        self._carrot_x.fill(0)
        self._carrot_y.fill(0)
        self._carrot_speed.fill(0)
        self._carrot_mask.fill(False)
        self._obstacle_x.fill(0)
        self._obstacle_y.fill(0)
        self._obstacle_speed.fill(0)
        self._obstacle_kind.fill(-1)
        self._obstacle_mask.fill(False)

        cfg = self._config
        player = game.player
        bag_x = player.x + (player.width - cfg.bag.width) / 2
        bag_y = player.y - cfg.bag.height
        bag_center = bag_x + cfg.bag.width / 2

        # Lowest carrots first; overflow beyond the cap is the highest ones
        carrots = sorted(game.carrots, key=lambda c: c.y, reverse=True)
        carrot_count = min(len(carrots), self._max_carrots)
        for i in range(carrot_count):
            carrot = carrots[i]
            self._carrot_x[i] = carrot.x
            self._carrot_y[i] = carrot.y
            self._carrot_speed[i] = carrot.speed
            self._carrot_mask[i] = True

        obstacles = game.obstacles
        obstacle_count = min(len(obstacles), self._max_obstacles)
        for i in range(obstacle_count):
            obstacle = obstacles[i]
            self._obstacle_x[i] = obstacle.x
            self._obstacle_y[i] = obstacle.y
            self._obstacle_speed[i] = obstacle.speed
            self._obstacle_kind[i] = OBSTACLE_KIND_CODES[obstacle.kind]
            self._obstacle_mask[i] = True

        nearest_carrot_dx = 0.0
        nearest_carrot_time = -1.0
        if carrots:
            lowest = carrots[0]
            nearest_carrot_dx = (lowest.x + lowest.size / 2) - bag_center
            rate = lowest.speed * lowest.motion_scale
            distance = max(0.0, bag_y - (lowest.y + lowest.size))
            nearest_carrot_time = distance / rate if rate > 0 else -1.0

        nearest_obstacle_dx = -1.0
        incoming = [o.x - (player.x + player.width) for o in obstacles
                    if o.x + o.width > player.x]
        if incoming:
            nearest_obstacle_dx = max(0.0, min(incoming))

        settings = game.difficulty

        return GameSnapshot(
            phase=PHASE_CODES[game.phase],
            score=game.score,
            lives=game.lives,
            combo=game.combo,
            level=game.level,
            best_score=game.best_score,
            game_time=game.game_time,
            board_width=cfg.board.width,
            board_height=cfg.board.height,
            ground_y=cfg.board.ground_y,
            player_x=player.x,
            player_y=player.y,
            player_vy=player.velocity_y,
            player_on_ground=player.on_ground,
            bag_x=bag_x,
            bag_y=bag_y,
            bag_width=cfg.bag.width,
            carrots_count=carrot_count,
            obstacles_count=obstacle_count,
            nearest_carrot_dx=nearest_carrot_dx,
            nearest_carrot_time=nearest_carrot_time,
            nearest_obstacle_dx=nearest_obstacle_dx,
            fall_speed=settings.fall_speed,
            spawn_interval=settings.spawn_interval,
            carrot_x=self._carrot_x.copy(),
            carrot_y=self._carrot_y.copy(),
            carrot_speed=self._carrot_speed.copy(),
            carrot_mask=self._carrot_mask.copy(),
            obstacle_x=self._obstacle_x.copy(),
            obstacle_y=self._obstacle_y.copy(),
            obstacle_speed=self._obstacle_speed.copy(),
            obstacle_kind=self._obstacle_kind.copy(),
            obstacle_mask=self._obstacle_mask.copy()
        )
