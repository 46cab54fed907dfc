"""
Spawner
=======

Time-gated creation of carrots and obstacles.

All timers run on game time supplied by the caller, never wall-clock time,
so a run is fully determined by its seed and its input sequence.

Multi-spawn follow-ups are queued as PendingSpawn entries tagged with the
run generation. reset() bumps the generation, so a follow-up queued in one
run can never appear in the next.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional

from bunny_bag.core.config_loader import GameConfig, get_config
from bunny_bag.core.difficulty import DifficultySettings, compute_difficulty
from bunny_bag.core.entities import Carrot, Obstacle, ObstacleKind, clamp


@dataclass(order=True)
class PendingSpawn:
    """A deferred carrot due at a given game time."""
    due_time: float
    generation: int = field(compare=False)


@dataclass
class SpawnResult:
    """Entities created during one spawner tick."""
    carrots: List[Carrot] = field(default_factory=list)
    obstacles: List[Obstacle] = field(default_factory=list)

    @property
    def carrot_count(self) -> int:
        return len(self.carrots)


class Spawner:
    """
    Creates carrots and obstacles according to the difficulty curve.

    Owns the only gameplay RNG: placement, speed jitter, multi-spawn rolls,
    obstacle rolls and obstacle kind all draw from it.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize spawner.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = random.Random(seed)

        self._last_carrot_spawn_time: float = 0.0
        self._last_obstacle_spawn_time: float = 0.0
        self._pending: List[PendingSpawn] = []
        self._generation: int = 0

    @property
    def generation(self) -> int:
        """Run counter, incremented on every reset."""
        return self._generation

    @property
    def pending(self) -> List[PendingSpawn]:
        """Queued follow-up spawns (copy)."""
        return list(self._pending)

    @property
    def last_carrot_spawn_time(self) -> float:
        return self._last_carrot_spawn_time

    @property
    def last_obstacle_spawn_time(self) -> float:
        return self._last_obstacle_spawn_time

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Zero all timers and drop queued follow-ups.

        Args:
            seed: New random seed. Keeps current RNG stream if None.
        """
        if seed is not None:
            self._rng = random.Random(seed)
        self._last_carrot_spawn_time = 0.0
        self._last_obstacle_spawn_time = 0.0
        self._pending.clear()
        self._generation += 1

    def tick(
        self,
        game_time: float,
        score: int,
        carrots: List[Carrot],
        obstacles: List[Obstacle]
    ) -> SpawnResult:
        """
        Run one spawner step, appending new entities to the given lists.

        Args:
            game_time: Elapsed game time in ms.
            score: Current score (drives difficulty and placement).
            carrots: Active carrot list, appended to in place.
            obstacles: Active obstacle list, appended to in place.

        Returns:
            SpawnResult listing what was created.
        """
        result = SpawnResult()
        settings = compute_difficulty(score, self._config)

        self._release_pending(game_time, score, settings, carrots, result)

        if game_time - self._last_carrot_spawn_time > settings.spawn_interval:
            self._add_carrot(score, settings, carrots, result)
            self._schedule_follow_ups(game_time, settings)
            self._last_carrot_spawn_time = game_time

        if settings.obstacles_enabled:
            elapsed = game_time - self._last_obstacle_spawn_time
            if elapsed > self._config.spawn.obstacle_interval:
                # A failed roll retries on the next tick
                if self._rng.random() < settings.obstacle_spawn_probability:
                    obstacle = self.create_obstacle(settings)
                    obstacles.append(obstacle)
                    result.obstacles.append(obstacle)
                    self._last_obstacle_spawn_time = game_time

        return result

    def _release_pending(
        self,
        game_time: float,
        score: int,
        settings: DifficultySettings,
        carrots: List[Carrot],
        result: SpawnResult
    ) -> None:
        """Create carrots for every due follow-up of the current run."""
        if not self._pending:
            return

        still_pending = []
        for entry in sorted(self._pending):
            if entry.generation != self._generation:
                continue
            if entry.due_time <= game_time:
                self._add_carrot(score, settings, carrots, result)
            else:
                still_pending.append(entry)
        self._pending = still_pending

    def _schedule_follow_ups(self, game_time: float, settings: DifficultySettings) -> None:
        probability = settings.multi_spawn_probability
        second_delay, third_delay = self._config.spawn.multi_spawn_delays

        if self._rng.random() < probability:
            self._pending.append(PendingSpawn(game_time + second_delay, self._generation))
            if self._rng.random() < probability * 0.5:
                self._pending.append(PendingSpawn(game_time + third_delay, self._generation))

    def _add_carrot(
        self,
        score: int,
        settings: DifficultySettings,
        carrots: List[Carrot],
        result: SpawnResult
    ) -> None:
        previous_x = carrots[-1].x if carrots else None
        carrot = self.create_carrot(score, settings, previous_x)
        carrots.append(carrot)
        result.carrots.append(carrot)

    def carrot_x(self, score: int, previous_x: Optional[float] = None) -> float:
        """
        Pick a horizontal position for a new carrot.

        Below cluster_start carrots land anywhere. Above it they drift from the
        previous carrot by a bounded random offset, widening past
        wide_cluster_start, so drop zones become streaky as the score rises.
        """
        spawn = self._config.spawn
        max_x = self._config.board.width - self._config.carrot.size

        if score < spawn.cluster_start or previous_x is None:
            return self._rng.random() * max_x

        spread = spawn.wide_cluster_spread if score >= spawn.wide_cluster_start else spawn.cluster_spread
        offset = (self._rng.random() - 0.5) * spread
        return clamp(previous_x + offset, 0.0, max_x)

    def create_carrot(
        self,
        score: int,
        settings: Optional[DifficultySettings] = None,
        previous_x: Optional[float] = None
    ) -> Carrot:
        """Build a carrot just above the top edge."""
        if settings is None:
            settings = compute_difficulty(score, self._config)

        cfg = self._config.carrot
        x = self.carrot_x(score, previous_x)
        jitter = (self._rng.random() - 0.5) * cfg.speed_jitter
        speed = max(cfg.min_speed, settings.fall_speed + jitter)

        return Carrot(
            x=x,
            y=-cfg.size,
            size=cfg.size,
            speed=speed,
            motion_scale=cfg.motion_scale
        )

    def create_obstacle(self, settings: DifficultySettings) -> Obstacle:
        """Build an obstacle at the right edge, standing on the ground."""
        cfg = self._config.obstacle
        if self._rng.random() < cfg.log_probability:
            kind = ObstacleKind.LOG
        else:
            kind = ObstacleKind.ROCK

        return Obstacle(
            x=self._config.board.width,
            y=self._config.board.ground_y - cfg.height,
            width=cfg.width,
            height=cfg.height,
            speed=settings.obstacle_speed,
            kind=kind
        )
