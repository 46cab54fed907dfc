"""
Difficulty Model
================

Derives every spawn and speed parameter from a single scalar: the score.

Rules are applied in threshold order. Each later rule works on the already
clamped output of the earlier ones, so acceleration compounds instead of
resetting at every threshold.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bunny_bag.core.config_loader import GameConfig, get_config


@dataclass(frozen=True)
class DifficultySettings:
    """Spawn and speed parameters for a given score."""
    spawn_interval: float             # ms between carrot spawns
    fall_speed: float                 # Base carrot fall speed
    multi_spawn_probability: float    # Chance of a follow-up carrot per spawn
    obstacles_enabled: bool
    obstacle_spawn_probability: float
    obstacle_speed: float             # px per frame, leftward


def compute_difficulty(
    score: int,
    config: Optional[GameConfig] = None
) -> DifficultySettings:
    """
    Compute difficulty settings for a score.

    Pure and deterministic: the same score always yields the same settings.

    Args:
        score: Current score. Negative values are treated as 0.
        config: Game configuration. Uses default if None.

    Returns:
        DifficultySettings for this score.
    """
    if config is None:
        config = get_config()

    d = config.difficulty
    score = max(0, int(score))

    spawn_interval = d.spawn_interval_base
    fall_speed = d.fall_speed_base
    multi_spawn = 0.0
    obstacles_enabled = False
    obstacle_spawn = 0.0
    obstacle_speed = d.obstacle_speed_base

    if score >= d.obstacles_start:
        over = score - d.obstacles_start
        obstacles_enabled = True
        obstacle_spawn = min(
            d.obstacle_spawn_cap,
            d.obstacle_spawn_base + over * d.obstacle_spawn_slope
        )
        obstacle_speed = min(
            d.obstacle_speed_max,
            d.obstacle_speed_base + over * d.obstacle_speed_slope
        )

    if score >= d.speed_increase_start:
        multiplier = 1.0 + (score - d.speed_increase_start) * d.speed_slope
        fall_speed = min(d.fall_speed_max, d.fall_speed_base * multiplier)
        spawn_interval = max(d.spawn_interval_min, d.spawn_interval_base / multiplier)

    if score >= d.multi_spawn_start:
        multi_spawn = min(
            d.multi_spawn_max,
            (score - d.multi_spawn_start) * d.multi_spawn_slope
        )

    if score >= d.rapid_increase_start:
        rapid = 1.0 + (score - d.rapid_increase_start) * d.rapid_slope
        fall_speed = min(d.fall_speed_max, fall_speed * rapid)
        spawn_interval = max(d.spawn_interval_min, spawn_interval / rapid)
        obstacle_speed = min(d.obstacle_speed_max, obstacle_speed * rapid)
        obstacle_spawn = min(d.obstacle_spawn_rapid_cap, obstacle_spawn * rapid)

    return DifficultySettings(
        spawn_interval=spawn_interval,
        fall_speed=fall_speed,
        multi_spawn_probability=multi_spawn,
        obstacles_enabled=obstacles_enabled,
        obstacle_spawn_probability=obstacle_spawn,
        obstacle_speed=obstacle_speed
    )


def level_for_score(score: int, points_per_level: int = 25) -> int:
    """Display level for a score (1-based)."""
    return max(0, int(score)) // points_per_level + 1
