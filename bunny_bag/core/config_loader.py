"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml


@dataclass(frozen=True)
class BoardConfig:
    """Logical screen geometry."""
    width: int
    height: int
    ground_y: float              # Y coordinate of the ground line


@dataclass(frozen=True)
class PlayerConfig:
    """Player body and jump physics."""
    width: int
    height: int
    speed: float                 # px per frame while moving
    jump_power: float            # Initial upward velocity
    gravity: float               # Added to vertical velocity each airborne frame
    starting_lives: int


@dataclass(frozen=True)
class CarrotConfig:
    """Falling pickup parameters."""
    size: int
    points_per_catch: int
    speed_jitter: float          # Width of the uniform jitter window around fall speed
    min_speed: float
    motion_scale: float          # Converts speed * dt(ms) into pixels


@dataclass(frozen=True)
class BagConfig:
    """Catch zone carried above the player."""
    width: int
    height: int


@dataclass(frozen=True)
class ObstacleConfig:
    """Ground obstacle geometry."""
    width: int
    height: int
    log_probability: float


@dataclass(frozen=True)
class DifficultyConfig:
    """Score thresholds, slopes and clamps for the difficulty curve."""
    obstacles_start: int
    speed_increase_start: int
    multi_spawn_start: int
    rapid_increase_start: int
    spawn_interval_base: float
    spawn_interval_min: float
    fall_speed_base: float
    fall_speed_max: float
    obstacle_speed_base: float
    obstacle_speed_max: float
    obstacle_speed_slope: float
    obstacle_spawn_base: float
    obstacle_spawn_slope: float
    obstacle_spawn_cap: float
    obstacle_spawn_rapid_cap: float
    speed_slope: float
    rapid_slope: float
    multi_spawn_slope: float
    multi_spawn_max: float


@dataclass(frozen=True)
class SpawnConfig:
    """Spawner timing and placement."""
    obstacle_interval: float
    multi_spawn_delays: Tuple[float, ...]
    cluster_start: int
    wide_cluster_start: int
    cluster_spread: float
    wide_cluster_spread: float


@dataclass(frozen=True)
class ParticlePreset:
    """A cosmetic particle burst."""
    count: int
    spread: float                # Velocity range on each axis
    lift: float                  # Upward bias subtracted from vy
    life: float                  # Milliseconds
    color: str


@dataclass(frozen=True)
class ParticlesConfig:
    catch: ParticlePreset
    ground: ParticlePreset
    hit: ParticlePreset
    stage_up: ParticlePreset


@dataclass(frozen=True)
class ProgressionConfig:
    """Display-only level indicator."""
    points_per_level: int
    progress_bar_max_score: int


@dataclass(frozen=True)
class CapsConfig:
    """Episode limits for headless runs."""
    max_frames: int


@dataclass(frozen=True)
class ObservationConfig:
    """Observation space parameters."""
    fps: int
    max_carrots: int
    max_obstacles: int

    @property
    def frame_ms(self) -> float:
        """Fixed frame duration used by the headless environment."""
        return 1000.0 / self.fps


@dataclass(frozen=True)
class StorageConfig:
    """Best-score persistence."""
    best_score_path: str
    best_score_key: str


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    board: BoardConfig
    player: PlayerConfig
    carrot: CarrotConfig
    bag: BagConfig
    obstacle: ObstacleConfig
    difficulty: DifficultyConfig
    spawn: SpawnConfig
    particles: ParticlesConfig
    progression: ProgressionConfig
    caps: CapsConfig
    observation: ObservationConfig
    storage: StorageConfig
    colors: Dict[str, Tuple[int, int, int]]

    def color(self, tag: str) -> Tuple[int, int, int]:
        """Get an RGB color by palette tag."""
        if tag in self.colors:
            return self.colors[tag]
        raise ValueError(f"Unknown color tag: {tag}")


def _parse_color(color_data: list) -> Tuple[int, int, int]:
    """Parse RGB color from YAML."""
    if len(color_data) != 3:
        raise ValueError(f"Color must have 3 values [R, G, B], got {color_data}")
    return (int(color_data[0]), int(color_data[1]), int(color_data[2]))


def _parse_preset(data: dict) -> ParticlePreset:
    return ParticlePreset(
        count=int(data["count"]),
        spread=float(data["spread"]),
        lift=float(data.get("lift", 0.0)),
        life=float(data["life"]),
        color=str(data["color"])
    )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    board = config.board
    if not 0 < board.ground_y <= board.height:
        raise ValueError(
            f"ground_y ({board.ground_y}) must lie inside the board height ({board.height})"
        )

    if config.player.width > board.width or config.carrot.size > board.width:
        raise ValueError("Player and carrot must fit inside the board width")

    if config.player.starting_lives < 1:
        raise ValueError(f"starting_lives must be >= 1, got {config.player.starting_lives}")

    # Thresholds must be ordered, later rules compound on earlier ones
    d = config.difficulty
    thresholds = (
        d.obstacles_start,
        d.speed_increase_start,
        d.multi_spawn_start,
        d.rapid_increase_start,
    )
    if list(thresholds) != sorted(thresholds):
        raise ValueError(f"Difficulty thresholds must be non-decreasing, got {thresholds}")

    if d.spawn_interval_min <= 0 or d.spawn_interval_min > d.spawn_interval_base:
        raise ValueError("spawn_interval_min must be in (0, spawn_interval_base]")

    if d.fall_speed_max < d.fall_speed_base:
        raise ValueError("fall_speed_max must be >= fall_speed_base")

    if d.obstacle_speed_max < d.obstacle_speed_base:
        raise ValueError("obstacle_speed_max must be >= obstacle_speed_base")

    for name in ("obstacle_spawn_cap", "obstacle_spawn_rapid_cap", "multi_spawn_max"):
        value = getattr(d, name)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be a probability, got {value}")

    if not 0.0 <= config.obstacle.log_probability <= 1.0:
        raise ValueError("obstacle.log_probability must be a probability")

    if len(config.spawn.multi_spawn_delays) != 2:
        raise ValueError(
            f"multi_spawn_delays must have 2 entries, got {config.spawn.multi_spawn_delays}"
        )

    for preset in (config.particles.catch, config.particles.ground,
                   config.particles.hit, config.particles.stage_up):
        if preset.color not in config.colors:
            raise ValueError(f"Particle color '{preset.color}' missing from palette")

    if config.observation.fps <= 0:
        raise ValueError(f"observation.fps must be positive, got {config.observation.fps}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    board_data = raw["board"]
    board = BoardConfig(
        width=int(board_data["width"]),
        height=int(board_data["height"]),
        ground_y=float(board_data.get("ground_y", int(board_data["height"]) - 20))
    )

    player_data = raw["player"]
    player = PlayerConfig(
        width=int(player_data["width"]),
        height=int(player_data["height"]),
        speed=float(player_data["speed"]),
        jump_power=float(player_data["jump_power"]),
        gravity=float(player_data["gravity"]),
        starting_lives=int(player_data.get("starting_lives", 3))
    )

    carrot_data = raw["carrot"]
    carrot = CarrotConfig(
        size=int(carrot_data["size"]),
        points_per_catch=int(carrot_data["points_per_catch"]),
        speed_jitter=float(carrot_data.get("speed_jitter", 0.3)),
        min_speed=float(carrot_data.get("min_speed", 0.5)),
        motion_scale=float(carrot_data.get("motion_scale", 0.1))
    )

    bag_data = raw["bag"]
    bag = BagConfig(
        width=int(bag_data["width"]),
        height=int(bag_data["height"])
    )

    obstacle_data = raw["obstacle"]
    obstacle = ObstacleConfig(
        width=int(obstacle_data["width"]),
        height=int(obstacle_data["height"]),
        log_probability=float(obstacle_data.get("log_probability", 0.7))
    )

    d = raw["difficulty"]
    difficulty = DifficultyConfig(
        obstacles_start=int(d["obstacles_start"]),
        speed_increase_start=int(d["speed_increase_start"]),
        multi_spawn_start=int(d["multi_spawn_start"]),
        rapid_increase_start=int(d["rapid_increase_start"]),
        spawn_interval_base=float(d["spawn_interval_base"]),
        spawn_interval_min=float(d["spawn_interval_min"]),
        fall_speed_base=float(d["fall_speed_base"]),
        fall_speed_max=float(d["fall_speed_max"]),
        obstacle_speed_base=float(d["obstacle_speed_base"]),
        obstacle_speed_max=float(d["obstacle_speed_max"]),
        obstacle_speed_slope=float(d["obstacle_speed_slope"]),
        obstacle_spawn_base=float(d["obstacle_spawn_base"]),
        obstacle_spawn_slope=float(d["obstacle_spawn_slope"]),
        obstacle_spawn_cap=float(d["obstacle_spawn_cap"]),
        obstacle_spawn_rapid_cap=float(d["obstacle_spawn_rapid_cap"]),
        speed_slope=float(d["speed_slope"]),
        rapid_slope=float(d["rapid_slope"]),
        multi_spawn_slope=float(d["multi_spawn_slope"]),
        multi_spawn_max=float(d["multi_spawn_max"])
    )

    spawn_data = raw["spawn"]
    spawn = SpawnConfig(
        obstacle_interval=float(spawn_data["obstacle_interval"]),
        multi_spawn_delays=tuple(float(v) for v in spawn_data["multi_spawn_delays"]),
        cluster_start=int(spawn_data.get("cluster_start", 200)),
        wide_cluster_start=int(spawn_data.get("wide_cluster_start", 500)),
        cluster_spread=float(spawn_data.get("cluster_spread", 150)),
        wide_cluster_spread=float(spawn_data.get("wide_cluster_spread", 200))
    )

    particles_data = raw["particles"]
    particles = ParticlesConfig(
        catch=_parse_preset(particles_data["catch"]),
        ground=_parse_preset(particles_data["ground"]),
        hit=_parse_preset(particles_data["hit"]),
        stage_up=_parse_preset(particles_data["stage_up"])
    )

    progression_data = raw.get("progression", {})
    progression = ProgressionConfig(
        points_per_level=int(progression_data.get("points_per_level", 25)),
        progress_bar_max_score=int(progression_data.get("progress_bar_max_score", 1000))
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_frames=int(caps_data.get("max_frames", 216000))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        fps=int(obs_data.get("fps", 60)),
        max_carrots=int(obs_data.get("max_carrots", 32)),
        max_obstacles=int(obs_data.get("max_obstacles", 8))
    )

    storage_data = raw.get("storage", {})
    storage = StorageConfig(
        best_score_path=str(storage_data.get("best_score_path", "~/.bunny_bag/best_score.json")),
        best_score_key=str(storage_data.get("best_score_key", "bunnyBagBestScore"))
    )

    colors = {
        str(name): _parse_color(value)
        for name, value in raw["colors"].items()
    }

    config = GameConfig(
        board=board,
        player=player,
        carrot=carrot,
        bag=bag,
        obstacle=obstacle,
        difficulty=difficulty,
        spawn=spawn,
        particles=particles,
        progression=progression,
        caps=caps,
        observation=observation,
        storage=storage,
        colors=colors
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
