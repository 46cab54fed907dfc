"""
Core Game
=========

Main game orchestrator combining entities, collisions, spawning, scoring and
the phase state machine.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from bunny_bag.core.collision import CollisionRules
from bunny_bag.core.config_loader import GameConfig, ParticlePreset, get_config
from bunny_bag.core.difficulty import DifficultySettings, compute_difficulty
from bunny_bag.core.entities import Carrot, Obstacle, Particle, Player
from bunny_bag.core.events import EventRegistry, GameEvent, Listener
from bunny_bag.core.persistence import MemoryScoreStore, ScoreStore
from bunny_bag.core.rules import MOVE_DIRECTIONS, Command, GamePhase, PhaseMachine
from bunny_bag.core.scoring import ScoreTracker
from bunny_bag.core.spawner import Spawner
from bunny_bag.core.state_snapshot import GameSnapshot, SnapshotBuilder

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """What happened during one update() call."""
    phase: GamePhase
    delta_score: int = 0
    caught: int = 0
    dropped: int = 0
    hits: int = 0
    carrots_spawned: int = 0
    obstacles_spawned: int = 0
    level_up: bool = False
    simulated: bool = True       # False when skipped outside PLAYING


class CoreGame:
    """
    Main game simulation class.

    Orchestrates:
    - Player, carrots, obstacles and particles
    - Catch/hit resolution
    - Spawner (the only gameplay RNG)
    - Scoring, combo and lives
    - Phase state machine and best-score persistence

    One update() = one frame. Entity motion only runs while PLAYING.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        store: Optional[ScoreStore] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility.
            store: Best-score storage. Session-only if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._seed = seed

        # Subsystems
        self._collisions = CollisionRules(config)
        self._spawner = Spawner(config, seed)
        self._scorer = ScoreTracker(config)
        self._machine = PhaseMachine()
        self._events = EventRegistry()
        self._snapshot_builder = SnapshotBuilder(config)
        self._store = store if store is not None else MemoryScoreStore()

        # Cosmetic RNG, kept apart so particles never shift gameplay rolls
        self._fx_rng = random.Random(seed)

        self._best_score: int = self._store.load()
        self._muted: bool = False
        self._visual_filter: bool = False

        self._player: Player = Player.spawn(config)
        self._carrots: List[Carrot] = []
        self._obstacles: List[Obstacle] = []
        self._particles: List[Particle] = []
        self._lives: int = config.player.starting_lives
        self._held_direction: int = 0
        self._game_time: float = 0.0
        self._frames: int = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def phase(self) -> GamePhase:
        return self._machine.phase

    @property
    def is_over(self) -> bool:
        """True once the run has ended."""
        return self._machine.phase is GamePhase.GAME_OVER

    @property
    def player(self) -> Player:
        return self._player

    @property
    def carrots(self) -> List[Carrot]:
        return self._carrots

    @property
    def obstacles(self) -> List[Obstacle]:
        return self._obstacles

    @property
    def particles(self) -> List[Particle]:
        return self._particles

    @property
    def spawner(self) -> Spawner:
        return self._spawner

    @property
    def events(self) -> EventRegistry:
        return self._events

    @property
    def score(self) -> int:
        """Current score."""
        return self._scorer.score

    @property
    def lives(self) -> int:
        return self._lives

    @property
    def combo(self) -> int:
        return self._scorer.combo

    @property
    def max_combo(self) -> int:
        return self._scorer.max_combo

    @property
    def caught(self) -> int:
        return self._scorer.caught

    @property
    def spawned(self) -> int:
        return self._scorer.spawned

    @property
    def accuracy(self) -> int:
        return self._scorer.accuracy

    @property
    def level(self) -> int:
        return self._scorer.level

    @property
    def best_score(self) -> int:
        return self._best_score

    @property
    def game_time(self) -> float:
        """Elapsed PLAYING time in ms for this run."""
        return self._game_time

    @property
    def frames(self) -> int:
        """Simulated frames in this run."""
        return self._frames

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def visual_filter(self) -> bool:
        return self._visual_filter

    @property
    def difficulty(self) -> DifficultySettings:
        return compute_difficulty(self._scorer.score, self._config)

    def on(self, event_type: GameEvent, listener: Listener):
        """Subscribe to a game event. Returns an unsubscribe function."""
        return self._events.subscribe(event_type, listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Reset run state without changing the phase.

        Pending multi-spawns from the previous run are invalidated.

        Args:
            seed: New random seed. Continues the current RNG stream if None.

        Returns:
            Snapshot of the fresh run.
        """
        if seed is not None:
            self._seed = seed
            self._fx_rng = random.Random(seed)

        self._scorer.reset()
        self._spawner.reset(seed)

        self._lives = self._config.player.starting_lives
        self._carrots = []
        self._obstacles = []
        self._particles = []
        self._player = Player.spawn(self._config)
        self._held_direction = 0
        self._game_time = 0.0
        self._frames = 0

        self._events.emit(GameEvent.RESET)
        return self.snapshot()

    def return_to_title(self, seed: Optional[int] = None) -> GameSnapshot:
        """Abandon the current run and go back to the title screen."""
        self._machine.reset(GamePhase.TITLE)
        return self.reset(seed=seed)

    def command(self, cmd: Union[Command, str]) -> bool:
        """
        Apply one input command.

        Commands that make no sense in the current phase (e.g. jumping while
        paused) are ignored.

        Returns:
            True if the command had an effect.
        """
        cmd = Command(cmd)

        if cmd is Command.PRESS_PRIMARY:
            self._press_primary()
            return True

        if cmd in MOVE_DIRECTIONS:
            self._held_direction = MOVE_DIRECTIONS[cmd]
            return True

        if cmd is Command.JUMP:
            if self._machine.is_playing and self._player.jump():
                return True
            logger.debug("Ignored jump in phase %s", self.phase.value)
            return False

        if cmd is Command.TOGGLE_MUTE:
            self._muted = not self._muted
            return True

        if cmd is Command.TOGGLE_VISUAL_FILTER:
            self._visual_filter = not self._visual_filter
            return True

        return False

    def press_primary(self) -> GamePhase:
        """Context-sensitive start/pause/resume/continue/restart."""
        self._press_primary()
        return self.phase

    def _press_primary(self) -> None:
        transition = self._machine.press_primary()

        if transition.starts_run:
            self.reset()
            self._events.emit(GameEvent.STARTED)
        elif transition.ends_run:
            self.reset()
        elif transition.current is GamePhase.PAUSED:
            self._events.emit(GameEvent.PAUSED)
        elif transition.previous is GamePhase.PAUSED:
            self._events.emit(GameEvent.RESUMED)
        elif transition.previous is GamePhase.HIT_PAUSE:
            self._events.emit(GameEvent.CONTINUED, lives=self._lives)

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def update(self, delta_ms: float) -> FrameResult:
        """
        Advance one frame.

        Does nothing unless the phase is PLAYING. Once started, a frame always
        runs to completion, even if a hit ends the run partway through.

        Args:
            delta_ms: Milliseconds since the previous frame.

        Returns:
            FrameResult summarising the frame.
        """
        if not self._machine.is_playing:
            return FrameResult(phase=self.phase, simulated=False)

        dt = max(0.0, float(delta_ms))
        score_before = self._scorer.score
        result = FrameResult(phase=self.phase)

        self._game_time += dt
        self._frames += 1

        self._player.move(self._held_direction)
        self._player.update(dt)

        self._update_carrots(dt, result)
        self._update_obstacles(dt, result)
        self._update_particles(dt)

        spawned = self._spawner.tick(
            self._game_time,
            self._scorer.score,
            self._carrots,
            self._obstacles
        )
        self._scorer.record_spawn(spawned.carrot_count)
        result.carrots_spawned = spawned.carrot_count
        result.obstacles_spawned = len(spawned.obstacles)

        if self._scorer.update_level():
            result.level_up = True
            self._emit_particles(
                self._config.board.width / 2,
                self._config.board.height / 2,
                self._config.particles.stage_up
            )
            self._events.emit(GameEvent.LEVEL_UP, level=self._scorer.level)

        result.delta_score = self._scorer.score - score_before
        result.phase = self.phase
        return result

    def _update_carrots(self, dt: float, result: FrameResult) -> None:
        ground_y = self._config.board.ground_y
        remaining = []

        for carrot in self._carrots:
            carrot.update(dt)

            if self._collisions.is_caught(self._player, carrot):
                self._catch(carrot)
                result.caught += 1
            elif carrot.crossed_ground(ground_y):
                self._drop(carrot)
                result.dropped += 1
            else:
                remaining.append(carrot)

        self._carrots = remaining

    def _update_obstacles(self, dt: float, result: FrameResult) -> None:
        remaining = []

        for obstacle in self._obstacles:
            obstacle.update(dt)

            # After a hit this frame the remaining obstacles keep moving but
            # are not tested again until play resumes
            if self._machine.is_playing and self._collisions.is_hit(self._player, obstacle):
                self._hit(obstacle)
                result.hits += 1
            elif not obstacle.is_off_screen():
                remaining.append(obstacle)

        self._obstacles = remaining

    def _update_particles(self, dt: float) -> None:
        for particle in self._particles:
            particle.update(dt)
        self._particles = [p for p in self._particles if not p.is_dead()]

    def _catch(self, carrot: Carrot) -> None:
        event = self._scorer.apply_catch()
        cx, cy = carrot.bounds().center
        self._emit_particles(cx, cy, self._config.particles.catch)
        self._events.emit(GameEvent.CATCH, points=event.points, combo=event.combo, score=event.score)

    def _drop(self, carrot: Carrot) -> None:
        self._scorer.break_combo()
        cx, cy = carrot.bounds().center
        self._emit_particles(cx, cy, self._config.particles.ground)
        self._events.emit(GameEvent.DROP, x=carrot.x)

    def _hit(self, obstacle: Obstacle) -> None:
        self._scorer.break_combo()
        self._lives = max(0, self._lives - 1)

        cx, cy = obstacle.bounds().center
        self._emit_particles(cx, cy, self._config.particles.hit)

        self._machine.hit(self._lives)
        self._events.emit(GameEvent.HIT, lives=self._lives, kind=obstacle.kind.value)

        if self._machine.phase is GamePhase.GAME_OVER:
            self._finish_run()

    def _finish_run(self) -> None:
        """Persist the best score if this run beat it."""
        score = self._scorer.score
        if score > self._best_score:
            self._best_score = score
            if not self._store.save(score):
                logger.info("Best score %d kept for this session only", score)
            self._events.emit(GameEvent.NEW_BEST, score=score)

        self._events.emit(
            GameEvent.GAME_OVER,
            score=score,
            max_combo=self._scorer.max_combo,
            accuracy=self._scorer.accuracy,
            level=self._scorer.level
        )

    def _emit_particles(self, x: float, y: float, preset: ParticlePreset) -> None:
        scale = self._config.carrot.motion_scale
        for _ in range(preset.count):
            self._particles.append(Particle(
                x=x,
                y=y,
                vx=(self._fx_rng.random() - 0.5) * preset.spread,
                vy=(self._fx_rng.random() - 0.5) * preset.spread - preset.lift,
                life=preset.life,
                max_life=preset.life,
                color=preset.color,
                motion_scale=scale
            ))

    # ------------------------------------------------------------------
    # Render feed
    # ------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        """Build a fixed-size snapshot of the current state."""
        return self._snapshot_builder.build(self)

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "phase": self.phase.value,
            "score": self._scorer.score,
            "lives": self._lives,
            "combo": self._scorer.combo,
            "max_combo": self._scorer.max_combo,
            "caught": self._scorer.caught,
            "spawned": self._scorer.spawned,
            "accuracy": self._scorer.accuracy,
            "level": self._scorer.level,
            "best_score": self._best_score,
            "game_time": self._game_time,
            "frames": self._frames,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with phase, entity poses and HUD values.
        """
        player = self._player
        zone = self._collisions.catch_zone(player)
        settings = self.difficulty

        return {
            "board_width": self._config.board.width,
            "board_height": self._config.board.height,
            "ground_y": self._config.board.ground_y,
            "phase": self.phase.value,
            "player": {
                "x": player.x,
                "y": player.y,
                "width": player.width,
                "height": player.height,
                "direction": player.direction,
                "on_ground": player.on_ground,
            },
            "bag": {"x": zone.x, "y": zone.y, "width": zone.width, "height": zone.height},
            "carrots": [
                {"x": c.x, "y": c.y, "size": c.size, "speed": c.speed}
                for c in self._carrots
            ],
            "obstacles": [
                {"x": o.x, "y": o.y, "width": o.width, "height": o.height, "kind": o.kind.value}
                for o in self._obstacles
            ],
            "particles": [
                {"x": p.x, "y": p.y, "color": p.color, "alpha": p.alpha}
                for p in self._particles
            ],
            "score": self._scorer.score,
            "lives": self._lives,
            "max_lives": self._config.player.starting_lives,
            "combo": self._scorer.combo,
            "max_combo": self._scorer.max_combo,
            "accuracy": self._scorer.accuracy,
            "level": self._scorer.level,
            "best_score": self._best_score,
            "muted": self._muted,
            "visual_filter": self._visual_filter,
            "progress": min(1.0, self._scorer.score / self._config.progression.progress_bar_max_score),
            "difficulty": {
                "spawn_interval": settings.spawn_interval,
                "fall_speed": settings.fall_speed,
                "multi_spawn_probability": settings.multi_spawn_probability,
                "obstacles_enabled": settings.obstacles_enabled,
                "obstacle_spawn_probability": settings.obstacle_spawn_probability,
                "obstacle_speed": settings.obstacle_speed,
            },
        }
