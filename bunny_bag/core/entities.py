"""
Entities
========

Plain data records for everything that moves on screen. Each type carries its
own position/size fields and exposes update(dt) and bounds().
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bunny_bag.core.config_loader import GameConfig


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle. Y grows downward."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple:
        return (self.x + self.width / 2, self.y + self.height / 2)


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


@dataclass
class Player:
    """
    The bunny.

    Horizontal motion is per frame while a direction is held. Vertical motion
    only runs while airborne. can_jump is cleared on take-off and only
    restored on landing, so holding jump cannot chain jumps mid-air.
    """
    x: float
    y: float
    width: float
    height: float
    speed: float
    jump_power: float
    gravity: float
    ground_y: float
    board_width: float
    velocity_y: float = 0.0
    direction: int = 0
    on_ground: bool = True
    can_jump: bool = True

    @classmethod
    def spawn(cls, config: GameConfig) -> "Player":
        """Create a player centred on the ground line."""
        p = config.player
        return cls(
            x=config.board.width / 2 - p.width / 2,
            y=config.board.ground_y - p.height,
            width=p.width,
            height=p.height,
            speed=p.speed,
            jump_power=p.jump_power,
            gravity=p.gravity,
            ground_y=config.board.ground_y,
            board_width=config.board.width
        )

    def move(self, direction: int) -> None:
        """Set the held direction (-1 left, 0 none, 1 right)."""
        self.direction = int(clamp(direction, -1, 1))

    def jump(self) -> bool:
        """Start a jump if standing on the ground. Returns True if it took effect."""
        if not (self.can_jump and self.on_ground):
            return False
        self.velocity_y = -self.jump_power
        self.on_ground = False
        self.can_jump = False
        return True

    def update(self, dt: float) -> None:
        self.x += self.direction * self.speed

        if not self.on_ground:
            self.velocity_y += self.gravity
            self.y += self.velocity_y

            if self.y >= self.ground_y - self.height:
                self.y = self.ground_y - self.height
                self.velocity_y = 0.0
                self.on_ground = True
                self.can_jump = True

        self.x = clamp(self.x, 0.0, self.board_width - self.width)

    def bounds(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)


@dataclass
class Carrot:
    """Falling pickup. Speed is scaled by elapsed milliseconds."""
    x: float
    y: float
    size: float
    speed: float
    motion_scale: float = 0.1

    def update(self, dt: float) -> None:
        self.y += self.speed * dt * self.motion_scale

    def bounds(self) -> Rect:
        return Rect(self.x, self.y, self.size, self.size)

    def crossed_ground(self, ground_y: float) -> bool:
        """True once the carrot's top edge is past the ground line."""
        return self.y > ground_y


class ObstacleKind(Enum):
    """Visual variants. Collision and speed are identical for both."""
    LOG = "log"
    ROCK = "rock"


@dataclass
class Obstacle:
    """Ground hazard sliding leftward at a fixed per-frame speed."""
    x: float
    y: float
    width: float
    height: float
    speed: float
    kind: ObstacleKind = ObstacleKind.LOG

    def update(self, dt: float) -> None:
        self.x -= self.speed

    def bounds(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def is_off_screen(self) -> bool:
        return self.x + self.width < 0


@dataclass
class Particle:
    """Cosmetic fragment. Never read by gameplay logic."""
    x: float
    y: float
    vx: float
    vy: float
    life: float
    max_life: float
    color: str
    motion_scale: float = 0.1
    size: float = 2.0

    def update(self, dt: float) -> None:
        self.x += self.vx * dt * self.motion_scale
        self.y += self.vy * dt * self.motion_scale
        self.life -= dt

    def bounds(self) -> Rect:
        return Rect(self.x, self.y, self.size, self.size)

    def is_dead(self) -> bool:
        return self.life <= 0

    @property
    def alpha(self) -> float:
        """Remaining life fraction in [0, 1], for fading."""
        if self.max_life <= 0:
            return 0.0
        return clamp(self.life / self.max_life, 0.0, 1.0)
