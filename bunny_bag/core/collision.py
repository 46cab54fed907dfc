"""
Collision Resolver
==================

Axis-aligned overlap tests between the player and other entities.

Carrots are only caught by the bag (catch zone), never by the bunny's body.
Obstacles hit the full body.
"""

from __future__ import annotations

from typing import Optional

from bunny_bag.core.config_loader import GameConfig, get_config
from bunny_bag.core.entities import Carrot, Obstacle, Player, Rect


def rects_overlap(a: Rect, b: Rect) -> bool:
    """Strict AABB overlap. Rectangles that only touch do not overlap."""
    return (
        a.x < b.x + b.width
        and a.x + a.width > b.x
        and a.y < b.y + b.height
        and a.y + a.height > b.y
    )


class CollisionRules:
    """Player collision tests with bag geometry taken from config."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._bag_width = config.bag.width
        self._bag_height = config.bag.height

    def catch_zone(self, player: Player) -> Rect:
        """Bag rectangle, centred horizontally and resting on top of the player."""
        return Rect(
            x=player.x + (player.width - self._bag_width) / 2,
            y=player.y - self._bag_height,
            width=self._bag_width,
            height=self._bag_height
        )

    def is_caught(self, player: Player, carrot: Carrot) -> bool:
        return rects_overlap(carrot.bounds(), self.catch_zone(player))

    def is_hit(self, player: Player, obstacle: Obstacle) -> bool:
        return rects_overlap(obstacle.bounds(), player.bounds())
