"""
Solid Renderer
==============

Fast numpy-based renderer that draws every entity as solid-color boxes.
Used for rgb_array frames and replay thumbnails; no pygame required.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np

from bunny_bag.core.config_loader import GameConfig, get_config

# Palette tags per obstacle kind
_OBSTACLE_COLORS = {
    "log": "obstacle",
    "rock": "ground",
}


class SolidRenderer:
    """
    Renders the game board as solid-color rectangles.

    Draws the actual collision boxes: the bunny body, the bag catch zone,
    carrots and obstacles. Lives are shown as pips in the top-left corner and
    progress as a bar along the top edge.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._palette = {
            tag: np.array(rgb, dtype=np.uint8) for tag, rgb in config.colors.items()
        }

    def render(
        self,
        render_data: Dict[str, Any],
        width: int,
        height: int
    ) -> np.ndarray:
        """
        Render the game state to an RGB array.

        Args:
            render_data: Data from CoreGame.get_render_data().
            width: Output image width.
            height: Output image height.

        Returns:
            (height, width, 3) uint8 array.
        """
        img = np.zeros((height, width, 3), dtype=np.uint8)
        img[:] = self._palette["background"]

        scale_x = width / render_data["board_width"]
        scale_y = height / render_data["board_height"]

        def box(x: float, y: float, w: float, h: float, tag: str) -> None:
            self._fill_rect(img, x * scale_x, y * scale_y, w * scale_x, h * scale_y,
                            self._palette[tag])

        # Ground strip
        ground_y = render_data["ground_y"]
        box(0, ground_y, render_data["board_width"],
            render_data["board_height"] - ground_y, "ground")

        for obstacle in render_data["obstacles"]:
            tag = _OBSTACLE_COLORS.get(obstacle["kind"], "obstacle")
            box(obstacle["x"], obstacle["y"], obstacle["width"], obstacle["height"], tag)
            box(obstacle["x"], obstacle["y"], obstacle["width"], 4, "obstacle_top")

        for carrot in render_data["carrots"]:
            size = carrot["size"]
            box(carrot["x"], carrot["y"], size, size, "carrot")
            box(carrot["x"] + size / 4, carrot["y"] - size / 4, size / 2, size / 4, "carrot_leaf")

        player = render_data["player"]
        box(player["x"], player["y"], player["width"], player["height"], "player")

        bag = render_data["bag"]
        box(bag["x"], bag["y"], bag["width"], bag["height"], "bag")

        for particle in render_data["particles"]:
            if particle["alpha"] > 0.25:
                box(particle["x"], particle["y"], 2, 2, particle["color"])

        self._draw_hud(img, render_data, width)

        if render_data.get("visual_filter"):
            self._apply_scanlines(img)

        return img

    def _draw_hud(self, img: np.ndarray, render_data: Dict[str, Any], width: int) -> None:
        """Life pips and the progress bar."""
        for i in range(render_data["max_lives"]):
            tag = "player" if i < render_data["lives"] else "shadow"
            self._fill_rect(img, 8 + i * 14, 8, 10, 10, self._palette[tag])

        bar_width = (width - 16) * render_data["progress"]
        self._fill_rect(img, 8, 0, width - 16, 3, self._palette["shadow"])
        self._fill_rect(img, 8, 0, bar_width, 3, self._palette["ui"])

    @staticmethod
    def _fill_rect(
        img: np.ndarray,
        x: float,
        y: float,
        w: float,
        h: float,
        color: np.ndarray
    ) -> None:
        """Fill an axis-aligned rectangle, clipped to the image."""
        height, width = img.shape[:2]
        x_min = max(0, int(x))
        y_min = max(0, int(y))
        x_max = min(width, int(x + w))
        y_max = min(height, int(y + h))

        if x_min >= x_max or y_min >= y_max:
            return

        img[y_min:y_max, x_min:x_max] = color

    @staticmethod
    def _apply_scanlines(img: np.ndarray) -> None:
        """Darken every other row."""
        img[1::2] = (img[1::2] * 0.7).astype(np.uint8)

    def render_frame(
        self,
        render_data: Dict[str, Any],
        size: Optional[Tuple[int, int]] = None
    ) -> np.ndarray:
        """Render at board resolution unless a (width, height) size is given."""
        if size is None:
            size = (int(render_data["board_width"]), int(render_data["board_height"]))
        return self.render(render_data, size[0], size[1])
