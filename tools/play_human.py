"""
Human Play Mode
================

Play Bunny Bag interactively with the keyboard.

Controls:
    - Left/Right or A/D: Move
    - Up/W: Jump
    - Space/Enter: Start / Pause / Resume / Continue / Restart
    - M: Toggle mute
    - F: Toggle CRT filter
    - ESC: Quit

Usage:
    python -m tools.play_human [--seed SEED] [--scale SCALE] [--best-score PATH]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Tuple

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from bunny_bag.core.config_loader import GameConfig, load_config
from bunny_bag.core.events import EventRecord, GameEvent
from bunny_bag.core.game import CoreGame
from bunny_bag.core.persistence import JsonScoreStore
from bunny_bag.core.rules import Command, GamePhase

# Longest frame fed to the simulation, so a stalled window does not teleport carrots
MAX_FRAME_MS = 50.0

# How long flash messages stay on screen
MESSAGE_MS = 1200.0


class BunnyRenderer:
    """
    Pixel-style renderer for human play mode.
    Draws the board at logical resolution and scales it to the window.
    """

    def __init__(self, config: GameConfig, scale: float):
        """Initialize renderer with the configured palette."""
        self._config = config
        self._scale = scale
        self._board_size = (config.board.width, config.board.height)
        self._window_size = (int(config.board.width * scale), int(config.board.height * scale))

        # Logical surface, scaled on present
        self._surface = pygame.Surface(self._board_size)

        pygame.font.init()
        self._font_huge = pygame.font.Font(None, 64)
        self._font_large = pygame.font.Font(None, 36)
        self._font_medium = pygame.font.Font(None, 26)
        self._font_small = pygame.font.Font(None, 20)

        self._scanlines = self._create_scanlines()

    @property
    def window_size(self) -> Tuple[int, int]:
        return self._window_size

    def _color(self, tag: str) -> Tuple[int, int, int]:
        return self._config.color(tag)

    def _create_scanlines(self) -> pygame.Surface:
        """Pre-render the CRT scanline overlay."""
        overlay = pygame.Surface(self._board_size, pygame.SRCALPHA)
        for y in range(0, self._board_size[1], 2):
            pygame.draw.line(overlay, (0, 0, 0, 70), (0, y), (self._board_size[0], y))
        return overlay

    def render(
        self,
        screen: pygame.Surface,
        render_data: dict,
        messages: List[Tuple[str, float]]
    ) -> None:
        """Render the complete game scene."""
        surface = self._surface
        surface.fill(self._color("background"))

        self._draw_ground(surface, render_data)
        self._draw_obstacles(surface, render_data)
        self._draw_carrots(surface, render_data)
        self._draw_player(surface, render_data)
        self._draw_particles(surface, render_data)
        self._draw_hud(surface, render_data)
        self._draw_messages(surface, messages)
        self._draw_overlay(surface, render_data)

        if render_data["visual_filter"]:
            surface.blit(self._scanlines, (0, 0))

        pygame.transform.scale(surface, self._window_size, screen)

    def _draw_ground(self, surface: pygame.Surface, render_data: dict) -> None:
        ground_y = int(render_data["ground_y"])
        height = render_data["board_height"] - ground_y
        pygame.draw.rect(surface, self._color("ground"),
                         (0, ground_y, render_data["board_width"], height))

    def _draw_obstacles(self, surface: pygame.Surface, render_data: dict) -> None:
        for obstacle in render_data["obstacles"]:
            rect = pygame.Rect(int(obstacle["x"]), int(obstacle["y"]),
                               obstacle["width"], obstacle["height"])
            if obstacle["kind"] == "rock":
                pygame.draw.ellipse(surface, self._color("ground"), rect)
                pygame.draw.ellipse(surface, self._color("shadow"), rect, 2)
            else:
                pygame.draw.rect(surface, self._color("obstacle"), rect)
                pygame.draw.rect(surface, self._color("obstacle_top"),
                                 (rect.x, rect.y, rect.width, 6))

    def _draw_carrots(self, surface: pygame.Surface, render_data: dict) -> None:
        for carrot in render_data["carrots"]:
            x, y, size = carrot["x"], carrot["y"], carrot["size"]
            body = [(x, y), (x + size, y), (x + size / 2, y + size)]
            pygame.draw.polygon(surface, self._color("carrot"), body)
            pygame.draw.rect(surface, self._color("carrot_leaf"),
                             (int(x + size / 3), int(y - size / 3), int(size / 3), int(size / 3)))

    def _draw_player(self, surface: pygame.Surface, render_data: dict) -> None:
        player = render_data["player"]
        x, y = int(player["x"]), int(player["y"])
        w, h = player["width"], player["height"]

        # Shadow stays on the ground while airborne
        shadow = pygame.Rect(x + 4, int(render_data["ground_y"]) - 4, w - 8, 4)
        pygame.draw.ellipse(surface, self._color("shadow"), shadow)

        pygame.draw.rect(surface, self._color("player"), (x, y, w, h))
        ear_w = max(4, w // 5)
        pygame.draw.rect(surface, self._color("player"), (x + ear_w, y - 8, ear_w, 8))
        pygame.draw.rect(surface, self._color("player"), (x + w - 2 * ear_w, y - 8, ear_w, 8))

        bag = render_data["bag"]
        pygame.draw.rect(surface, self._color("bag"),
                         (int(bag["x"]), int(bag["y"]), bag["width"], bag["height"]))

    def _draw_particles(self, surface: pygame.Surface, render_data: dict) -> None:
        for particle in render_data["particles"]:
            alpha = int(255 * particle["alpha"])
            if alpha <= 0:
                continue
            r, g, b = self._color(particle["color"])
            dot = pygame.Surface((3, 3), pygame.SRCALPHA)
            dot.fill((r, g, b, alpha))
            surface.blit(dot, (int(particle["x"]), int(particle["y"])))

    def _draw_hud(self, surface: pygame.Surface, render_data: dict) -> None:
        text = self._color("text")
        ui = self._color("ui")
        width = render_data["board_width"]

        score = self._font_large.render(f"SCORE {render_data['score']}", True, text)
        surface.blit(score, (12, 10))
        best = self._font_small.render(f"BEST {render_data['best_score']}", True, text)
        surface.blit(best, (12, 40))

        level = self._font_medium.render(f"LEVEL {render_data['level']}", True, ui)
        surface.blit(level, ((width - level.get_width()) // 2, 12))

        if render_data["combo"] > 1:
            combo = self._font_small.render(f"COMBO x{render_data['combo']}", True, ui)
            surface.blit(combo, ((width - combo.get_width()) // 2, 36))

        for i in range(render_data["max_lives"]):
            tag = "player" if i < render_data["lives"] else "shadow"
            pygame.draw.rect(surface, self._color(tag), (width - 24 - i * 20, 14, 14, 14))

        accuracy = self._font_small.render(f"ACC {render_data['accuracy']}%", True, text)
        surface.blit(accuracy, (width - accuracy.get_width() - 12, 36))

        if render_data["muted"]:
            muted = self._font_small.render("MUTED", True, text)
            surface.blit(muted, (width - muted.get_width() - 12, 54))

        # Progress bar along the top edge
        pygame.draw.rect(surface, self._color("shadow"), (0, 0, width, 4))
        pygame.draw.rect(surface, ui, (0, 0, int(width * render_data["progress"]), 4))

    def _draw_messages(self, surface: pygame.Surface, messages: List[Tuple[str, float]]) -> None:
        y = self._board_size[1] // 4
        for text, remaining in messages:
            alpha = max(0, min(255, int(255 * remaining / MESSAGE_MS)))
            label = self._font_large.render(text, True, self._color("text"))
            label.set_alpha(alpha)
            surface.blit(label, ((self._board_size[0] - label.get_width()) // 2, y))
            y += 34

    def _draw_overlay(self, surface: pygame.Surface, render_data: dict) -> None:
        """Title, pause, hit and game-over screens."""
        phase = render_data["phase"]
        if phase == GamePhase.PLAYING.value:
            return

        shade = pygame.Surface(self._board_size, pygame.SRCALPHA)
        shade.fill((0, 0, 0, 150))
        surface.blit(shade, (0, 0))

        if phase == GamePhase.TITLE.value:
            lines = ["BUNNY BAG", "Catch the carrots!", "SPACE to start"]
        elif phase == GamePhase.PAUSED.value:
            lines = ["PAUSED", "SPACE to resume"]
        elif phase == GamePhase.HIT_PAUSE.value:
            lines = ["OUCH!", f"Lives left: {render_data['lives']}", "SPACE to continue"]
        else:
            lines = [
                "GAME OVER",
                f"Score: {render_data['score']}   Best: {render_data['best_score']}",
                f"Max combo: {render_data['max_combo']}   Accuracy: {render_data['accuracy']}%",
                "SPACE for title",
            ]

        y = self._board_size[1] // 3
        for i, line in enumerate(lines):
            font = self._font_huge if i == 0 else self._font_medium
            label = font.render(line, True, self._color("text" if i else "ui"))
            surface.blit(label, ((self._board_size[0] - label.get_width()) // 2, y))
            y += label.get_height() + 14


class HumanPlayer:
    """Human player controller: keyboard to commands and the frame driver."""

    def __init__(
        self,
        config: GameConfig,
        seed: Optional[int] = None,
        scale: float = 1.0,
        target_fps: int = 60,
        best_score_path: Optional[str] = None
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame is required for human play mode")

        self._config = config
        self._target_fps = target_fps

        store = JsonScoreStore(path=best_score_path, config=config)
        self._game = CoreGame(config=config, seed=seed, store=store)

        pygame.init()
        self._renderer = BunnyRenderer(config, scale)
        self._screen = pygame.display.set_mode(self._renderer.window_size)
        pygame.display.set_caption("Bunny Bag")
        self._clock = pygame.time.Clock()

        self._running = True
        self._messages: List[List] = []

        self._game.on(GameEvent.CATCH, self._on_catch)
        self._game.on(GameEvent.LEVEL_UP, self._on_level_up)
        self._game.on(GameEvent.NEW_BEST, self._on_new_best)
        self._game.on(GameEvent.GAME_OVER, self._on_game_over)

    def _flash(self, text: str) -> None:
        self._messages.append([text, MESSAGE_MS])

    def _on_catch(self, event: EventRecord) -> None:
        if event.data["combo"] >= 5 and event.data["combo"] % 5 == 0:
            self._flash(f"{event.data['combo']} in a row!")

    def _on_level_up(self, event: EventRecord) -> None:
        self._flash(f"Level {event.data['level']}!")

    def _on_new_best(self, event: EventRecord) -> None:
        self._flash("New best!")

    def _on_game_over(self, event: EventRecord) -> None:
        print(f"\nGAME OVER - Score: {event.data['score']}, "
              f"max combo: {event.data['max_combo']}, accuracy: {event.data['accuracy']}%")

    def run(self) -> int:
        """Run the game loop. Returns best score."""
        print("=== Bunny Bag ===")
        print("Arrows/A-D to move, Up/W to jump, Space to start/pause")
        print("M to mute, F for CRT filter, ESC to quit")
        print()

        while self._running:
            delta_ms = min(float(self._clock.tick(self._target_fps)), MAX_FRAME_MS)
            self._handle_events()
            self._apply_held_keys()
            self._game.update(delta_ms)
            self._age_messages(delta_ms)
            self._render()

        pygame.quit()
        return self._game.best_score

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key in (pygame.K_SPACE, pygame.K_RETURN):
                    self._game.command(Command.PRESS_PRIMARY)
                elif event.key in (pygame.K_UP, pygame.K_w):
                    self._game.command(Command.JUMP)
                elif event.key == pygame.K_m:
                    self._game.command(Command.TOGGLE_MUTE)
                elif event.key == pygame.K_f:
                    self._game.command(Command.TOGGLE_VISUAL_FILTER)

    def _apply_held_keys(self) -> None:
        keys = pygame.key.get_pressed()
        left = keys[pygame.K_LEFT] or keys[pygame.K_a]
        right = keys[pygame.K_RIGHT] or keys[pygame.K_d]

        if left and not right:
            self._game.command(Command.MOVE_LEFT)
        elif right and not left:
            self._game.command(Command.MOVE_RIGHT)
        else:
            self._game.command(Command.MOVE_NONE)

    def _age_messages(self, delta_ms: float) -> None:
        for message in self._messages:
            message[1] -= delta_ms
        self._messages = [m for m in self._messages if m[1] > 0]

    def _render(self) -> None:
        self._renderer.render(
            self._screen,
            self._game.get_render_data(),
            [(text, remaining) for text, remaining in self._messages]
        )
        pygame.display.flip()


def main():
    parser = argparse.ArgumentParser(description="Play Bunny Bag interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--scale", type=float, default=1.0, help="Window scale (default: 1.0)")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--best-score", type=str, default=None,
                        help="Best score file (default: storage.best_score_path)")
    parser.add_argument("--verbose", action="store_true", help="Log debug messages")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        config = load_config()
        player = HumanPlayer(
            config=config,
            seed=args.seed,
            scale=args.scale,
            target_fps=args.fps,
            best_score_path=args.best_score
        )
        best = player.run()
        print(f"\nBest Score: {best}")
        return 0
    except ImportError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
