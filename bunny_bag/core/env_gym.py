"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the Bunny Bag game.
Reward is always 0.0 - agents must compute their own from info.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Union

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from bunny_bag.core.config_loader import GameConfig, load_config
from bunny_bag.core.game import CoreGame
from bunny_bag.core.rules import Command, GamePhase
from bunny_bag.core.state_snapshot import GameSnapshot

# Discrete actions
ACTION_NOOP = 0
ACTION_LEFT = 1
ACTION_RIGHT = 2
ACTION_JUMP = 3

ACTION_NAMES = ["noop", "left", "right", "jump"]

_ACTION_COMMANDS: Dict[int, List[Command]] = {
    ACTION_NOOP: [Command.MOVE_NONE],
    ACTION_LEFT: [Command.MOVE_LEFT],
    ACTION_RIGHT: [Command.MOVE_RIGHT],
    ACTION_JUMP: [Command.MOVE_NONE, Command.JUMP],
}


class BunnyBagEnv(gym.Env):
    """
    Bunny Bag carrot catcher as a Gymnasium environment.

    Action Space:
        Discrete(4): 0 = stand still, 1 = move left, 2 = move right, 3 = jump.
        Each step holds the action for one fixed frame.

    Observation Space:
        Dict containing structured game state.

    Reward:
        Always 0.0. Agents must compute their own reward from the info dict.

    Info:
        Contains score, delta_score, lives, combo, phase, frames, etc.
    """

    metadata = {
        "render_modes": ["rgb_array"],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        render_mode: Optional[str] = None,
        auto_continue: bool = True,
        max_frames: Optional[int] = None,
        debug: bool = False,
    ):
        """
        Initialize Bunny Bag environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            render_mode: "rgb_array" for numpy frames, None for headless.
            auto_continue: If True, resume automatically after a hit.
            max_frames: Truncation limit. Uses caps.max_frames if None.
            debug: If True, enables verbose debug output for agent development.
        """
        super().__init__()

        self._config = load_config(config_path)

        self.render_mode = render_mode
        self._auto_continue = auto_continue
        self._max_frames = max_frames or self._config.caps.max_frames
        self._frame_ms = self._config.observation.frame_ms
        self._debug = debug

        self._game = CoreGame(config=self._config)
        self._renderer = None

        self.action_space = spaces.Discrete(len(ACTION_NAMES))
        self.observation_space = self._build_observation_space()

        if self._debug:
            print(f"[DEBUG] BunnyBagEnv initialized")
            print(f"[DEBUG]   Board: {self._config.board.width}x{self._config.board.height}")
            print(f"[DEBUG]   Frame: {self._frame_ms:.2f} ms, max frames: {self._max_frames}")

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        obs_cfg = self._config.observation
        board = self._config.board
        max_c = obs_cfg.max_carrots
        max_o = obs_cfg.max_obstacles
        int_max = np.iinfo(np.int32).max

        obs_dict = {
            # Core state
            "phase": spaces.Box(low=0, high=len(GamePhase) - 1, shape=(), dtype=np.int32),
            "score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "lives": spaces.Box(low=0, high=self._config.player.starting_lives, shape=(), dtype=np.int32),
            "combo": spaces.Box(low=0, high=int_max, shape=(), dtype=np.int32),
            "level": spaces.Box(low=1, high=int_max, shape=(), dtype=np.int32),
            "game_time": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),

            # Board info
            "board_width": spaces.Box(low=0, high=10000, shape=(), dtype=np.float32),
            "board_height": spaces.Box(low=0, high=10000, shape=(), dtype=np.float32),
            "ground_y": spaces.Box(low=0, high=10000, shape=(), dtype=np.float32),

            # Player
            "player_x": spaces.Box(low=0, high=board.width, shape=(), dtype=np.float32),
            "player_y": spaces.Box(low=-np.inf, high=board.height, shape=(), dtype=np.float32),
            "player_vy": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),
            "player_on_ground": spaces.Box(low=0, high=1, shape=(), dtype=np.int8),
            "bag_x": spaces.Box(low=-board.width, high=board.width, shape=(), dtype=np.float32),
            "bag_y": spaces.Box(low=-np.inf, high=board.height, shape=(), dtype=np.float32),
            "bag_width": spaces.Box(low=0, high=board.width, shape=(), dtype=np.float32),

            # Derived features
            "carrots_count": spaces.Box(low=0, high=max_c, shape=(), dtype=np.int32),
            "obstacles_count": spaces.Box(low=0, high=max_o, shape=(), dtype=np.int32),
            "nearest_carrot_dx": spaces.Box(low=-board.width, high=board.width, shape=(), dtype=np.float32),
            "nearest_carrot_time": spaces.Box(low=-1, high=np.inf, shape=(), dtype=np.float32),
            "nearest_obstacle_dx": spaces.Box(low=-1, high=np.inf, shape=(), dtype=np.float32),
            "fall_speed": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "spawn_interval": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),

            # Object arrays
            "carrot_x": spaces.Box(low=-np.inf, high=np.inf, shape=(max_c,), dtype=np.float32),
            "carrot_y": spaces.Box(low=-np.inf, high=np.inf, shape=(max_c,), dtype=np.float32),
            "carrot_speed": spaces.Box(low=0, high=np.inf, shape=(max_c,), dtype=np.float32),
            "carrot_mask": spaces.MultiBinary(max_c),
            "obstacle_x": spaces.Box(low=-np.inf, high=np.inf, shape=(max_o,), dtype=np.float32),
            "obstacle_y": spaces.Box(low=-np.inf, high=np.inf, shape=(max_o,), dtype=np.float32),
            "obstacle_speed": spaces.Box(low=0, high=np.inf, shape=(max_o,), dtype=np.float32),
            "obstacle_kind": spaces.Box(low=-1, high=1, shape=(max_o,), dtype=np.int8),
            "obstacle_mask": spaces.MultiBinary(max_o),
        }

        return spaces.Dict(obs_dict)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment and start a new run.

        Args:
            seed: Random seed for reproducibility.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        # Back to the title screen, then press start
        self._game.return_to_title(seed=seed)
        self._game.press_primary()

        obs = self._game.snapshot().to_obs_dict()
        info = self._game.get_info()
        info["delta_score"] = 0

        return obs, info

    def step(
        self,
        action: Union[int, np.integer, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one frame.

        Args:
            action: One of ACTION_NOOP, ACTION_LEFT, ACTION_RIGHT, ACTION_JUMP.

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        if isinstance(action, np.ndarray):
            action = int(action.item())
        action = int(action)
        if action not in _ACTION_COMMANDS:
            raise ValueError(f"Invalid action {action}, expected 0-{len(ACTION_NAMES) - 1}")

        if self._auto_continue and self._game.phase is GamePhase.HIT_PAUSE:
            self._game.press_primary()

        for cmd in _ACTION_COMMANDS[action]:
            self._game.command(cmd)

        result = self._game.update(self._frame_ms)

        obs = self._game.snapshot().to_obs_dict()

        # Reward is always 0.0 - agents compute their own
        reward = 0.0

        terminated = self._game.is_over
        truncated = not terminated and self._game.frames >= self._max_frames

        info = self._game.get_info()
        info["delta_score"] = result.delta_score
        info["caught_this_step"] = result.caught
        info["dropped_this_step"] = result.dropped
        info["hit"] = result.hits > 0
        if terminated:
            info["terminated_reason"] = "out_of_lives"
        elif truncated:
            info["terminated_reason"] = "max_frames"

        if self._debug:
            print(f"[DEBUG] Step: action={ACTION_NAMES[action]}, delta_score={result.delta_score}, "
                  f"lives={info['lives']}, carrots={obs['carrots_count']}")
            if terminated or truncated:
                print(f"[DEBUG] TERMINATED: {info['terminated_reason']}")

        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        """
        Render the current game state.

        Returns:
            RGB array if render_mode is "rgb_array", None otherwise.
        """
        if self.render_mode != "rgb_array":
            return None

        if self._renderer is None:
            from bunny_bag.core.render_solid import SolidRenderer
            self._renderer = SolidRenderer(self._config)

        return self._renderer.render(
            self._game.get_render_data(),
            self._config.board.width,
            self._config.board.height
        )

    def close(self) -> None:
        """Clean up resources."""
        self._renderer = None

    @property
    def game(self) -> CoreGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    def snapshot(self) -> GameSnapshot:
        return self._game.snapshot()
