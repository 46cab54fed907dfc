"""
Vector Environment
==================

Single-process vectorized environment for parallel training.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from bunny_bag.core.config_loader import GameConfig
from bunny_bag.core.env_gym import ACTION_NAMES, BunnyBagEnv
from bunny_bag.core.game import CoreGame


class BunnyBagVectorEnv:
    """
    Vectorized Bunny Bag environment.

    Runs several BunnyBagEnv instances in one process and stacks their
    observations along a leading axis. An env whose episode ends is reset
    automatically on the same step; its final info is kept under
    "final_info".
    """

    def __init__(
        self,
        num_envs: int,
        config_path: Optional[str] = None,
        seed: Optional[int] = None,
        max_frames: Optional[int] = None,
    ):
        """
        Initialize vectorized environment.

        Args:
            num_envs: Number of parallel environments.
            config_path: Path to game_config.yaml.
            seed: Base random seed. Each env gets seed+i.
            max_frames: Per-env truncation limit.
        """
        if num_envs < 1:
            raise ValueError(f"num_envs must be >= 1, got {num_envs}")

        self._num_envs = num_envs
        self._base_seed = seed
        self._envs: List[BunnyBagEnv] = [
            BunnyBagEnv(config_path=config_path, max_frames=max_frames)
            for _ in range(num_envs)
        ]
        self._episodes = np.zeros(num_envs, dtype=np.int64)

        self.single_action_space = self._envs[0].action_space
        self.single_observation_space = self._envs[0].observation_space

        self._rewards = np.zeros(num_envs, dtype=np.float32)
        self._terminateds = np.zeros(num_envs, dtype=bool)
        self._truncateds = np.zeros(num_envs, dtype=bool)

    @property
    def num_envs(self) -> int:
        """Number of parallel environments."""
        return self._num_envs

    @property
    def config(self) -> GameConfig:
        return self._envs[0].config

    def _env_seed(self, i: int) -> Optional[int]:
        if self._base_seed is None:
            return None
        # Distinct seed per env and per episode
        return self._base_seed + i + int(self._episodes[i]) * self._num_envs

    def reset(
        self,
        seed: Optional[int] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset all environments.

        Args:
            seed: Base random seed. Each env gets seed+i.

        Returns:
            (observations, infos) tuple.
        """
        if seed is not None:
            self._base_seed = seed
        self._episodes.fill(0)

        results = [env.reset(seed=self._env_seed(i)) for i, env in enumerate(self._envs)]
        obs_list = [obs for obs, _ in results]
        info_list = [info for _, info in results]

        return self._stack(obs_list), self._collect_infos(info_list)

    def step(
        self,
        actions: Sequence[int]
    ) -> Tuple[Dict[str, np.ndarray], np.ndarray, np.ndarray, np.ndarray, Dict[str, Any]]:
        """
        Step all environments.

        Args:
            actions: (num_envs,) array of discrete actions.

        Returns:
            (observations, rewards, terminateds, truncateds, infos) tuple.
            Rewards are always 0.0.
        """
        if len(actions) != self._num_envs:
            raise ValueError(f"Expected {self._num_envs} actions, got {len(actions)}")

        self._rewards.fill(0.0)
        self._terminateds.fill(False)
        self._truncateds.fill(False)

        obs_list = []
        info_list = []
        final_infos: List[Optional[Dict[str, Any]]] = [None] * self._num_envs

        for i, action in enumerate(actions):
            env = self._envs[i]
            obs, reward, terminated, truncated, info = env.step(int(action))
            self._terminateds[i] = terminated
            self._truncateds[i] = truncated

            if terminated or truncated:
                final_infos[i] = info
                self._episodes[i] += 1
                obs, info = env.reset(seed=self._env_seed(i))

            obs_list.append(obs)
            info_list.append(info)

        infos = self._collect_infos(info_list)
        infos["final_info"] = final_infos

        return (
            self._stack(obs_list),
            self._rewards.copy(),
            self._terminateds.copy(),
            self._truncateds.copy(),
            infos
        )

    @staticmethod
    def _stack(obs_list: List[Dict[str, np.ndarray]]) -> Dict[str, np.ndarray]:
        return {key: np.stack([obs[key] for obs in obs_list]) for key in obs_list[0]}

    @staticmethod
    def _collect_infos(info_list: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "score": np.array([info["score"] for info in info_list], dtype=np.int64),
            "lives": np.array([info["lives"] for info in info_list], dtype=np.int32),
            "delta_score": np.array([info["delta_score"] for info in info_list], dtype=np.int32),
            "frames": np.array([info["frames"] for info in info_list], dtype=np.int64),
        }

    def get_game(self, env_idx: int) -> CoreGame:
        """Get the underlying game instance for an environment."""
        return self._envs[env_idx].game

    def close(self) -> None:
        for env in self._envs:
            env.close()

    def sample_actions(self) -> np.ndarray:
        """Sample random actions for all environments."""
        return np.random.randint(0, len(ACTION_NAMES), size=self._num_envs)
