"""
Replay Recorder
===============

A run is fully determined by its seed and its per-frame actions, so that is
all a replay holds. The score summary rides along for quick comparisons, and
a hash of the gameplay config flags replays recorded under other tuning.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import gymnasium as gym
import numpy as np

from bunny_bag.core.config_loader import GameConfig, load_config

logger = logging.getLogger(__name__)

# Sections whose values change what a given action sequence produces
_GAMEPLAY_SECTIONS = ("board", "player", "carrot", "bag", "obstacle", "difficulty", "spawn")


def generate_replay_filename(
    agent_name: str = "replay",
    seed: Optional[int] = None,
    directory: Optional[Union[str, Path]] = None
) -> Path:
    """Timestamped replay path: <agent>[_s<seed>]_<YYYYmmdd_HHMMSS>.json"""
    stem = agent_name if seed is None else f"{agent_name}_s{seed}"
    name = f"{stem}_{datetime.now():%Y%m%d_%H%M%S}.json"
    return Path(directory) / name if directory else Path(name)


def _compute_config_hash(config: Optional[GameConfig] = None) -> str:
    if config is None:
        config = load_config()

    sections = {name: asdict(getattr(config, name)) for name in _GAMEPLAY_SECTIONS}
    sections["fps"] = config.observation.fps
    return hashlib.md5(json.dumps(sections, sort_keys=True).encode()).hexdigest()[:8]


class ReplayRecorder(gym.Wrapper):
    """
    Env wrapper that records one episode at a time.

    reset() starts a fresh recording; it stops on its own when the episode
    terminates or truncates. Each entry of score_changes is
    [frames_so_far, score_after].
    """

    def __init__(self, env: gym.Env, agent_name: str = "unknown"):
        super().__init__(env)
        self.agent_name = agent_name
        self._config_hash = _compute_config_hash(getattr(env, "config", None))

        self._recording = False
        self._seed: Optional[int] = None
        self._actions: List[int] = []
        self._score_changes: List[Tuple[int, int]] = []
        self._last_info: Dict[str, Any] = {}
        self._termination_reason = ""

    @property
    def recording(self) -> bool:
        return self._recording

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Any, Dict[str, Any]]:
        self._seed = seed
        self._actions = []
        self._score_changes = []
        self._last_info = {}
        self._termination_reason = ""
        self._recording = True
        return self.env.reset(seed=seed, options=options)

    def step(self, action: Union[int, np.integer, np.ndarray]):
        action = int(np.asarray(action).item())
        obs, reward, terminated, truncated, info = self.env.step(action)

        if self._recording:
            self._actions.append(action)
            if info.get("delta_score"):
                self._score_changes.append((len(self._actions), int(info["score"])))
            self._last_info = info

            if terminated or truncated:
                self._termination_reason = info.get("terminated_reason", "unknown")
                self._recording = False

        return obs, reward, terminated, truncated, info

    def get_replay_data(self) -> Dict[str, Any]:
        """Replay dict as written by save() and read by replay_actions()."""
        info = self._last_info
        return {
            "seed": self._seed,
            "agent": self.agent_name,
            "config_hash": self._config_hash,
            "actions": list(self._actions),
            "score_changes": [list(change) for change in self._score_changes],
            "final_score": int(info.get("score", 0)),
            "max_combo": int(info.get("max_combo", 0)),
            "accuracy": int(info.get("accuracy", 0)),
            "total_steps": len(self._actions),
            "termination_reason": self._termination_reason,
        }

    def save(
        self,
        path: Optional[Union[str, Path]] = None,
        directory: Optional[Union[str, Path]] = None
    ) -> Path:
        """Write the replay as JSON. Names the file itself when path is None."""
        if path is None:
            path = generate_replay_filename(self.agent_name, self._seed, directory)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.get_replay_data()
        with open(path, "w") as f:
            json.dump(data, f)

        logger.info("Replay saved to %s (seed=%s, %d frames, score %d)",
                    path, self._seed, data["total_steps"], data["final_score"])
        return path


def record_episode(
    env: gym.Env,
    agent_fn: Callable[[Dict[str, Any]], int],
    seed: int,
    save_path: Optional[Union[str, Path]] = None,
    agent_name: str = "unknown"
) -> Dict[str, Any]:
    """
    Play one seeded episode with agent_fn and return its replay dict.

    The dict gains a "path" entry when save_path is given.
    """
    recorder = ReplayRecorder(env, agent_name=agent_name)
    obs, _ = recorder.reset(seed=seed)

    while recorder.recording:
        obs, *_ = recorder.step(agent_fn(obs))

    data = recorder.get_replay_data()
    if save_path is not None:
        data["path"] = str(recorder.save(save_path))
    return data


def load_replay(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = json.load(f)
    if "actions" not in data:
        raise ValueError(f"Not a replay file: {path}")
    return data


def replay_actions(
    replay: Dict[str, Any],
    env: Optional[gym.Env] = None
) -> int:
    """
    Re-run a recorded episode and return its final score.

    Args:
        replay: Replay data from get_replay_data() or load_replay().
        env: Environment to replay in. A fresh BunnyBagEnv if None.
    """
    if env is None:
        from bunny_bag.core.env_gym import BunnyBagEnv
        env = BunnyBagEnv()

    current_hash = _compute_config_hash(getattr(env, "config", None))
    if replay.get("config_hash") != current_hash:
        logger.warning(
            "Replay recorded with config %s, current config is %s; scores may differ",
            replay.get("config_hash"), current_hash
        )

    _, info = env.reset(seed=replay.get("seed"))
    score = int(info["score"])

    for action in replay["actions"]:
        _, _, terminated, truncated, info = env.step(action)
        score = int(info["score"])
        if terminated or truncated:
            break

    return score
