"""
Bunny Bag Core - The game simulation and agent environment.

This module provides the headless game core, the Gymnasium environment
wrapper, and all supporting systems (difficulty, spawning, scoring, rules,
persistence, events).

Main exports:
- BunnyBagEnv: Gymnasium environment for single-agent training
- BunnyBagVectorEnv: Vectorized environment (single-process)
- CoreGame: Frame-stepped game simulation, driven by presentation adapters
- GameConfig: Configuration loaded from game_config.yaml
"""

from bunny_bag.core.config_loader import GameConfig, get_config, load_config
from bunny_bag.core.difficulty import DifficultySettings, compute_difficulty
from bunny_bag.core.events import EventRecord, GameEvent
from bunny_bag.core.game import CoreGame, FrameResult
from bunny_bag.core.persistence import JsonScoreStore, MemoryScoreStore, ScoreStore
from bunny_bag.core.rules import Command, GamePhase
from bunny_bag.core.env_gym import BunnyBagEnv
from bunny_bag.core.vector_env import BunnyBagVectorEnv
from bunny_bag.core.replay_recorder import (
    ReplayRecorder,
    generate_replay_filename,
    load_replay,
    record_episode,
    replay_actions,
)

__all__ = [
    "GameConfig",
    "get_config",
    "load_config",
    "DifficultySettings",
    "compute_difficulty",
    "EventRecord",
    "GameEvent",
    "CoreGame",
    "FrameResult",
    "JsonScoreStore",
    "MemoryScoreStore",
    "ScoreStore",
    "Command",
    "GamePhase",
    "BunnyBagEnv",
    "BunnyBagVectorEnv",
    "ReplayRecorder",
    "generate_replay_filename",
    "load_replay",
    "record_episode",
    "replay_actions",
]
