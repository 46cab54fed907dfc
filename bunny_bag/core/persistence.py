"""
Best Score Persistence
======================

A single non-negative integer survives between sessions. Storage failures are
never fatal: reads fall back to 0 and failed writes leave the session
unpersisted.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from bunny_bag.core.config_loader import GameConfig, get_config

logger = logging.getLogger(__name__)


class ScoreStore(ABC):
    """Interface for best-score storage."""

    @abstractmethod
    def load(self) -> int:
        """Stored best score, 0 when nothing is stored or the read fails."""

    @abstractmethod
    def save(self, value: int) -> bool:
        """Store value. Returns False when the write fails."""


class MemoryScoreStore(ScoreStore):
    """Session-only storage, used by headless cores and tests."""

    def __init__(self, initial: int = 0):
        self._value = max(0, int(initial))
        self.writes = 0

    def load(self) -> int:
        return self._value

    def save(self, value: int) -> bool:
        self._value = max(0, int(value))
        self.writes += 1
        return True


class JsonScoreStore(ScoreStore):
    """
    Stores the best score as {"<key>": N} in a JSON file.

    Other keys in the file are preserved on write.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        key: Optional[str] = None,
        config: Optional[GameConfig] = None
    ):
        """
        Args:
            path: JSON file path. Uses storage.best_score_path if None.
            key: Key inside the file. Uses storage.best_score_key if None.
            config: Game configuration. Uses default if None.
        """
        if path is None or key is None:
            if config is None:
                config = get_config()
            path = path if path is not None else config.storage.best_score_path
            key = key if key is not None else config.storage.best_score_key

        self._path = Path(path).expanduser()
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict:
        with open(self._path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return data

    def load(self) -> int:
        """Read the best score. Returns 0 if absent, unreadable or corrupt."""
        if not self._path.exists():
            return 0

        try:
            data = self._read_all()
        except (OSError, ValueError) as e:
            logger.warning("Failed to read best score from %s: %s", self._path, e)
            return 0

        value = data.get(self._key, 0)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.warning("Ignoring invalid best score %r in %s", value, self._path)
            return 0
        return value

    def save(self, value: int) -> bool:
        """Write the best score. Returns False if storage is unavailable."""
        try:
            data = self._read_all() if self._path.exists() else {}
        except (OSError, ValueError):
            data = {}
        data[self._key] = max(0, int(value))

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                json.dump(data, f)
        except OSError as e:
            logger.warning("Failed to save best score to %s: %s", self._path, e)
            return False
        return True
