"""
Scoring System
==============

Score, combo and catch bookkeeping for a single run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bunny_bag.core.config_loader import GameConfig, get_config
from bunny_bag.core.difficulty import level_for_score


@dataclass
class CatchEvent:
    """Record of a successful catch."""
    points: int
    combo: int
    score: int

    def __repr__(self) -> str:
        return f"CatchEvent(+{self.points}, combo={self.combo}, score={self.score})"


class ScoreTracker:
    """
    Tracks score, combo and accuracy.

    Combo counts consecutive catches. Both a ground drop and an obstacle hit
    reset it; max_combo keeps the best streak of the run.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize score tracker.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._points_per_catch = config.carrot.points_per_catch
        self._points_per_level = config.progression.points_per_level
        self.reset()

    @property
    def score(self) -> int:
        """Current total score."""
        return self._score

    @property
    def combo(self) -> int:
        return self._combo

    @property
    def max_combo(self) -> int:
        return self._max_combo

    @property
    def caught(self) -> int:
        """Carrots caught this run."""
        return self._caught

    @property
    def spawned(self) -> int:
        """Carrots spawned this run."""
        return self._spawned

    @property
    def level(self) -> int:
        """Display level (never decreases within a run)."""
        return self._level

    @property
    def accuracy(self) -> int:
        """Caught / spawned as a rounded percentage."""
        if self._spawned == 0:
            return 0
        return int(round(100.0 * self._caught / self._spawned))

    def apply_catch(self) -> CatchEvent:
        """Award points for a caught carrot and extend the combo."""
        self._score += self._points_per_catch
        self._caught += 1
        self._combo += 1
        self._max_combo = max(self._max_combo, self._combo)
        return CatchEvent(
            points=self._points_per_catch,
            combo=self._combo,
            score=self._score
        )

    def break_combo(self) -> None:
        """Reset the combo after a drop or a hit."""
        self._combo = 0

    def record_spawn(self, count: int = 1) -> None:
        self._spawned += count

    def update_level(self) -> bool:
        """
        Recompute the display level from score.

        Returns:
            True if the level went up.
        """
        new_level = level_for_score(self._score, self._points_per_level)
        if new_level > self._level:
            self._level = new_level
            return True
        return False

    def reset(self) -> None:
        """Reset all counters for a new run."""
        self._score = 0
        self._combo = 0
        self._max_combo = 0
        self._caught = 0
        self._spawned = 0
        self._level = 1
