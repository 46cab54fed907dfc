"""
Game Rules
==========

Game phases, input commands and the phase state machine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class GamePhase(Enum):
    """Exactly one phase is active at a time."""
    TITLE = "title"
    PLAYING = "playing"
    PAUSED = "paused"
    HIT_PAUSE = "hitPause"
    GAME_OVER = "gameOver"


# Integer codes for observations (stable ordering)
PHASE_CODES: Dict[GamePhase, int] = {phase: i for i, phase in enumerate(GamePhase)}


class Command(Enum):
    """Inputs relayed from the presentation layer."""
    PRESS_PRIMARY = "press_primary"
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    MOVE_NONE = "move_none"
    JUMP = "jump"
    TOGGLE_MUTE = "toggle_mute"
    TOGGLE_VISUAL_FILTER = "toggle_visual_filter"


MOVE_DIRECTIONS: Dict[Command, int] = {
    Command.MOVE_LEFT: -1,
    Command.MOVE_NONE: 0,
    Command.MOVE_RIGHT: 1,
}


# The context-sensitive primary button: start, pause, resume, continue, restart
PRIMARY_TRANSITIONS: Dict[GamePhase, GamePhase] = {
    GamePhase.TITLE: GamePhase.PLAYING,
    GamePhase.PLAYING: GamePhase.PAUSED,
    GamePhase.PAUSED: GamePhase.PLAYING,
    GamePhase.HIT_PAUSE: GamePhase.PLAYING,
    GamePhase.GAME_OVER: GamePhase.TITLE,
}


@dataclass
class Transition:
    """Result of a phase change."""
    previous: GamePhase
    current: GamePhase

    @property
    def starts_run(self) -> bool:
        return self.previous is GamePhase.TITLE and self.current is GamePhase.PLAYING

    @property
    def ends_run(self) -> bool:
        return self.previous is GamePhase.GAME_OVER and self.current is GamePhase.TITLE

    @property
    def changed(self) -> bool:
        return self.previous is not self.current


class PhaseMachine:
    """
    Tracks the active phase.

    The primary button follows PRIMARY_TRANSITIONS. Hit and game-over are
    entered by the simulation itself via hit().
    """

    def __init__(self, initial: GamePhase = GamePhase.TITLE):
        self._phase = initial

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def is_playing(self) -> bool:
        return self._phase is GamePhase.PLAYING

    def press_primary(self) -> Transition:
        previous = self._phase
        self._phase = PRIMARY_TRANSITIONS[previous]
        return Transition(previous, self._phase)

    def hit(self, lives_left: int) -> Transition:
        """
        Enter HIT_PAUSE, or GAME_OVER when no lives are left.

        Only valid while playing; other phases are left untouched.
        """
        previous = self._phase
        if previous is GamePhase.PLAYING:
            self._phase = GamePhase.GAME_OVER if lives_left <= 0 else GamePhase.HIT_PAUSE
        return Transition(previous, self._phase)

    def reset(self, phase: Optional[GamePhase] = None) -> None:
        self._phase = phase or GamePhase.TITLE
