"""
Game Events
===========

Synchronous callback registry for lifecycle and gameplay notifications.

Listeners are presentation glue (sounds, messages, flashes). Nothing in the
simulation reads them back.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class GameEvent(Enum):
    """Built-in event types."""
    # Lifecycle
    STARTED = auto()
    PAUSED = auto()
    RESUMED = auto()
    CONTINUED = auto()
    RESET = auto()
    GAME_OVER = auto()

    # Gameplay
    CATCH = auto()
    DROP = auto()
    HIT = auto()
    LEVEL_UP = auto()
    NEW_BEST = auto()


@dataclass
class EventRecord:
    """Event payload passed to listeners."""
    type: GameEvent
    data: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[EventRecord], None]


class EventRegistry:
    """Maps event types to listeners and dispatches in registration order."""

    def __init__(self) -> None:
        self._listeners: Dict[GameEvent, List[Listener]] = defaultdict(list)

    def subscribe(self, event_type: GameEvent, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            Unsubscribe function.
        """
        self._listeners[event_type].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event_type]:
                self._listeners[event_type].remove(listener)

        return unsubscribe

    def emit(self, event_type: GameEvent, **data: Any) -> None:
        """Dispatch to every listener. A failing listener does not stop the others."""
        listeners = self._listeners.get(event_type)
        if not listeners:
            return

        record = EventRecord(event_type, data)
        for listener in list(listeners):
            try:
                listener(record)
            except Exception:
                logger.exception("Error in %s listener", event_type.name)

    def clear(self) -> None:
        self._listeners.clear()
