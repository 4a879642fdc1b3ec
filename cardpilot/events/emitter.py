"""
Event bus for the bot.

The automaton, driver and observer publish `BotEventType` events here; UI
code and `Autopilot.on` subscribe. An event is addressed by its enum name,
so ``BotEventType.ROUND_ENDED`` and ``"ROUND_ENDED"`` reach the same
handlers.
"""

import bisect
import itertools
import logging
import threading
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple, Union

logger = logging.getLogger("cardpilot.events")

EventKey = Union[str, Enum]


class EventPriority(Enum):
    """Handlers with a higher priority run first."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


def event_name(event_type: EventKey) -> str:
    return event_type.name if isinstance(event_type, Enum) else event_type


class EventEmitter:
    """
    Delivers published events to subscribed handlers.

    Handlers run in priority order, and in subscription order within one
    priority. A handler that raises is logged; the remaining handlers still
    run and the publisher never sees the error.
    """

    def __init__(self):
        # Entries sort by (-priority, subscription sequence)
        self._handlers: Dict[str, List[Tuple[int, int, Callable]]] = defaultdict(list)
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    def on(
        self,
        event_type: EventKey,
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe `callback(data)` to an event.

        Returns:
            A function that removes exactly this subscription
        """
        name = event_name(event_type)
        entry = (-priority.value, next(self._sequence), callback)
        with self._lock:
            bisect.insort(self._handlers[name], entry)

        def unsubscribe():
            with self._lock:
                handlers = self._handlers.get(name, [])
                if entry in handlers:
                    handlers.remove(entry)

        return unsubscribe

    def emit(self, event_type: EventKey, data: Dict[str, Any]) -> None:
        name = event_name(event_type)
        with self._lock:
            callbacks = [callback for _, _, callback in self._handlers.get(name, ())]

        # Handlers run outside the lock so they may subscribe or unsubscribe
        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Error in event handler for {name}: {e}", exc_info=True)


class EventBus:
    """Process-wide `EventEmitter` shared by every component."""

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = EventEmitter()
        return cls._instance


class BotEventType(Enum):
    """
    Event types published by the bot.
    """

    # Lifecycle
    BOT_STARTED = "bot_started"
    BOT_STOPPED = "bot_stopped"
    STATE_CHANGED = "state_changed"

    # Rounds
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"
    HAND_RESULT = "hand_result"
    BANKROLL_UPDATED = "bankroll_updated"

    # Decisions and actions
    DECISION = "decision"
    STRATEGY_DEVIATION = "strategy_deviation"
    ACTION_ISSUED = "action_issued"
    ACTION_REJECTED = "action_rejected"

    # Observation
    OBSERVATION_DEGRADED = "observation_degraded"
    MODAL_BLOCKED = "modal_blocked"

    # Errors
    ERROR = "error"
