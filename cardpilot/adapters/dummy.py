"""
Dummy adapter for the bot, used for testing and simulation.

This module provides a non-interactive adapter that records everything the bot
reports so tests and simulations can inspect it afterwards.
"""

from typing import List, Dict, Any, Optional, Union
from enum import Enum

from cardpilot.adapters.base import PlatformAdapter


class DummyAdapter(PlatformAdapter):
    """
    Dummy adapter for testing and simulation.

    This adapter doesn't interact with any real platform; it stores status
    lines, events and stop reasons for later inspection.
    """

    def __init__(self, verbose: bool = False):
        """
        Initialize the dummy adapter.

        Args:
            verbose: Whether to print statuses to stdout (useful for debugging)
        """
        self.verbose = verbose

        self.statuses: List[str] = []
        self.events = []
        self.stop_reasons: List[str] = []

    async def render_status(self, text: str) -> None:
        """
        Store the status line for later inspection.

        Args:
            text: The status line
        """
        self.statuses.append(text)

        if self.verbose:
            print(f"[status] {text}")

    async def notify_event(
        self, event_type: Union[str, Enum], data: Dict[str, Any]
    ) -> None:
        """
        Store the event for later inspection.

        Args:
            event_type: The type of event that occurred
            data: Data associated with the event
        """
        event_type_str = event_type.name if isinstance(event_type, Enum) else event_type

        self.events.append((event_type_str, data))

        if self.verbose:
            print(f"Event: {event_type_str}")
            for key, value in data.items():
                print(f"  {key}: {value}")

    async def bot_stopped(self, reason: str) -> None:
        self.stop_reasons.append(reason)

        if self.verbose:
            print(f"Bot stopped: {reason}")

    @property
    def last_status(self) -> Optional[str]:
        return self.statuses[-1] if self.statuses else None

    def get_events_by_type(self, event_type: Union[str, Enum]) -> List[Dict[str, Any]]:
        """
        Get all events of a specific type.

        Args:
            event_type: The type of events to retrieve

        Returns:
            A list of event data dictionaries
        """
        event_type_str = event_type.name if isinstance(event_type, Enum) else event_type
        return [data for typ, data in self.events if typ == event_type_str]

    def clear(self) -> None:
        """Clear all stored statuses, events and stop reasons."""
        self.statuses.clear()
        self.events.clear()
        self.stop_reasons.clear()
