"""
Base adapter interface for the bot's user-facing side.

This module defines the interface that UI adapters must implement to show the
bot's status, receive its events and learn when it stops.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Union


class PlatformAdapter(ABC):
    """
    Base interface for UI adapters.

    The bot reports every state change and decision as a human-readable
    status line, forwards structured events, and always says why it stopped.
    Implementations bridge those reports to a console, a control panel, etc.
    """

    @abstractmethod
    async def render_status(self, text: str) -> None:
        """
        Show a status line.

        Args:
            text: Human-readable status
        """
        pass

    @abstractmethod
    async def notify_event(
        self, event_type: Union[str, Enum], data: Dict[str, Any]
    ) -> None:
        """
        Notify the platform of a bot event.

        Args:
            event_type: The type of event that occurred
            data: Data associated with the event
        """
        pass

    @abstractmethod
    async def bot_stopped(self, reason: str) -> None:
        """
        Called once when the bot stops scheduling.

        Args:
            reason: Why the bot stopped
        """
        pass

    # The following methods have default implementations but can be overridden

    async def initialize(self) -> None:
        """
        Initialize the adapter.

        This method is called before the bot starts. It can be used to set up
        resources, connections, etc.
        """
        pass

    async def shutdown(self) -> None:
        """
        Shutdown the adapter.

        This method is called after the bot stops. It can be used to clean up
        resources, close connections, etc.
        """
        pass
