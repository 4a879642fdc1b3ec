"""
Command-line interface adapter for the bot.

This module provides an adapter that writes the bot's status lines and round
results to the console.
"""

import sys
import time
from typing import Any, Dict, Optional, TextIO, Union
from enum import Enum

from cardpilot.adapters.base import PlatformAdapter


class CLIAdapter(PlatformAdapter):
    """
    Command-line interface adapter for the bot.

    Status lines are timestamped; round results and bankroll updates are
    echoed, the remaining events only when `verbose` is set.
    """

    _ECHOED_EVENTS = ("ROUND_ENDED", "BANKROLL_UPDATED", "STRATEGY_DEVIATION")

    def __init__(self, stream: Optional[TextIO] = None, verbose: bool = False):
        """
        Initialize the CLI adapter.

        Args:
            stream: Where to write; defaults to stdout
            verbose: Whether to echo every event
        """
        self.stream = stream or sys.stdout
        self.verbose = verbose
        self._last_status: Optional[str] = None

    def _write(self, text: str) -> None:
        stamp = time.strftime("%H:%M:%S")
        print(f"[{stamp}] {text}", file=self.stream, flush=True)

    async def render_status(self, text: str) -> None:
        """
        Print a status line, skipping exact repeats of the previous one.

        Args:
            text: The status line
        """
        if text == self._last_status:
            return
        self._last_status = text
        self._write(text)

    async def notify_event(
        self, event_type: Union[str, Enum], data: Dict[str, Any]
    ) -> None:
        """
        Print selected events.

        Args:
            event_type: The type of event that occurred
            data: Data associated with the event
        """
        name = event_type.name if isinstance(event_type, Enum) else str(event_type)
        if not self.verbose and name not in self._ECHOED_EVENTS:
            return

        if name == "ROUND_ENDED":
            hands = ", ".join(
                f"hand {h['hand_index'] + 1}: {' '.join(h['cards'])} -> {h['outcome']}"
                for h in data.get("hands", [])
            )
            self._write(f"Round {data.get('round')} over: {hands}")
        elif name == "BANKROLL_UPDATED":
            self._write(
                f"Balance {data.get('balance')} ({data.get('delta'):+.2f} this round)"
            )
        else:
            details = ", ".join(f"{key}={value}" for key, value in data.items())
            self._write(f"{name}: {details}")

    async def bot_stopped(self, reason: str) -> None:
        self._write(f"Bot stopped: {reason}")
