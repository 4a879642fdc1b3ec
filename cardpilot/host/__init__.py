"""
Game hosts the bot can play against.

This package provides the narrow interface the bot consumes from a live game,
and an in-memory table that implements it.
"""

from cardpilot.host.base import GameHost, Signals, Slot, HOST_ENTRY_POINTS
from cardpilot.host.simulated import SimulatedTable

__all__ = ["GameHost", "Signals", "Slot", "HOST_ENTRY_POINTS", "SimulatedTable"]
