"""
UI adapters for the bot.

This package provides adapters that carry the bot's status and events to a
user-facing surface (console, tests, control panels).
"""

from cardpilot.adapters.base import PlatformAdapter
from cardpilot.adapters.cli import CLIAdapter
from cardpilot.adapters.dummy import DummyAdapter

__all__ = ["PlatformAdapter", "CLIAdapter", "DummyAdapter"]
