"""
High-level API for the bot.
"""

from cardpilot.api.autopilot import Autopilot

__all__ = ["Autopilot"]
