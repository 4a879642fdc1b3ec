"""
Event system for the bot.

This package provides the event bus shared by the automaton, the driver and
the UI adapters.
"""

from cardpilot.events.emitter import (
    EventEmitter,
    EventBus,
    EventPriority,
    BotEventType,
)

__all__ = ["EventEmitter", "EventBus", "EventPriority", "BotEventType"]
