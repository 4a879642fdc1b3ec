"""
Immutable state management for the bot.

This package provides immutable state classes and pure transition functions
so that every automaton step can be tested without a live game.
"""

from cardpilot.state.models import (
    BotPhase,
    PendingAction,
    RoundState,
    TurnState,
    SessionState,
    BotState,
)

from cardpilot.state.transitions import StateTransitionEngine

__all__ = [
    "BotPhase",
    "PendingAction",
    "RoundState",
    "TurnState",
    "SessionState",
    "BotState",
    "StateTransitionEngine",
]
