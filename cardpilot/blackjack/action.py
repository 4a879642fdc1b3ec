"""Defines the Action enum for the actions the bot can ask the host to perform."""
from enum import Enum


class Action(Enum):
    """Enum for the actions the bot can issue through the host's action executor."""

    DEAL = "deal"
    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    DECLINE_INSURANCE = "decline_insurance"


# In-turn decisions, each gated by its own legal flag on the host
PLAY_ACTIONS = (Action.HIT, Action.STAND, Action.DOUBLE, Action.SPLIT)
