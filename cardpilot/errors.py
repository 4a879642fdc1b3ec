"""
Exception types raised by the cardpilot package.

- `PilotError`: base class for every error raised on purpose by cardpilot.
- `ConfigError`: invalid bot configuration.
- `CardParseError`: a card code could not be understood.
- `ActionUnavailableError`: the host exposes no entry point for an action.
- `HostBindError`: a required host reference could not be bound.
"""

from enum import Enum


class PilotError(Exception):
    """Base class for cardpilot errors."""

    pass


class ConfigError(PilotError, ValueError):
    """Raised when a configuration value is missing or out of range."""

    pass


class CardParseError(PilotError, ValueError):
    """Raised when a card code such as ``"10H"`` cannot be parsed."""

    pass


class ActionUnavailableError(PilotError):
    """Raised when the host has no callable entry point for an action."""

    def __init__(self, action, entry_point: str):
        super().__init__(f"Host entry point '{entry_point}' for {action} is unavailable")
        self.action = action
        self.entry_point = entry_point


class BindFailure(Enum):
    """Reasons a host binding can fail. The value is the user-visible text."""

    CANVAS_NOT_FOUND = "canvas not found"
    COMPONENT_NOT_FOUND = "component not found"
    GAME_PROPERTY_INVALID = "game property invalid"


class HostBindError(PilotError):
    """Raised when the live game objects cannot be located or are unusable."""

    def __init__(self, reason: BindFailure, detail: str = ""):
        message = reason.value if not detail else f"{reason.value}: {detail}"
        super().__init__(message)
        self.reason = reason
        self.detail = detail
