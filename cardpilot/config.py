"""Tunable settings for the bot: polling cadence, retry bounds and delays."""

from typing import Any, Dict

from cardpilot.errors import ConfigError


class BotConfig:
    def __init__(
        self,
        auto_start: bool = True,
        max_splits: int = 1,
        tick_interval: float = 0.5,
        frame_interval: float = 0.05,
        max_ticks_per_frame: int = 4,
        observe_attempts: int = 5,
        observe_interval: float = 0.2,
        dealer_observe_attempts: int = 3,
        max_init_cycles: int = 20,
        max_wait_cycles: int = 40,
        max_end_cycles: int = 30,
        split_settle_delay: float = 0.6,
        round_settle_delay: float = 1.0,
        error_cooldown: float = 5.0,
        bind_attempts: int = 5,
        bind_retry_delay: float = 1.0,
        max_bind_failures: int = 3,
    ):
        self.auto_start = auto_start
        self.bind_attempts = bind_attempts
        self.bind_retry_delay = bind_retry_delay
        self.dealer_observe_attempts = dealer_observe_attempts
        self.error_cooldown = error_cooldown
        self.frame_interval = frame_interval
        self.max_bind_failures = max_bind_failures
        self.max_end_cycles = max_end_cycles
        self.max_init_cycles = max_init_cycles
        self.max_splits = max_splits
        self.max_ticks_per_frame = max_ticks_per_frame
        self.max_wait_cycles = max_wait_cycles
        self.observe_attempts = observe_attempts
        self.observe_interval = observe_interval
        self.round_settle_delay = round_settle_delay
        self.split_settle_delay = split_settle_delay
        self.tick_interval = tick_interval
        self._validate()

    def _validate(self) -> None:
        for name in (
            "tick_interval",
            "frame_interval",
        ):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")

        for name in (
            "observe_interval",
            "split_settle_delay",
            "round_settle_delay",
            "error_cooldown",
            "bind_retry_delay",
        ):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} cannot be negative, got {getattr(self, name)}")

        for name in (
            "max_ticks_per_frame",
            "observe_attempts",
            "dealer_observe_attempts",
            "max_init_cycles",
            "max_wait_cycles",
            "max_end_cycles",
            "bind_attempts",
            "max_bind_failures",
        ):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1, got {getattr(self, name)}")

        if self.max_splits < 0:
            raise ConfigError(f"max_splits cannot be negative, got {self.max_splits}")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "BotConfig":
        """Build a config from a mapping, rejecting keys it does not know."""
        known = set(cls().to_dict())
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**values)

    def interval_for_waiting(self) -> float:
        return self.tick_interval / 2

    def interval_for_error(self) -> float:
        return self.tick_interval * 2

    def to_dict(self) -> dict:
        """Convert the config to a dictionary for serialization."""
        return {
            "auto_start": self.auto_start,
            "max_splits": self.max_splits,
            "tick_interval": self.tick_interval,
            "frame_interval": self.frame_interval,
            "max_ticks_per_frame": self.max_ticks_per_frame,
            "observe_attempts": self.observe_attempts,
            "observe_interval": self.observe_interval,
            "dealer_observe_attempts": self.dealer_observe_attempts,
            "max_init_cycles": self.max_init_cycles,
            "max_wait_cycles": self.max_wait_cycles,
            "max_end_cycles": self.max_end_cycles,
            "split_settle_delay": self.split_settle_delay,
            "round_settle_delay": self.round_settle_delay,
            "error_cooldown": self.error_cooldown,
            "bind_attempts": self.bind_attempts,
            "bind_retry_delay": self.bind_retry_delay,
            "max_bind_failures": self.max_bind_failures,
        }
