import pytest

from cardpilot.config import BotConfig
from cardpilot.errors import ConfigError


def test_defaults():
    config = BotConfig()
    assert config.auto_start
    assert config.max_splits == 1
    assert config.tick_interval == 0.5
    assert config.observe_attempts == 5
    assert config.error_cooldown == 5.0
    assert config.max_bind_failures == 3


def test_phase_intervals():
    config = BotConfig(tick_interval=0.4)
    assert config.interval_for_waiting() == 0.2
    assert config.interval_for_error() == 0.8


@pytest.mark.parametrize(
    "overrides",
    [
        {"tick_interval": 0},
        {"frame_interval": -1.0},
        {"observe_interval": -0.1},
        {"error_cooldown": -5.0},
        {"observe_attempts": 0},
        {"max_wait_cycles": 0},
        {"bind_attempts": 0},
        {"max_splits": -1},
    ],
)
def test_invalid_values(overrides):
    with pytest.raises(ConfigError):
        BotConfig(**overrides)


def test_zero_delays_are_allowed():
    config = BotConfig(split_settle_delay=0, round_settle_delay=0, error_cooldown=0)
    assert config.round_settle_delay == 0


def test_round_trip_through_dict():
    config = BotConfig(auto_start=False, max_splits=0, tick_interval=0.25)
    restored = BotConfig.from_dict(config.to_dict())
    assert restored.to_dict() == config.to_dict()


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigError, match="tick_rate"):
        BotConfig.from_dict({"tick_rate": 1.0})


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        BotConfig(max_end_cycles=0)
