"""
Tests for the event bus the bot publishes to.
"""

import logging
from unittest.mock import MagicMock

from cardpilot.events import BotEventType, EventBus, EventEmitter, EventPriority


def test_subscribe_and_unsubscribe():
    emitter = EventEmitter()
    callback = MagicMock()

    unsubscribe = emitter.on(BotEventType.DECISION, callback)
    emitter.emit(BotEventType.DECISION, {"chosen": "hit"})
    unsubscribe()
    emitter.emit(BotEventType.DECISION, {"chosen": "stand"})

    callback.assert_called_once_with({"chosen": "hit"})


def test_enum_and_name_are_the_same_event():
    emitter = EventEmitter()
    by_enum = MagicMock()
    by_name = MagicMock()

    emitter.on(BotEventType.ROUND_ENDED, by_enum)
    emitter.on("ROUND_ENDED", by_name)

    emitter.emit(BotEventType.ROUND_ENDED, {"round": 1})
    emitter.emit("ROUND_ENDED", {"round": 2})

    assert by_enum.call_count == 2
    assert by_name.call_count == 2


def test_events_do_not_cross():
    emitter = EventEmitter()
    started = MagicMock()
    emitter.on(BotEventType.ROUND_STARTED, started)

    emitter.emit(BotEventType.ROUND_ENDED, {})

    started.assert_not_called()


def test_priority_then_subscription_order():
    emitter = EventEmitter()
    calls = []

    emitter.on("tick", lambda data: calls.append("normal 1"))
    emitter.on("tick", lambda data: calls.append("low"), EventPriority.LOW)
    emitter.on("tick", lambda data: calls.append("critical"), EventPriority.CRITICAL)
    emitter.on("tick", lambda data: calls.append("normal 2"))
    emitter.on("tick", lambda data: calls.append("high"), EventPriority.HIGH)

    emitter.emit("tick", {})

    assert calls == ["critical", "high", "normal 1", "normal 2", "low"]


def test_unsubscribe_removes_only_its_own_subscription():
    emitter = EventEmitter()
    callback = MagicMock()

    first = emitter.on(BotEventType.ERROR, callback)
    emitter.on(BotEventType.ERROR, callback)
    first()
    first()
    emitter.emit(BotEventType.ERROR, {})

    callback.assert_called_once()


def test_handler_may_unsubscribe_while_handling():
    emitter = EventEmitter()
    seen = []
    unsubscribe = None

    def handler(data):
        seen.append(data["n"])
        unsubscribe()

    unsubscribe = emitter.on("tick", handler)
    emitter.emit("tick", {"n": 1})
    emitter.emit("tick", {"n": 2})

    assert seen == [1]


def test_failing_handler_is_logged_and_the_rest_still_run(caplog):
    emitter = EventEmitter()

    def broken(data):
        raise ValueError("handler broke")

    after = MagicMock()
    emitter.on(BotEventType.HAND_RESULT, broken, EventPriority.HIGH)
    emitter.on(BotEventType.HAND_RESULT, after)

    with caplog.at_level(logging.ERROR, logger="cardpilot.events"):
        emitter.emit(BotEventType.HAND_RESULT, {})

    after.assert_called_once()
    assert any("handler broke" in record.getMessage() for record in caplog.records)
    assert any("HAND_RESULT" in record.getMessage() for record in caplog.records)


def test_event_bus_is_shared():
    bus = EventBus.get_instance()
    assert bus is EventBus.get_instance()
    assert isinstance(bus, EventEmitter)
