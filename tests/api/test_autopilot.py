"""
Tests for the Autopilot facade, run against the simulated table on virtual time.
"""

import asyncio

import pytest

from cardpilot.adapters import DummyAdapter
from cardpilot.api import Autopilot
from cardpilot.blackjack.decision_logger import decision_logger
from cardpilot.config import BotConfig
from cardpilot.events import BotEventType
from cardpilot.host import SimulatedTable


@pytest.fixture(autouse=True)
def clean_decision_logger():
    decision_logger.current_round_decisions.clear()
    decision_logger.decision_history.clear()
    yield
    decision_logger.current_round_decisions.clear()
    decision_logger.decision_history.clear()


async def play_rounds(pilot, rounds, timeout=30):
    done = asyncio.Event()
    ended = []

    def on_round_ended(data):
        ended.append(data)
        if len(ended) >= rounds:
            done.set()

    pilot.on(BotEventType.ROUND_ENDED, on_round_ended)
    assert await pilot.start()
    await asyncio.wait_for(done.wait(), timeout=timeout)
    await pilot.stop()
    return ended


@pytest.mark.asyncio
async def test_plays_rounds_on_a_seeded_table(fake_pacer):
    table = SimulatedTable(seed=11)
    adapter = DummyAdapter()
    pilot = Autopilot(table, adapter, BotConfig(), pacer=fake_pacer)

    ended = await play_rounds(pilot, 5)

    assert len(ended) >= 5
    assert not pilot.running
    report = pilot.report()
    assert report["rounds_played"] >= 5
    assert report["stop_reason"] == "stopped by user"
    assert report["decisions"]["total_decisions"] >= 1
    assert table.rounds_dealt >= 5
    assert adapter.stop_reasons == ["stopped by user"]
    assert adapter.get_events_by_type(BotEventType.BOT_STARTED)


@pytest.mark.asyncio
async def test_plays_through_slow_card_reveals(fake_pacer):
    table = SimulatedTable(seed=23, reveal_lag=2)
    pilot = Autopilot(table, config=BotConfig(), pacer=fake_pacer)

    ended = await play_rounds(pilot, 3)

    assert all(hand["outcome"] != "unknown" for data in ended for hand in data["hands"])


@pytest.mark.asyncio
async def test_bankroll_matches_the_table(fake_pacer):
    table = SimulatedTable(seed=7)
    pilot = Autopilot(table, config=BotConfig(), pacer=fake_pacer)

    ended = await play_rounds(pilot, 4)

    deltas = [data["delta"] for data in ended[:4]]
    assert all(delta is not None for delta in deltas)
    assert pilot.report()["rounds_played"] >= 4


@pytest.mark.asyncio
async def test_start_fails_when_the_host_cannot_be_bound(fake_pacer):
    fake_pacer.active = False
    table = SimulatedTable(seed=1, bind_failures=10)
    adapter = DummyAdapter()
    pilot = Autopilot(table, adapter, BotConfig(bind_attempts=2), pacer=fake_pacer)

    assert not await pilot.start()

    assert not pilot.running
    assert pilot.report()["stop_reason"] == "canvas not found: simulated table"
    assert adapter.stop_reasons == ["canvas not found: simulated table"]


@pytest.mark.asyncio
async def test_string_event_names(fake_pacer):
    pilot = Autopilot(SimulatedTable(seed=3), pacer=fake_pacer)
    received = []

    unsubscribe = pilot.on("round_started", received.append)
    pilot.event_bus.emit(BotEventType.ROUND_STARTED, {"round": 1})
    unsubscribe()
    pilot.event_bus.emit(BotEventType.ROUND_STARTED, {"round": 2})

    assert received == [{"round": 1}]
    assert BotEventType.ROUND_STARTED in pilot.event_handlers


@pytest.mark.asyncio
async def test_stop_removes_handlers_from_the_shared_bus(fake_pacer):
    first = Autopilot(SimulatedTable(seed=5), pacer=fake_pacer)
    received = []
    first.on(BotEventType.ROUND_ENDED, received.append)
    stopped = []
    first.on(BotEventType.BOT_STOPPED, stopped.append)

    await play_rounds(first, 1)

    assert first.event_handlers == {}
    assert [data["reason"] for data in stopped] == ["stopped by user"]
    seen = len(received)

    # A later pilot shares the bus but not the earlier handlers
    second = Autopilot(SimulatedTable(seed=6), pacer=fake_pacer)
    assert second.event_bus is first.event_bus
    second.event_bus.emit(BotEventType.ROUND_ENDED, {"round": 99})
    assert len(received) == seen
