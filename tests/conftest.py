"""
Pytest configuration for the test suite.

This module contains fixtures shared across the tests: a fresh event bus per
test, a pacer running on virtual time, and a scripted game host whose table
can be set up and changed by the test.
"""

import asyncio
from collections import defaultdict, deque

import pytest

from cardpilot.adapters import DummyAdapter
from cardpilot.blackjack.action import Action
from cardpilot.config import BotConfig
from cardpilot.engine.automaton import TurnAutomaton
from cardpilot.engine.pacing import Pacer
from cardpilot.events import EventBus
from cardpilot.host.base import GameHost, Slot


class FakePacer(Pacer):
    """Pacer on a virtual clock: waits return at once and advance the clock."""

    def __init__(self):
        self.clock = 0.0
        self.waits = []
        super().__init__(sleep=self._advance, now=lambda: self.clock)
        self.active = True

    async def _advance(self, seconds):
        self.waits.append(seconds)
        self.clock += seconds
        await asyncio.sleep(0)


class ScriptedHost(GameHost):
    """
    A game host driven entirely by the test.

    `slots` holds what each slot currently shows; `read_scripts` queues reads
    that are returned before falling back to `slots`. `on_invoke` maps an
    action to a callback run when the action is accepted, so a test can make
    the table react.
    """

    def __init__(self):
        self.slots = {slot: [] for slot in Slot}
        self.read_scripts = {slot: deque() for slot in Slot}
        self.expected = {}
        self.can_start = False
        self.insurance = False
        self.legal = set()
        self.balance_value = 1000.0
        self.modal = False
        self.bind_error = None
        self.bind_calls = 0
        self.invoked = []
        self.rejected = set()
        self.on_invoke = {}
        self.reads = defaultdict(int)

    def set_table(self, hand=None, dealer=None, second_hand=None):
        if hand is not None:
            self.slots[Slot.HAND_0] = list(hand)
        if dealer is not None:
            self.slots[Slot.DEALER] = list(dealer)
        if second_hand is not None:
            self.slots[Slot.HAND_1] = list(second_hand)

    async def bind(self):
        self.bind_calls += 1
        if self.bind_error is not None:
            raise self.bind_error

    async def can_start_new_round(self):
        return self.can_start

    async def insurance_offered(self):
        return self.insurance

    async def is_action_legal(self, action):
        return action in self.legal

    async def balance(self):
        return self.balance_value

    async def read_cards(self, slot):
        self.reads[slot] += 1
        if self.read_scripts[slot]:
            return list(self.read_scripts[slot].popleft())
        return list(self.slots[slot])

    async def expected_card_count(self, slot):
        if slot in self.expected:
            return self.expected[slot]
        return len(self.slots[slot])

    async def modal_present(self):
        return self.modal

    async def _perform(self, action):
        self.invoked.append(action)
        if action in self.rejected:
            return False
        callback = self.on_invoke.get(action)
        if callback is not None:
            callback(self)
        return True

    async def deal(self):
        return await self._perform(Action.DEAL)

    async def hit(self):
        return await self._perform(Action.HIT)

    async def stand(self):
        return await self._perform(Action.STAND)

    async def double(self):
        return await self._perform(Action.DOUBLE)

    async def spilt(self):
        return await self._perform(Action.SPLIT)

    async def decline_insurance(self):
        return await self._perform(Action.DECLINE_INSURANCE)


# Reset event bus before each test
@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


@pytest.fixture
def fake_pacer():
    return FakePacer()


@pytest.fixture
def host():
    return ScriptedHost()


@pytest.fixture
def adapter():
    return DummyAdapter()


@pytest.fixture
def config():
    return BotConfig()


@pytest.fixture
def automaton(host, adapter, config, fake_pacer):
    return TurnAutomaton(host, adapter, config, fake_pacer)
