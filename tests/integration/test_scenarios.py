"""
End-to-end rounds: the automaton stepped through whole rounds against a
scripted host and against the simulated table with a stacked shoe.
"""

import pytest

from cardpilot.adapters import DummyAdapter
from cardpilot.blackjack.action import Action
from cardpilot.common.card import Card
from cardpilot.config import BotConfig
from cardpilot.engine.automaton import TurnAutomaton
from cardpilot.events import BotEventType
from cardpilot.host import SimulatedTable
from cardpilot.state import BotPhase, BotState

pytestmark = pytest.mark.integration


def shoe(*codes):
    return [Card.parse(code) for code in codes]


async def play_one_round(automaton, state=None, max_steps=60):
    """Step until a round has been judged; return the state and the phases seen."""
    state = state or BotState()
    played = state.session.rounds_played
    phases = [state.phase]
    for _ in range(max_steps):
        state = await automaton.step(state)
        if state.phase is not phases[-1]:
            phases.append(state.phase)
        if state.session.rounds_played > played:
            return state, phases
    raise AssertionError(f"Round did not finish; phases seen: {phases}")


@pytest.mark.asyncio
async def test_stand_round_on_scripted_host(automaton, host, adapter):
    def deal(h):
        h.can_start = False
        h.balance_value -= 10
        h.set_table(hand=["9H", "7S"], dealer=["6H"])
        h.legal = {Action.HIT, Action.STAND, Action.DOUBLE}

    def stand(h):
        h.legal = set()
        h.set_table(dealer=["6H", "10C", "9S"])
        h.balance_value += 20
        h.can_start = True

    host.can_start = True
    host.on_invoke[Action.DEAL] = deal
    host.on_invoke[Action.STAND] = stand

    state, phases = await play_one_round(automaton)

    assert phases == [
        BotPhase.IDLE,
        BotPhase.ROUND_INITIALIZING,
        BotPhase.PLAYER_TURN,
        BotPhase.WAITING_FOR_ACTION_RESULT,
        BotPhase.ROUND_ENDING,
        BotPhase.IDLE,
    ]
    assert host.invoked == [Action.DEAL, Action.STAND]
    assert state.round_just_ended
    assert state.session.wins == 1
    assert state.session.total_actions == 2

    ended = adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]
    assert ended["hands"][0]["outcome"] == "dealer_bust_win"
    assert ended["delta"] == 10.0
    assert ended["hands"][0]["doubled"] is False
    assert ended["recovered"] is False


@pytest.mark.asyncio
async def test_round_picked_up_mid_hand_is_reported_as_recovered(automaton, host, adapter):
    def stand(h):
        h.legal = set()
        h.set_table(dealer=["6H", "10C", "9S"])
        h.can_start = True

    host.legal = {Action.HIT, Action.STAND}
    host.set_table(hand=["9H", "7S"], dealer=["6H"])
    host.on_invoke[Action.STAND] = stand

    state, _ = await play_one_round(automaton)

    assert host.invoked == [Action.STAND]
    ended = adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]
    assert ended["recovered"] is True
    assert ended["hands"][0]["outcome"] == "dealer_bust_win"


@pytest.mark.asyncio
async def test_split_round_keeps_the_captured_upcard(automaton, host, adapter):
    stands = []

    def deal(h):
        h.can_start = False
        h.balance_value -= 10
        h.set_table(hand=["8H", "8S"], dealer=["6H"])
        h.legal = {Action.HIT, Action.STAND, Action.DOUBLE, Action.SPLIT}

    def split(h):
        h.balance_value -= 10
        # The dealer area is misread mid-animation from here on
        h.set_table(hand=["8H", "4C"], second_hand=["8S"], dealer=["10C"])
        h.legal = {Action.HIT, Action.STAND, Action.DOUBLE}

    def stand(h):
        stands.append(len(stands))
        if len(stands) == 1:
            h.set_table(second_hand=["8S", "10D"])
        else:
            h.legal = set()
            h.set_table(dealer=["6H", "10C", "7D"])
            h.balance_value += 40
            h.can_start = True

    host.can_start = True
    host.on_invoke[Action.DEAL] = deal
    host.on_invoke[Action.SPLIT] = split
    host.on_invoke[Action.STAND] = stand

    state, _ = await play_one_round(automaton)

    assert host.invoked == [Action.DEAL, Action.SPLIT, Action.STAND, Action.STAND]
    decisions = adapter.get_events_by_type(BotEventType.DECISION)
    assert [d["chosen"] for d in decisions] == ["split", "stand", "stand"]
    assert [d["dealer_up"] for d in decisions] == ["6H", "6H", "6H"]
    assert [d["hand_index"] for d in decisions] == [0, 0, 1]

    ended = adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]
    assert [hand["cards"] for hand in ended["hands"]] == [["8H", "4C"], ["8S", "10D"]]
    assert [hand["outcome"] for hand in ended["hands"]] == [
        "dealer_bust_win",
        "dealer_bust_win",
    ]
    assert ended["delta"] == 20.0
    assert state.session.wins == 2


@pytest.fixture
def table_automaton(adapter, fake_pacer):
    def build(table):
        return TurnAutomaton(table, adapter, BotConfig(), fake_pacer)

    return build


@pytest.mark.asyncio
async def test_simulated_stand_round(table_automaton, adapter):
    table = SimulatedTable(shoe=shoe("9H", "6H", "7S", "10C", "9S"))

    state, _ = await play_one_round(table_automaton(table))

    assert table.invoked == ["deal", "stand"]
    ended = adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]
    assert ended["hands"][0]["outcome"] == "dealer_bust_win"
    assert ended["dealer"] == ["6H", "10C", "9S"]
    assert ended["delta"] == 10.0
    assert state.session.net_change == 10.0


@pytest.mark.asyncio
async def test_simulated_split_round(table_automaton, adapter):
    table = SimulatedTable(shoe=shoe("8H", "6H", "8S", "10C", "4C", "10D", "7D"))

    state, _ = await play_one_round(table_automaton(table))

    assert table.invoked == ["deal", "spilt", "stand", "stand"]
    ended = adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]
    assert [hand["outcome"] for hand in ended["hands"]] == [
        "dealer_bust_win",
        "dealer_bust_win",
    ]
    assert ended["delta"] == 20.0
    assert state.session.wins == 2


@pytest.mark.asyncio
async def test_simulated_ace_split_round(table_automaton, adapter):
    table = SimulatedTable(shoe=shoe("AH", "6C", "AD", "10S", "9C", "KD", "5H"))

    state, _ = await play_one_round(table_automaton(table))

    assert table.invoked == ["deal", "spilt"]
    ended = adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]
    assert [hand["outcome"] for hand in ended["hands"]] == ["loss", "push"]
    assert ended["delta"] == -10.0
    # A split 21 is not counted as a blackjack
    assert state.session.blackjacks == 0


@pytest.mark.asyncio
async def test_simulated_dealer_blackjack_round(table_automaton, adapter):
    table = SimulatedTable(shoe=shoe("9H", "10C", "7S", "AH"))

    state, _ = await play_one_round(table_automaton(table))

    assert table.invoked == ["deal"]
    assert state.session.losses == 1
    assert adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]["delta"] == -10.0


@pytest.mark.asyncio
async def test_simulated_insurance_round(table_automaton, adapter):
    table = SimulatedTable(shoe=shoe("10H", "AS", "10D", "7C"))

    state, _ = await play_one_round(table_automaton(table))

    # 20 stands against a soft 18
    assert table.invoked == ["deal", "decline_insurance", "stand"]
    assert state.session.wins == 1
    assert adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]["delta"] == 10.0


@pytest.mark.asyncio
async def test_simulated_double_round(table_automaton, adapter):
    table = SimulatedTable(shoe=shoe("5H", "6C", "6S", "10S", "KD", "7H"))

    state, _ = await play_one_round(table_automaton(table))

    assert table.invoked == ["deal", "double"]
    ended = adapter.get_events_by_type(BotEventType.ROUND_ENDED)[0]
    assert ended["delta"] == 20.0
    assert ended["hands"][0]["doubled"] is True


@pytest.mark.asyncio
async def test_consecutive_rounds_with_slow_reveals(adapter, fake_pacer):
    table = SimulatedTable(seed=99, reveal_lag=1)
    automaton = TurnAutomaton(table, adapter, BotConfig(), fake_pacer)

    state = BotState()
    for _ in range(3):
        state, _ = await play_one_round(automaton, state, max_steps=200)

    assert state.session.rounds_played == 3
    assert table.rounds_dealt == 3
    assert len(adapter.get_events_by_type(BotEventType.ROUND_ENDED)) == 3


@pytest.mark.asyncio
async def test_round_without_auto_start_continues_after_a_round(adapter, fake_pacer):
    table = SimulatedTable(seed=4)
    automaton = TurnAutomaton(table, adapter, BotConfig(auto_start=False), fake_pacer)

    idle = await automaton.step(BotState())
    assert idle.phase is BotPhase.IDLE
    assert table.invoked == []

    # A round that just ended lets the next one start
    state = await automaton.step(BotState(round_just_ended=True))
    assert state.phase is BotPhase.ROUND_INITIALIZING
    state, _ = await play_one_round(automaton, state)
    state = await automaton.step(state)
    assert state.phase is BotPhase.ROUND_INITIALIZING
