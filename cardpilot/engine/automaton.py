"""
The turn automaton: one step of the bot per scheduler tick.

`TurnAutomaton.step` takes the current `BotState`, handles exactly the phase
it is in, and returns the next state. All reads go through the stabilized
observer, all decisions through the strategy tables, and all actions through
the host's action executor.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from cardpilot.adapters.base import PlatformAdapter
from cardpilot.blackjack.action import Action
from cardpilot.blackjack.decision_logger import DecisionContext, decision_logger
from cardpilot.blackjack.hand import describe, evaluate
from cardpilot.blackjack.outcome import judge_hand
from cardpilot.blackjack.strategy import decide, legalize
from cardpilot.common.card import Card
from cardpilot.config import BotConfig
from cardpilot.engine.observer import StabilizedObserver
from cardpilot.engine.pacing import Pacer
from cardpilot.errors import ActionUnavailableError
from cardpilot.events import BotEventType, EventBus
from cardpilot.host.base import GameHost, Signals, Slot
from cardpilot.state.models import BotPhase, BotState, PendingAction
from cardpilot.state.transitions import StateTransitionEngine

logger = logging.getLogger(__name__)

_PENDING_FOR_ACTION = {
    Action.HIT: PendingAction.HIT,
    Action.STAND: PendingAction.STAND,
    Action.DOUBLE: PendingAction.DOUBLE,
}

_PHASE_STATUS = {
    BotPhase.IDLE: "Idle: waiting for a new round",
    BotPhase.ROUND_INITIALIZING: "Dealing",
    BotPhase.PLAYER_TURN: "Player turn",
    BotPhase.WAITING_FOR_ACTION_RESULT: "Waiting for the action to resolve",
    BotPhase.ROUND_ENDING: "Round ending",
    BotPhase.ERROR: "Error",
}


def _is_natural(cards: Sequence[Card]) -> bool:
    return len(cards) == 2 and evaluate(cards).total == 21


def _longest(live: Sequence[Card], recorded: Sequence[Card]) -> Tuple[Card, ...]:
    # Hands only grow within a round, so the longer read is the later one
    return tuple(live) if len(live) >= len(recorded) else tuple(recorded)


class TurnAutomaton:
    """
    State machine driving one player's turns.

    Phases: IDLE -> ROUND_INITIALIZING -> PLAYER_TURN ->
    WAITING_FOR_ACTION_RESULT -> ROUND_ENDING -> IDLE, plus ERROR, which
    always cools down back to IDLE.
    """

    def __init__(
        self,
        host: GameHost,
        adapter: PlatformAdapter,
        config: Optional[BotConfig] = None,
        pacer: Optional[Pacer] = None,
        event_bus=None,
    ):
        self.host = host
        self.adapter = adapter
        self.config = config or BotConfig()
        self.pacer = pacer or Pacer()
        self.event_bus = event_bus or EventBus.get_instance()
        self.observer = StabilizedObserver(
            host,
            self.pacer,
            attempts=self.config.observe_attempts,
            interval=self.config.observe_interval,
            event_bus=self.event_bus,
        )
        self._handlers = {
            BotPhase.IDLE: self._idle,
            BotPhase.ROUND_INITIALIZING: self._round_initializing,
            BotPhase.PLAYER_TURN: self._player_turn,
            BotPhase.WAITING_FOR_ACTION_RESULT: self._waiting_for_result,
            BotPhase.ROUND_ENDING: self._round_ending,
            BotPhase.ERROR: self._error,
        }

    async def step(self, state: BotState) -> BotState:
        """
        Handle the current phase once.

        Args:
            state: State returned by the previous step

        Returns:
            The next state
        """
        new_state = await self._handlers[state.phase](state)

        if new_state.phase is not state.phase:
            decision_logger.log_phase_transition(state.phase.name, new_state.phase.name)
            await self._publish(
                BotEventType.STATE_CHANGED,
                {
                    "from": state.phase.name,
                    "to": new_state.phase.name,
                    "round": new_state.round.round_number,
                },
            )
            await self._status(_PHASE_STATUS[new_state.phase])

        return new_state

    # Plumbing

    async def _status(self, text: str) -> None:
        await self.adapter.render_status(text)

    async def _publish(self, event_type: BotEventType, data: Dict[str, Any]) -> None:
        self.event_bus.emit(event_type, data)
        await self.adapter.notify_event(event_type, data)

    async def _observe_hand(self, index: int) -> Tuple[Card, ...]:
        return await self.observer.observe(Slot.for_hand(index))

    async def _observe_dealer(self) -> Tuple[Card, ...]:
        return await self.observer.observe(
            Slot.DEALER, max_attempts=self.config.dealer_observe_attempts
        )

    async def _issue(self, action: Action) -> bool:
        """
        Invoke an action on the host.

        Returns:
            True if the host accepted it; False if it was rejected, missing,
            or the bot was stopped meanwhile
        """
        if not self.pacer.active:
            logger.info(f"Bot inactive; not issuing {action.value}")
            return False

        try:
            accepted = await self.host.invoke(action)
        except ActionUnavailableError as e:
            logger.warning(str(e))
            accepted = False

        if accepted:
            logger.info(f"Issued {action.value}")
            await self._publish(BotEventType.ACTION_ISSUED, {"action": action.value})
        else:
            logger.warning(f"Host rejected {action.value}")
            await self._publish(BotEventType.ACTION_REJECTED, {"action": action.value})
        return accepted

    # Phase handlers

    async def _idle(self, state: BotState) -> BotState:
        signals = await self.host.snapshot_signals()

        if signals.can_start_new_round and (
            self.config.auto_start or state.round_just_ended
        ):
            new_state = StateTransitionEngine.begin_round(state, balance=signals.balance)
            round_number = new_state.round.round_number
            decision_logger.log_round_start(round_number, signals.balance)
            await self._publish(
                BotEventType.ROUND_STARTED,
                {"round": round_number, "balance": signals.balance},
            )
            return new_state

        if not signals.can_start_new_round and signals.any_action_available:
            cards = await self.observer.observe(Slot.HAND_0, max_attempts=1)
            if len(cards) >= 2:
                logger.warning(
                    f"Hand {describe(cards)} already in play while idle; resuming"
                )
                new_state = StateTransitionEngine.begin_round(
                    state, balance=signals.balance, recovered=True
                )
                new_state = StateTransitionEngine.record_hand(new_state, 0, cards)
                decision_logger.log_round_start(
                    new_state.round.round_number, signals.balance
                )
                await self._publish(
                    BotEventType.ROUND_STARTED,
                    {
                        "round": new_state.round.round_number,
                        "balance": signals.balance,
                        "recovered": True,
                    },
                )
                return new_state

        return StateTransitionEngine.reset_round(state)

    async def _round_initializing(self, state: BotState) -> BotState:
        if not state.round.deal_issued:
            if await self._issue(Action.DEAL):
                state = StateTransitionEngine.mark_dealt(state)
                await self._status(f"Round {state.round.round_number}: deal issued")
            else:
                return self._count_init_cycle(state)

        cards = await self._observe_hand(0)
        signals = await self.host.snapshot_signals()
        if len(cards) >= 2 or signals.any_action_available:
            state = StateTransitionEngine.record_hand(state, 0, cards)
            return StateTransitionEngine.change_phase(state, BotPhase.PLAYER_TURN)

        return self._count_init_cycle(state)

    def _count_init_cycle(self, state: BotState) -> BotState:
        state = StateTransitionEngine.tick_init(state)
        if state.round.init_cycles >= self.config.max_init_cycles:
            logger.warning(
                f"Deal did not materialize after {state.round.init_cycles} cycles; "
                f"returning to idle"
            )
            return StateTransitionEngine.reset_round(state)
        return state

    async def _player_turn(self, state: BotState) -> BotState:
        if state.turn.locked:
            return state

        index = state.round.active_hand_index
        cards = await self._observe_hand(index)
        signals = await self.host.snapshot_signals()

        if not cards:
            if signals.can_start_new_round:
                logger.info("Hand is gone and a new round can start; round already over")
                return StateTransitionEngine.abandon_round(state)
            return state

        state = StateTransitionEngine.record_hand(state, index, cards)
        state = StateTransitionEngine.record_dealer(state, await self._observe_dealer())
        dealer = state.round.dealer_cards
        is_split = state.round.is_split

        if not is_split and len(cards) == 2 and _is_natural(dealer):
            await self._status("Dealer blackjack")
            return StateTransitionEngine.begin_round_ending(state)

        live_upcard = dealer[0] if dealer else None
        if (
            not is_split
            and live_upcard is not None
            and live_upcard.is_ace
            and signals.insurance_offered
        ):
            if await self._issue(Action.DECLINE_INSURANCE):
                await self._status("Insurance offered: declining")
                state = StateTransitionEngine.count_action(state)
                return StateTransitionEngine.lock_for(
                    state, PendingAction.DECLINE_INSURANCE, cards
                )
            return state

        evaluation = evaluate(cards)
        if evaluation.total >= 21:
            pending = (
                PendingAction.BUST if evaluation.total > 21 else PendingAction.BLACKJACK
            )
            await self._status(f"Hand {index + 1}: {describe(cards)} -> {pending.value}")
            return StateTransitionEngine.lock_for(state, pending, cards)

        if len(cards) < 2:
            await self._status(f"Hand {index + 1}: waiting for the second card")
            return state

        upcard = state.round.split_upcard if is_split else live_upcard
        if upcard is None:
            await self._status("Waiting for the dealer up-card")
            return state

        if not signals.any_action_available:
            if signals.can_start_new_round:
                return StateTransitionEngine.begin_round_ending(state)
            return state

        return await self._decide_and_act(state, cards, upcard, signals)

    async def _decide_and_act(
        self,
        state: BotState,
        cards: Tuple[Card, ...],
        upcard: Card,
        signals: Signals,
    ) -> BotState:
        index = state.round.active_hand_index
        split_allowed = (
            not state.round.is_split
            and state.round.split_count < self.config.max_splits
        )

        recommended = decide(cards, upcard.value)
        action, deviation = legalize(
            recommended, cards, upcard.value, signals.legal_actions, split_allowed
        )

        evaluation = evaluate(cards)
        context = DecisionContext(
            timestamp=datetime.now(),
            round_number=state.round.round_number,
            hand_index=index,
            hand_cards=list(cards),
            hand_value=evaluation.total,
            is_soft=evaluation.is_soft,
            is_pair=evaluation.is_pair,
            is_split_hand=state.round.is_split,
            dealer_upcard=upcard,
            legal_actions=sorted(signals.legal_actions, key=lambda a: a.value),
            recommended_action=recommended,
            chosen_action=action,
            deviation=deviation.reason if deviation else None,
        )
        decision_logger.log_decision_point(context)
        await self._publish(BotEventType.DECISION, context.to_dict())

        if deviation:
            decision_logger.log_deviation(
                deviation.recommended,
                deviation.substituted,
                deviation.reason,
                deviation.critical,
            )
            await self._publish(
                BotEventType.STRATEGY_DEVIATION,
                {
                    "recommended": deviation.recommended.value,
                    "substituted": deviation.substituted.value,
                    "reason": deviation.reason,
                    "critical": deviation.critical,
                },
            )

        await self._status(
            f"Hand {index + 1}: {describe(cards)} vs {upcard} -> {action.value}"
        )

        if not await self._issue(action):
            return state

        state = StateTransitionEngine.count_action(state)
        if action is Action.SPLIT:
            aces = cards[0].is_ace
            state = StateTransitionEngine.start_split(state, upcard, aces=aces)
            pending = PendingAction.SPLIT_ACES if aces else PendingAction.SPLIT
            return StateTransitionEngine.lock_for(state, pending, cards)

        return StateTransitionEngine.lock_for(state, _PENDING_FOR_ACTION[action], cards)

    async def _waiting_for_result(self, state: BotState) -> BotState:
        state = StateTransitionEngine.tick_wait(state)
        index = state.round.active_hand_index
        pending = state.turn.pending

        cards = await self._observe_hand(index)
        if cards:
            state = StateTransitionEngine.record_hand(state, index, cards)
        state = StateTransitionEngine.record_dealer(state, await self._observe_dealer())

        if _is_natural(state.round.dealer_cards):
            await self._status("Dealer blackjack")
            return StateTransitionEngine.begin_round_ending(state)

        signals = await self.host.snapshot_signals()

        if pending is PendingAction.DECLINE_INSURANCE:
            if not signals.insurance_offered:
                return StateTransitionEngine.unlock(state)

        elif pending is PendingAction.SPLIT:
            second_hand = await self.host.expected_card_count(Slot.HAND_1)
            if second_hand > 0 and len(cards) == 2:
                await self._status("Split: playing hand 1")
                return StateTransitionEngine.enter_split_mode(state)

        elif pending is PendingAction.SPLIT_ACES:
            if not signals.any_action_available:
                return StateTransitionEngine.begin_round_ending(state)

        elif pending is PendingAction.HIT:
            if len(cards) > len(state.turn.pre_action_cards):
                if evaluate(cards).total >= 21:
                    return await self._end_turn(state)
                return StateTransitionEngine.unlock(state)

        elif pending is not None and pending.ends_hand:
            first_split_hand = (
                state.round.is_split
                and index == 0
                and not state.round.first_hand_resolved
            )
            if first_split_hand or not signals.any_action_available:
                return await self._end_turn(state)

        if state.turn.wait_cycles >= self.config.max_wait_cycles:
            logger.warning(
                f"{pending.value if pending else 'action'} did not resolve after "
                f"{state.turn.wait_cycles} cycles; ending the turn"
            )
            if pending is PendingAction.SPLIT_ACES:
                return StateTransitionEngine.begin_round_ending(state)
            return await self._end_turn(state)

        return state

    async def _end_turn(self, state: BotState) -> BotState:
        if state.round.is_split and not state.round.first_hand_resolved:
            await self._status("Hand 1 done: moving to hand 2")
            await self.pacer.wait(self.config.split_settle_delay)
            return StateTransitionEngine.advance_to_second_hand(state)
        return StateTransitionEngine.begin_round_ending(state)

    async def _round_ending(self, state: BotState) -> BotState:
        signals = await self.host.snapshot_signals()
        if not signals.can_start_new_round:
            state = StateTransitionEngine.tick_end(state)
            if state.round.end_cycles < self.config.max_end_cycles:
                return state
            logger.warning(
                f"Round {state.round.round_number} never reported completion; "
                f"judging the hands on the table"
            )

        dealer = _longest(await self._observe_dealer(), state.round.dealer_cards)
        results = []
        for index in state.round.played_hand_indexes:
            live = await self._observe_hand(index)
            cards = _longest(live, state.round.hands[index])
            results.append(
                judge_hand(index, cards, dealer, doubled=index in state.round.doubled)
            )

        delta = None
        if signals.balance is not None and state.round.starting_balance is not None:
            delta = signals.balance - state.round.starting_balance

        round_number = state.round.round_number
        decision_logger.log_round_end(
            round_number,
            {
                f"hand {result.hand_index + 1}": (
                    f"{describe(result.cards)} vs dealer {result.dealer_total}: "
                    f"{result.outcome.value}"
                )
                for result in results
            },
        )

        for result in results:
            await self._publish(BotEventType.HAND_RESULT, result.to_dict())
        await self._publish(
            BotEventType.ROUND_ENDED,
            {
                "round": round_number,
                "hands": [result.to_dict() for result in results],
                "dealer": [str(card) for card in dealer],
                "dealer_total": evaluate(dealer).total,
                "delta": delta,
                "recovered": state.round.recovered,
            },
        )
        if delta is not None:
            await self._publish(
                BotEventType.BANKROLL_UPDATED,
                {"balance": signals.balance, "delta": delta},
            )

        outcomes = ", ".join(result.outcome.value for result in results)
        await self._status(f"Round {round_number} over: {outcomes}")

        state = StateTransitionEngine.finish_round(state, results, delta)
        await self.pacer.wait(self.config.round_settle_delay)
        return state

    async def _error(self, state: BotState) -> BotState:
        await self._status(f"Error: cooling down for {self.config.error_cooldown}s")
        await self.pacer.wait(self.config.error_cooldown)
        return StateTransitionEngine.reset_round(state)
