"""
State transition functions for the bot.

This module provides pure functions for moving the automaton between states,
without modifying the original state objects.
"""

from dataclasses import replace
from typing import Optional, Sequence

from cardpilot.blackjack.outcome import HandResult
from cardpilot.common.card import Card
from cardpilot.state.models import (
    BotPhase,
    BotState,
    PendingAction,
    RoundState,
    TurnState,
)


class StateTransitionEngine:
    """
    Pure functions for state transitions.

    This class contains static methods that implement the automaton's state
    transitions. Each method takes a state and returns a new state, without
    modifying the original.
    """

    @staticmethod
    def change_phase(state: BotState, phase: BotPhase) -> BotState:
        """
        Move to a new phase, clearing the wait counter.

        Args:
            state: Current bot state
            phase: Phase to enter

        Returns:
            New bot state in the requested phase
        """
        return replace(state, turn=replace(state.turn, phase=phase, wait_cycles=0))

    @staticmethod
    def reset_round(state: BotState) -> BotState:
        """
        Discard all round and turn bookkeeping and return to IDLE.

        Session counters and the round-just-ended flag are kept.
        """
        return replace(state, turn=TurnState(), round=RoundState())

    @staticmethod
    def begin_round(
        state: BotState, balance: Optional[float] = None, recovered: bool = False
    ) -> BotState:
        """
        Create fresh round state for the next round.

        Args:
            state: Current bot state
            balance: Host balance at the start of the round
            recovered: True when picking up a hand already in play

        Returns:
            New bot state in ROUND_INITIALIZING, or PLAYER_TURN when recovering
        """
        new_round = RoundState(
            round_number=state.session.rounds_played + 1,
            starting_balance=balance,
            deal_issued=recovered,
            recovered=recovered,
        )
        phase = BotPhase.PLAYER_TURN if recovered else BotPhase.ROUND_INITIALIZING
        return replace(
            state,
            turn=TurnState(phase=phase),
            round=new_round,
            round_just_ended=False,
        )

    @staticmethod
    def mark_dealt(state: BotState) -> BotState:
        """Record that the deal action was issued for this round."""
        return StateTransitionEngine.count_action(
            replace(state, round=replace(state.round, deal_issued=True))
        )

    @staticmethod
    def count_action(state: BotState) -> BotState:
        """Increment both the round and the session action counters."""
        return replace(
            state,
            round=replace(state.round, action_count=state.round.action_count + 1),
            session=replace(
                state.session, total_actions=state.session.total_actions + 1
            ),
        )

    @staticmethod
    def record_hand(state: BotState, hand_index: int, cards: Sequence[Card]) -> BotState:
        """Store the latest observation of a player hand slot."""
        hands = list(state.round.hands)
        hands[hand_index] = tuple(cards)
        return replace(state, round=replace(state.round, hands=tuple(hands)))

    @staticmethod
    def record_dealer(state: BotState, cards: Sequence[Card]) -> BotState:
        """Store the latest non-empty observation of the dealer hand."""
        if not cards:
            return state
        return replace(state, round=replace(state.round, dealer_cards=tuple(cards)))

    @staticmethod
    def lock_for(
        state: BotState, pending: PendingAction, cards: Sequence[Card] = ()
    ) -> BotState:
        """
        Lock the turn while an action resolves and wait for its result.

        Args:
            state: Current bot state
            pending: The action (or automatic resolution) to wait on
            cards: Active hand just before the action

        Returns:
            New bot state in WAITING_FOR_ACTION_RESULT
        """
        turn = TurnState(
            phase=BotPhase.WAITING_FOR_ACTION_RESULT,
            locked=True,
            wait_cycles=0,
            pending=pending,
            pre_action_cards=tuple(cards),
        )
        new_round = state.round
        if pending is PendingAction.DOUBLE:
            new_round = replace(
                new_round, doubled=new_round.doubled | {new_round.active_hand_index}
            )
        return replace(state, turn=turn, round=new_round)

    @staticmethod
    def unlock(state: BotState, phase: BotPhase = BotPhase.PLAYER_TURN) -> BotState:
        """Release the action lock and move on (PLAYER_TURN by default)."""
        return replace(state, turn=TurnState(phase=phase))

    @staticmethod
    def tick_wait(state: BotState) -> BotState:
        turn = replace(state.turn, wait_cycles=state.turn.wait_cycles + 1)
        return replace(state, turn=turn)

    @staticmethod
    def tick_init(state: BotState) -> BotState:
        new_round = replace(state.round, init_cycles=state.round.init_cycles + 1)
        return replace(state, round=new_round)

    @staticmethod
    def tick_end(state: BotState) -> BotState:
        new_round = replace(state.round, end_cycles=state.round.end_cycles + 1)
        return replace(state, round=new_round)

    @staticmethod
    def start_split(
        state: BotState, upcard: Optional[Card], aces: bool = False
    ) -> BotState:
        """
        Record an issued split: capture the dealer up-card and count the split.

        Ace splits enter split mode straight away since the host plays both
        hands itself.
        """
        new_round = replace(
            state.round,
            split_upcard=upcard,
            split_count=state.round.split_count + 1,
            is_split=state.round.is_split or aces,
        )
        return replace(state, round=new_round)

    @staticmethod
    def enter_split_mode(state: BotState) -> BotState:
        """The split materialized: play the first split hand."""
        new_round = replace(
            state.round,
            is_split=True,
            active_hand_index=0,
            first_hand_resolved=False,
        )
        return replace(state, round=new_round, turn=TurnState(phase=BotPhase.PLAYER_TURN))

    @staticmethod
    def advance_to_second_hand(state: BotState) -> BotState:
        """The first split hand is done: play the second one."""
        new_round = replace(
            state.round, first_hand_resolved=True, active_hand_index=1
        )
        return replace(state, round=new_round, turn=TurnState(phase=BotPhase.PLAYER_TURN))

    @staticmethod
    def begin_round_ending(state: BotState) -> BotState:
        return replace(
            state,
            turn=TurnState(phase=BotPhase.ROUND_ENDING),
            round=replace(state.round, end_cycles=0),
        )

    @staticmethod
    def finish_round(
        state: BotState,
        results: Sequence[HandResult],
        balance_delta: Optional[float] = None,
    ) -> BotState:
        """
        Fold the round's results into the session counters and reset.

        Args:
            state: Current bot state
            results: Outcome of every hand played this round
            balance_delta: Bankroll change over the round, if known

        Returns:
            New bot state in IDLE with the round marked as just ended
        """
        session = replace(state.session, rounds_played=state.session.rounds_played + 1)
        for result in results:
            session = replace(session, **session.count_outcome(result.outcome))
            if len(result.cards) == 2 and result.total == 21 and not state.round.is_split:
                session = replace(session, blackjacks=session.blackjacks + 1)
        if balance_delta is not None:
            session = replace(session, net_change=session.net_change + balance_delta)

        return BotState(session=session, round_just_ended=True)

    @staticmethod
    def abandon_round(state: BotState) -> BotState:
        """
        The round ended without being observed: drop it and return to IDLE.

        Nothing is counted, but the next round may start as after any other.
        """
        return replace(
            state, turn=TurnState(), round=RoundState(), round_just_ended=True
        )

    @staticmethod
    def enter_error(state: BotState) -> BotState:
        """Drop the round and move to ERROR; the lock is released."""
        return replace(state, turn=TurnState(phase=BotPhase.ERROR), round=RoundState())
