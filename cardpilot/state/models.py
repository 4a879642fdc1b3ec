"""
Immutable state models for the bot.

This module provides dataclasses for the automaton's state. They are designed
to be used with the pure transition functions in `cardpilot.state.transitions`,
which create new state instances rather than modifying existing ones; each
automaton step receives a `BotState` and returns the next one.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, Optional, Tuple

from cardpilot.blackjack.outcome import HandOutcome
from cardpilot.common.card import Card

MAX_HANDS = 2


class BotPhase(Enum):
    """
    Phases of the turn automaton.
    """

    IDLE = auto()
    ROUND_INITIALIZING = auto()
    PLAYER_TURN = auto()
    WAITING_FOR_ACTION_RESULT = auto()
    ROUND_ENDING = auto()
    ERROR = auto()


class PendingAction(Enum):
    """
    What the automaton is waiting on while in WAITING_FOR_ACTION_RESULT.

    BUST and BLACKJACK are automatic resolutions with no action issued;
    SPLIT_ACES is the split of two Aces, which the host plays out itself.
    """

    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    SPLIT_ACES = "split_aces"
    DECLINE_INSURANCE = "decline_insurance"
    BUST = "bust"
    BLACKJACK = "blackjack"

    @property
    def ends_hand(self) -> bool:
        """True when the pending action finishes the active hand."""
        return self in (
            PendingAction.STAND,
            PendingAction.DOUBLE,
            PendingAction.BUST,
            PendingAction.BLACKJACK,
        )


@dataclass(frozen=True)
class RoundState:
    """
    Bookkeeping for a single round; discarded when the round ends.

    Attributes:
        round_number: Index of this round in the session (0 before any round)
        is_split: Whether split mode has been entered
        split_count: Number of splits issued this round
        active_hand_index: 0 for the first/main hand, 1 for the second split hand
        first_hand_resolved: Whether the first split hand has finished
        split_upcard: Dealer up-card captured when the split was decided
        action_count: Actions issued this round
        deal_issued: Whether the deal action has been issued
        init_cycles: Ticks spent waiting for the deal to materialize
        end_cycles: Ticks spent waiting for the round to be over
        starting_balance: Host balance when the round started
        hands: Last observed cards per hand slot
        dealer_cards: Last observed dealer cards
        doubled: Indexes of hands that were doubled, reported with the results
        recovered: Whether the round was picked up mid-play
    """

    round_number: int = 0
    is_split: bool = False
    split_count: int = 0
    active_hand_index: int = 0
    first_hand_resolved: bool = False
    split_upcard: Optional[Card] = None
    action_count: int = 0
    deal_issued: bool = False
    init_cycles: int = 0
    end_cycles: int = 0
    starting_balance: Optional[float] = None
    hands: Tuple[Tuple[Card, ...], ...] = ((),) * MAX_HANDS
    dealer_cards: Tuple[Card, ...] = ()
    doubled: FrozenSet[int] = frozenset()
    recovered: bool = False

    @property
    def played_hand_indexes(self) -> Tuple[int, ...]:
        return tuple(range(MAX_HANDS)) if self.is_split else (0,)


@dataclass(frozen=True)
class TurnState:
    """
    The automaton's current phase and in-flight action.

    Attributes:
        phase: Current automaton phase
        locked: Set while an action is in flight; no new action may be issued
        wait_cycles: Ticks spent in WAITING_FOR_ACTION_RESULT for the pending action
        pending: The last action issued (or automatic resolution)
        pre_action_cards: Active hand just before the pending action
    """

    phase: BotPhase = BotPhase.IDLE
    locked: bool = False
    wait_cycles: int = 0
    pending: Optional[PendingAction] = None
    pre_action_cards: Tuple[Card, ...] = ()


@dataclass(frozen=True)
class SessionState:
    """
    Cumulative counters kept across rounds, used only for reporting.
    """

    rounds_played: int = 0
    total_actions: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    busts: int = 0
    blackjacks: int = 0
    unknown: int = 0
    net_change: float = 0.0

    def report(self) -> Dict[str, Any]:
        """
        Returns a dictionary containing the current statistics.
        """
        return {
            "rounds_played": self.rounds_played,
            "total_actions": self.total_actions,
            "wins": self.wins,
            "losses": self.losses,
            "pushes": self.pushes,
            "busts": self.busts,
            "blackjacks": self.blackjacks,
            "unknown": self.unknown,
            "net_change": round(self.net_change, 2),
        }

    def count_outcome(self, outcome: HandOutcome) -> Dict[str, int]:
        """Counter increments for one hand outcome."""
        if outcome.is_win:
            return {"wins": self.wins + 1}
        if outcome is HandOutcome.BUST:
            return {"losses": self.losses + 1, "busts": self.busts + 1}
        if outcome is HandOutcome.LOSS:
            return {"losses": self.losses + 1}
        if outcome is HandOutcome.PUSH:
            return {"pushes": self.pushes + 1}
        return {"unknown": self.unknown + 1}


@dataclass(frozen=True)
class BotState:
    """
    Complete state passed into and returned from every automaton step.
    """

    turn: TurnState = field(default_factory=TurnState)
    round: RoundState = field(default_factory=RoundState)
    session: SessionState = field(default_factory=SessionState)
    round_just_ended: bool = False

    @property
    def phase(self) -> BotPhase:
        return self.turn.phase

    def to_dict(self) -> Dict[str, Any]:
        """Read-only snapshot for display."""
        return {
            "phase": self.turn.phase.name,
            "locked": self.turn.locked,
            "pending": self.turn.pending.value if self.turn.pending else None,
            "round": self.round.round_number,
            "split": self.round.is_split,
            "active_hand": self.round.active_hand_index,
            "hands": [[str(c) for c in hand] for hand in self.round.hands],
            "dealer": [str(c) for c in self.round.dealer_cards],
            "session": self.session.report(),
        }
