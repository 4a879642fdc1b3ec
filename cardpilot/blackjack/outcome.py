"""Final outcome of each hand played in a round, judged against the dealer's final hand."""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

from cardpilot.blackjack.hand import CardLike, coerce_cards, evaluate
from cardpilot.common.card import Card


class HandOutcome(Enum):
    BUST = "bust"
    DEALER_BUST_WIN = "dealer_bust_win"
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"
    UNKNOWN = "unknown"

    @property
    def is_win(self) -> bool:
        return self in (HandOutcome.WIN, HandOutcome.DEALER_BUST_WIN)


@dataclass(frozen=True)
class HandResult:
    """Outcome of one played hand."""

    hand_index: int
    cards: Tuple[Card, ...]
    total: int
    dealer_total: int
    outcome: HandOutcome
    doubled: bool = False

    def to_dict(self) -> dict:
        return {
            "hand_index": self.hand_index,
            "cards": [str(c) for c in self.cards],
            "total": self.total,
            "dealer_total": self.dealer_total,
            "outcome": self.outcome.value,
            "doubled": self.doubled,
        }


def resolve_outcome(
    player_cards: Sequence[CardLike], dealer_cards: Sequence[CardLike]
) -> HandOutcome:
    """
    Compare a final player hand with the final dealer hand.

    A busted hand always loses, whatever the dealer holds. A standing hand
    cannot be judged when the dealer hand was never read.
    """
    player = evaluate(player_cards)
    if player.is_bust:
        return HandOutcome.BUST

    if not dealer_cards:
        return HandOutcome.UNKNOWN

    dealer = evaluate(dealer_cards)
    if dealer.is_bust:
        return HandOutcome.DEALER_BUST_WIN
    if player.total > dealer.total:
        return HandOutcome.WIN
    if player.total < dealer.total:
        return HandOutcome.LOSS
    return HandOutcome.PUSH


def judge_hand(
    hand_index: int,
    player_cards: Sequence[CardLike],
    dealer_cards: Sequence[CardLike],
    doubled: bool = False,
) -> HandResult:
    cards = coerce_cards(player_cards)
    dealer = coerce_cards(dealer_cards)
    return HandResult(
        hand_index=hand_index,
        cards=cards,
        total=evaluate(cards).total,
        dealer_total=evaluate(dealer).total,
        outcome=resolve_outcome(cards, dealer),
        doubled=doubled,
    )
