"""
Hand evaluation for observed blackjack hands.

Hands are never stored with their totals: every observation is re-evaluated
from its cards, so the evaluation is a pure function of an ordered card
sequence.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

from cardpilot.common.card import Card, parse_card

CardLike = Union[Card, str]


@dataclass(frozen=True)
class HandEvaluation:
    """
    Result of evaluating a hand.

    Attributes:
        total: Best total, counting one Ace as 11 where that does not bust
        is_soft: Whether an Ace is still counted as 11
        is_pair: Whether the hand is exactly two cards of equal strategy value
        card_count: Number of cards evaluated
    """

    total: int = 0
    is_soft: bool = False
    is_pair: bool = False
    card_count: int = 0

    @property
    def is_bust(self) -> bool:
        return self.total > 21

    @property
    def is_natural(self) -> bool:
        """Two-card 21."""
        return self.card_count == 2 and self.total == 21


def coerce_cards(cards: Iterable[CardLike]) -> Tuple[Card, ...]:
    """
    Accept `Card` objects or card codes and return a tuple of cards.

    Entries that do not parse as a card are dropped, so evaluating a hand
    never fails.
    """
    parsed = (parse_card(card) for card in cards)
    return tuple(card for card in parsed if card is not None)


def evaluate(cards: Sequence[CardLike]) -> HandEvaluation:
    """
    Evaluate a hand.

    Every Ace starts at 11; while the total is over 21 and an Ace is still
    counted as 11, one Ace is reduced to 1.

    >>> evaluate(["AS", "AH"])
    HandEvaluation(total=12, is_soft=True, is_pair=True, card_count=2)
    >>> evaluate([]).total
    0
    """
    hand = coerce_cards(cards)

    total = 0
    soft_aces = 0
    for card in hand:
        if card.is_ace:
            total += 11
            soft_aces += 1
        else:
            total += card.value

    while total > 21 and soft_aces > 0:
        total -= 10
        soft_aces -= 1

    return HandEvaluation(
        total=total,
        is_soft=soft_aces > 0 and total <= 21,
        is_pair=len(hand) == 2 and hand[0].value == hand[1].value,
        card_count=len(hand),
    )


def describe(cards: Iterable[CardLike]) -> str:
    """Human-readable hand, e.g. ``"9H 7S (16)"``."""
    hand = coerce_cards(cards)
    if not hand:
        return "(empty)"
    evaluation = evaluate(hand)
    soft = " soft" if evaluation.is_soft else ""
    return f"{' '.join(card.code for card in hand)} ({evaluation.total}{soft})"
