"""
This module defines the `Suit`, `Rank`, and `Card` classes used to represent
the cards read off the host table.

- `Suit`: An enum for the four suits, keyed by the letter the host uses in its
card codes (H, D, C, S).

- `Rank`: An enum for the thirteen ranks, keyed by the rank part of a card code
("A", "2" ... "10", "J", "Q", "K").

- `Card`: An immutable playing card. Cards are parsed from host codes such as
"AS" or "10H" and reduced to a strategy value (Ace = 1, tens and faces = 10).
"""

from dataclasses import dataclass
from enum import Enum, unique
from typing import Iterable, List, Optional

from cardpilot.errors import CardParseError


@unique
class Suit(Enum):
    """
    Enum for suits in a card deck.
    """

    HEARTS = "H"
    DIAMONDS = "D"
    CLUBS = "C"
    SPADES = "S"

    def __str__(self) -> str:
        return self.value


@unique
class Rank(Enum):
    """
    Enum for ranks in a card deck.
    """

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @property
    def strategy_value(self) -> int:
        """The value used for strategy purposes: Ace = 1, ten and faces = 10."""
        if self is Rank.ACE:
            return 1
        if self in (Rank.TEN, Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

    def __str__(self) -> str:
        return self.value


# Some hosts report tens as "T"
_RANK_ALIASES = {"T": Rank.TEN}


@dataclass(frozen=True)
class Card:
    """
    An immutable playing card as read from the table.

    >>> card = Card.parse("10H")
    >>> print(card)
    10H
    >>> card.value
    10
    >>> Card.parse("as").is_ace
    True
    """

    rank: Rank
    suit: Suit

    @classmethod
    def parse(cls, code: str) -> "Card":
        """
        Parse a host card code.

        :param code: Rank followed by suit letter, e.g. ``"AS"``, ``"10H"``, ``"qd"``.
        :return: The parsed card.
        :raises CardParseError: If the code is not a valid card.
        """
        if not isinstance(code, str):
            raise CardParseError(f"Card code must be a string, got {code!r}")

        text = code.strip().upper()
        if len(text) < 2:
            raise CardParseError(f"Invalid card code: {code!r}")

        rank_part, suit_part = text[:-1], text[-1]
        try:
            suit = Suit(suit_part)
        except ValueError:
            raise CardParseError(f"Invalid suit in card code: {code!r}") from None

        try:
            rank = _RANK_ALIASES.get(rank_part) or Rank(rank_part)
        except ValueError:
            raise CardParseError(f"Invalid rank in card code: {code!r}") from None

        return cls(rank, suit)

    @property
    def value(self) -> int:
        return self.rank.strategy_value

    @property
    def is_ace(self) -> bool:
        return self.rank is Rank.ACE

    @property
    def code(self) -> str:
        return f"{self.rank.value}{self.suit.value}"

    def __str__(self) -> str:
        return self.code


def parse_card(raw) -> Optional[Card]:
    """
    Parse one raw read from the host, returning None for an unreadable card.

    A raw read may already be a `Card`, a card code string, or anything else
    the host produced while a card was still animating in.
    """
    if isinstance(raw, Card):
        return raw
    if raw is None:
        return None
    try:
        return Card.parse(raw)
    except CardParseError:
        return None


def parse_cards(raw_cards: Iterable) -> List[Optional[Card]]:
    """Parse a raw host read position by position; unreadable cards become None."""
    return [parse_card(raw) for raw in raw_cards]
