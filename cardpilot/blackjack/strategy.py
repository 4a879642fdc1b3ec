"""
Basic strategy decision tables.

The three tables are fixed lookup data, indexed by dealer up-value where
1 is an Ace:

- hard_table: hard totals 9-16
- soft_table: soft totals 13-20
- pair_table: pairs by strategy value 1-10 (only consulted for splitting)

Anything outside the documented ranges falls back to a fixed rule:
hard 8 or less hits, hard 17 or more stands, every other gap stands.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Collection, Dict, Optional, Sequence, Tuple

from cardpilot.blackjack.action import Action
from cardpilot.blackjack.decision_logger import decision_logger
from cardpilot.blackjack.hand import CardLike, coerce_cards, evaluate


class TableCode(Enum):
    """Cell codes used in the strategy tables."""

    HIT = "H"
    STAND = "S"
    SPLIT = "P"
    DOUBLE_ELSE_HIT = "Dh"
    DOUBLE_ELSE_STAND = "Ds"
    NO_SPLIT = "-"


# Column order of every row below
DEALER_COLUMNS = (2, 3, 4, 5, 6, 7, 8, 9, 10, 1)


def _row(*codes: str) -> Dict[int, TableCode]:
    return {up: TableCode(code) for up, code in zip(DEALER_COLUMNS, codes)}


HARD_TABLE: Dict[int, Dict[int, TableCode]] = {
    #        2     3     4     5     6     7    8    9    10   A
    9: _row("H", "Dh", "Dh", "Dh", "Dh", "H", "H", "H", "H", "H"),
    10: _row("Dh", "Dh", "Dh", "Dh", "Dh", "Dh", "Dh", "Dh", "H", "H"),
    11: _row("Dh", "Dh", "Dh", "Dh", "Dh", "Dh", "Dh", "Dh", "Dh", "H"),
    12: _row("H", "H", "S", "S", "S", "H", "H", "H", "H", "H"),
    13: _row("S", "S", "S", "S", "S", "H", "H", "H", "H", "H"),
    14: _row("S", "S", "S", "S", "S", "H", "H", "H", "H", "H"),
    15: _row("S", "S", "S", "S", "S", "H", "H", "H", "H", "H"),
    16: _row("S", "S", "S", "S", "S", "H", "H", "H", "H", "H"),
}

SOFT_TABLE: Dict[int, Dict[int, TableCode]] = {
    #        2     3     4     5     6     7    8    9    10   A
    13: _row("H", "H", "H", "Dh", "Dh", "H", "H", "H", "H", "H"),
    14: _row("H", "H", "H", "Dh", "Dh", "H", "H", "H", "H", "H"),
    15: _row("H", "H", "Dh", "Dh", "Dh", "H", "H", "H", "H", "H"),
    16: _row("H", "H", "Dh", "Dh", "Dh", "H", "H", "H", "H", "H"),
    17: _row("H", "Dh", "Dh", "Dh", "Dh", "H", "H", "H", "H", "H"),
    18: _row("S", "Ds", "Ds", "Ds", "Ds", "S", "S", "H", "H", "H"),
    19: _row("S", "S", "S", "S", "S", "S", "S", "S", "S", "S"),
    20: _row("S", "S", "S", "S", "S", "S", "S", "S", "S", "S"),
}

PAIR_TABLE: Dict[int, Dict[int, TableCode]] = {
    #        2    3    4    5    6    7    8    9    10   A
    1: _row("P", "P", "P", "P", "P", "P", "P", "P", "P", "P"),
    2: _row("P", "P", "P", "P", "P", "P", "-", "-", "-", "-"),
    3: _row("P", "P", "P", "P", "P", "P", "-", "-", "-", "-"),
    4: _row("-", "-", "-", "P", "P", "-", "-", "-", "-", "-"),
    5: _row("-", "-", "-", "-", "-", "-", "-", "-", "-", "-"),
    6: _row("P", "P", "P", "P", "P", "-", "-", "-", "-", "-"),
    7: _row("P", "P", "P", "P", "P", "P", "-", "-", "-", "-"),
    8: _row("P", "P", "P", "P", "P", "P", "P", "P", "P", "P"),
    9: _row("P", "P", "P", "P", "P", "-", "P", "P", "-", "-"),
    10: _row("-", "-", "-", "-", "-", "-", "-", "-", "-", "-"),
}

_CODE_ACTIONS = {
    TableCode.HIT: Action.HIT,
    TableCode.STAND: Action.STAND,
    TableCode.SPLIT: Action.SPLIT,
}


def _is_valid_up_value(dealer_up_value) -> bool:
    return isinstance(dealer_up_value, int) and 1 <= dealer_up_value <= 10


def lookup(
    hand: Sequence[CardLike], dealer_up_value: int, allow_split: bool = True
) -> TableCode:
    """
    Return the raw table code for a hand against a dealer up-value.

    Args:
        hand: Cards in the hand
        dealer_up_value: Dealer up-card strategy value, 1 (Ace) to 10
        allow_split: Whether the pair table may be consulted

    Returns:
        The table cell, or the fixed-rule code for hands outside the tables
    """
    cards = coerce_cards(hand)
    evaluation = evaluate(cards)

    if evaluation.total >= 21:
        return TableCode.STAND

    if not _is_valid_up_value(dealer_up_value):
        decision_logger.log_strategy_lookup(
            f"Total{evaluation.total}", dealer_up_value, "S", fallback_used=True
        )
        return TableCode.STAND

    if allow_split and evaluation.is_pair:
        pair_value = cards[0].value
        code = PAIR_TABLE[pair_value][dealer_up_value]
        decision_logger.log_strategy_lookup(
            f"Pair{pair_value}", dealer_up_value, code.value
        )
        if code is TableCode.SPLIT:
            return code

    if evaluation.is_soft:
        row = SOFT_TABLE.get(evaluation.total)
        hand_type = f"Soft{evaluation.total}"
        if row is None:
            decision_logger.log_strategy_lookup(
                hand_type, dealer_up_value, "S", fallback_used=True
            )
            return TableCode.STAND
    else:
        hand_type = f"Hard{evaluation.total}"
        if evaluation.total <= 8:
            return TableCode.HIT
        if evaluation.total >= 17:
            return TableCode.STAND
        row = HARD_TABLE[evaluation.total]

    code = row[dealer_up_value]
    decision_logger.log_strategy_lookup(hand_type, dealer_up_value, code.value)
    return code


def _resolve_code(code: TableCode, card_count: int) -> Action:
    if code is TableCode.DOUBLE_ELSE_HIT:
        return Action.DOUBLE if card_count == 2 else Action.HIT
    if code is TableCode.DOUBLE_ELSE_STAND:
        return Action.DOUBLE if card_count == 2 else Action.STAND
    return _CODE_ACTIONS.get(code, Action.STAND)


def decide(
    hand: Sequence[CardLike], dealer_up_value: int, allow_split: bool = True
) -> Action:
    """
    Recommend an action for a hand against the dealer's up-value.

    Pure function: identical inputs always give the identical action.

    >>> decide(["8H", "8S"], 6)
    <Action.SPLIT: 'split'>
    >>> decide(["AH", "6S"], 5)
    <Action.DOUBLE: 'double'>
    >>> decide(["AH", "6S", "2C"], 5)
    <Action.HIT: 'hit'>
    """
    cards = coerce_cards(hand)
    code = lookup(cards, dealer_up_value, allow_split=allow_split)
    return _resolve_code(code, len(cards))


@dataclass(frozen=True)
class Deviation:
    """
    A recommended action the house does not currently allow, and its substitute.

    Attributes:
        recommended: The action the table recommended
        substituted: The action issued instead
        reason: Why the recommendation could not be followed
        critical: True when a split was recommended but unavailable
    """

    recommended: Action
    substituted: Action
    reason: str
    critical: bool = False


def legalize(
    recommended: Action,
    hand: Sequence[CardLike],
    dealer_up_value: int,
    legal_actions: Collection[Action],
    split_allowed: bool = True,
) -> Tuple[Action, Optional[Deviation]]:
    """
    Replace a recommendation the house currently disallows.

    The substitute is table-driven: a refused split is looked up again as a
    plain hard/soft hand, a refused double degrades per its cell code
    (Dh to Hit, Ds to Stand). Stand is the last resort.

    Args:
        recommended: Action returned by `decide`
        hand: Cards in the hand
        dealer_up_value: Dealer up-value used for the recommendation
        legal_actions: Actions the host currently reports as legal
        split_allowed: False once the round's split limit is reached

    Returns:
        Tuple of (action to issue, deviation or None)
    """
    cards = coerce_cards(hand)

    if recommended is Action.SPLIT:
        if split_allowed and Action.SPLIT in legal_actions:
            return recommended, None
        reason = "split limit reached" if not split_allowed else "split unavailable"
        substitute = decide(cards, dealer_up_value, allow_split=False)
        substitute, _ = legalize(substitute, cards, dealer_up_value, legal_actions)
        return substitute, Deviation(recommended, substitute, reason, critical=True)

    if recommended in legal_actions or recommended is Action.STAND:
        return recommended, None

    if recommended is Action.DOUBLE:
        code = lookup(cards, dealer_up_value, allow_split=False)
        substitute = (
            Action.STAND if code is TableCode.DOUBLE_ELSE_STAND else Action.HIT
        )
        if substitute not in legal_actions:
            substitute = Action.STAND
        return substitute, Deviation(recommended, substitute, "double unavailable")

    return Action.STAND, Deviation(
        recommended, Action.STAND, f"{recommended.value} unavailable"
    )
