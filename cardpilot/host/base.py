"""
Base host interface for the bot.

This module defines the narrow interface the bot consumes from the live game:
read-only signals, the card-reading primitive, the action executor and the
modal detector. Implementations bind to a concrete game (a browser canvas, a
desktop client, or the in-memory `SimulatedTable`).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional

from cardpilot.blackjack.action import PLAY_ACTIONS, Action
from cardpilot.errors import ActionUnavailableError

# Names of the host's action entry points. The host spells its split
# entry point "spilt"; binding must use that name verbatim.
HOST_ENTRY_POINTS = {
    Action.DEAL: "deal",
    Action.HIT: "hit",
    Action.STAND: "stand",
    Action.DOUBLE: "double",
    Action.SPLIT: "spilt",
    Action.DECLINE_INSURANCE: "decline_insurance",
}


class Slot(Enum):
    """Card slots on the table."""

    DEALER = "dealer"
    HAND_0 = "hand_0"
    HAND_1 = "hand_1"

    @classmethod
    def for_hand(cls, index: int) -> "Slot":
        """Indexed accessor over the player hand slots."""
        return PLAYER_SLOTS[index]


PLAYER_SLOTS = (Slot.HAND_0, Slot.HAND_1)


@dataclass(frozen=True)
class Signals:
    """
    One snapshot of the host's read-only signals.

    Attributes:
        can_start_new_round: The table is ready for a new deal
        insurance_offered: The insurance prompt is showing
        legal_actions: Play actions whose buttons are currently available
        balance: Current bankroll, if readable
    """

    can_start_new_round: bool = False
    insurance_offered: bool = False
    legal_actions: FrozenSet[Action] = frozenset()
    balance: Optional[float] = None

    @property
    def any_action_available(self) -> bool:
        return bool(self.legal_actions)


class GameHost(ABC):
    """
    Base interface for game hosts.

    Every method is a coroutine. Reads never raise for ordinary gaps (a card
    still animating in is simply unreadable); a `HostBindError` signals that
    a required game reference is unreachable.
    """

    @abstractmethod
    async def bind(self) -> None:
        """
        Locate and bind the live game objects.

        Raises:
            HostBindError: If the game cannot be bound
        """
        pass

    @abstractmethod
    async def can_start_new_round(self) -> bool:
        pass

    @abstractmethod
    async def insurance_offered(self) -> bool:
        pass

    @abstractmethod
    async def is_action_legal(self, action: Action) -> bool:
        pass

    @abstractmethod
    async def balance(self) -> Optional[float]:
        pass

    @abstractmethod
    async def read_cards(self, slot: Slot) -> List[Optional[str]]:
        """
        Read the cards currently rendered in a slot.

        Args:
            slot: The slot to read

        Returns:
            Card codes in display order; None (or junk) for unreadable cards
        """
        pass

    @abstractmethod
    async def expected_card_count(self, slot: Slot) -> int:
        """
        Number of cards the game reports for a slot (0 if the slot does not exist).
        """
        pass

    @abstractmethod
    async def modal_present(self) -> bool:
        """Whether a blocking overlay is covering the table."""
        pass

    async def invoke(self, action: Action) -> bool:
        """
        Invoke an action through the host's entry point for it.

        Args:
            action: The action to perform

        Returns:
            True if the host accepted the action

        Raises:
            ActionUnavailableError: If the host has no such entry point
        """
        entry_point = HOST_ENTRY_POINTS[action]
        method = getattr(self, entry_point, None)
        if not callable(method):
            raise ActionUnavailableError(action, entry_point)
        return bool(await method())

    async def snapshot_signals(self) -> Signals:
        """Gather all read-only signals for one tick."""
        legal = []
        for action in PLAY_ACTIONS:
            if await self.is_action_legal(action):
                legal.append(action)
        return Signals(
            can_start_new_round=await self.can_start_new_round(),
            insurance_offered=await self.insurance_offered(),
            legal_actions=frozenset(legal),
            balance=await self.balance(),
        )
