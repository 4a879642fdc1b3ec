"""
An in-memory blackjack table implementing the `GameHost` interface.

The table plays a standard multi-deck game with a fixed bet: the dealer peeks
for blackjack, offers insurance on an Ace, allows one split (split Aces get
one card each and stand), allows doubling on any first two cards, and draws
to 17. To exercise the bot's observation protocol, freshly dealt cards can
stay unreadable for a number of reads, and a modal overlay can be raised.
"""

import logging
import random
from typing import Dict, List, Optional

from cardpilot.blackjack.action import Action
from cardpilot.blackjack.hand import evaluate
from cardpilot.common.card import Card, Rank, Suit
from cardpilot.errors import BindFailure, HostBindError
from cardpilot.host.base import GameHost, Slot

logger = logging.getLogger(__name__)


class TablePhase:
    BETTING = "betting"
    INSURANCE = "insurance"
    PLAYER = "player"
    SETTLED = "settled"


class SimulatedTable(GameHost):
    """
    A seeded blackjack table for simulations and integration tests.

    Attributes:
        balance_amount: Current bankroll
        invoked: Names of the entry points called, in order
        rounds_dealt: Number of rounds dealt so far
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        decks: int = 6,
        bet: float = 10.0,
        balance: float = 1000.0,
        reveal_lag: int = 0,
        bind_failures: int = 0,
        penetration: float = 0.75,
        shoe: Optional[List[Card]] = None,
    ):
        """
        Args:
            seed: Seed for shuffling
            decks: Number of decks in the shoe
            bet: Fixed bet per hand
            balance: Starting bankroll
            reveal_lag: Reads during which a newly dealt card is unreadable
            bind_failures: Number of `bind()` calls that fail before one succeeds
            penetration: Fraction of the shoe dealt before reshuffling
            shoe: Fixed card order to deal from (top of the shoe first);
                disables reshuffling
        """
        self._rng = random.Random(seed)
        self.decks = decks
        self.bet = bet
        self.balance_amount = balance
        self.reveal_lag = reveal_lag
        self.penetration = penetration
        self._bind_failures = bind_failures
        self._fixed_shoe = shoe is not None

        self.bound = False
        self.phase = TablePhase.BETTING
        self.shoe: List[Card] = list(shoe) if shoe is not None else []
        self.hands: List[List[Card]] = [[]]
        self.bets: List[float] = []
        self.dealer: List[Card] = []
        self.hole_revealed = False
        self.active_hand = 0
        self.split_aces = False
        self.modal_reads = 0
        self.rounds_dealt = 0
        self.invoked: List[str] = []
        self._lag: Dict[Slot, List[int]] = {slot: [] for slot in Slot}

        if not self._fixed_shoe:
            self._shuffle()

    # Table mechanics

    def _shuffle(self) -> None:
        self.shoe = [
            Card(rank, suit) for _ in range(self.decks) for suit in Suit for rank in Rank
        ]
        self._rng.shuffle(self.shoe)
        logger.debug(f"Shuffled a {self.decks}-deck shoe")

    def _needs_shuffle(self) -> bool:
        if self._fixed_shoe:
            return False
        full = self.decks * 52
        return len(self.shoe) < full * (1 - self.penetration)

    def _draw(self) -> Card:
        if not self.shoe:
            raise RuntimeError("The shoe is empty")
        return self.shoe.pop(0)

    def _give(self, slot: Slot, cards: List[Card]) -> None:
        cards.append(self._draw())
        self._lag[slot].append(self.reveal_lag)

    def _slot_cards(self, slot: Slot) -> List[Card]:
        if slot is Slot.DEALER:
            if self.hole_revealed or len(self.dealer) < 2:
                return self.dealer
            return self.dealer[:1]
        index = 0 if slot is Slot.HAND_0 else 1
        return self.hands[index] if index < len(self.hands) else []

    def show_modal(self, reads: int) -> None:
        """Cover the table for the next `reads` modal checks."""
        self.modal_reads = reads

    @property
    def is_split(self) -> bool:
        return len(self.hands) > 1

    def _active_cards(self) -> List[Card]:
        return self.hands[self.active_hand]

    def _peek_for_blackjack(self) -> None:
        player_natural = not self.is_split and evaluate(self.hands[0]).is_natural
        if evaluate(self.dealer).is_natural or player_natural:
            self.hole_revealed = True
            self._settle()
        else:
            self.phase = TablePhase.PLAYER

    def _next_hand(self) -> None:
        if self.is_split and self.active_hand == 0:
            self.active_hand = 1
            self._give(Slot.HAND_1, self.hands[1])
            if self.split_aces or evaluate(self.hands[1]).total >= 21:
                self._next_hand()
            return
        self._play_dealer()

    def _play_dealer(self) -> None:
        self.hole_revealed = True
        if any(not evaluate(hand).is_bust for hand in self.hands):
            while evaluate(self.dealer).total < 17:
                self._give(Slot.DEALER, self.dealer)
        self._settle()

    def _settle(self) -> None:
        dealer = evaluate(self.dealer)
        for index, hand in enumerate(self.hands):
            player = evaluate(hand)
            bet = self.bets[index]
            natural = player.is_natural and not self.is_split
            if player.is_bust:
                payout = 0.0
            elif dealer.is_natural:
                payout = bet if natural else 0.0
            elif natural:
                payout = bet * 2.5
            elif dealer.is_bust or player.total > dealer.total:
                payout = bet * 2
            elif player.total == dealer.total:
                payout = bet
            else:
                payout = 0.0
            self.balance_amount += payout
        self.phase = TablePhase.SETTLED
        logger.debug(
            f"Round {self.rounds_dealt} settled; balance {self.balance_amount}"
        )

    # GameHost interface

    async def bind(self) -> None:
        if self._bind_failures > 0:
            self._bind_failures -= 1
            raise HostBindError(BindFailure.CANVAS_NOT_FOUND, "simulated table")
        self.bound = True

    async def can_start_new_round(self) -> bool:
        return (
            self.phase in (TablePhase.BETTING, TablePhase.SETTLED)
            and self.balance_amount >= self.bet
        )

    async def insurance_offered(self) -> bool:
        return self.phase == TablePhase.INSURANCE

    async def is_action_legal(self, action: Action) -> bool:
        if self.phase != TablePhase.PLAYER:
            return False
        hand = self._active_cards()
        if action is Action.STAND:
            return True
        if action is Action.HIT:
            return evaluate(hand).total < 21
        if action is Action.DOUBLE:
            return len(hand) == 2 and self.balance_amount >= self.bet
        if action is Action.SPLIT:
            return (
                not self.is_split
                and evaluate(hand).is_pair
                and self.balance_amount >= self.bet
            )
        return False

    async def balance(self) -> Optional[float]:
        return self.balance_amount

    async def read_cards(self, slot: Slot) -> List[Optional[str]]:
        cards = self._slot_cards(slot)
        lags = self._lag[slot]
        codes: List[Optional[str]] = []
        for position, card in enumerate(cards):
            if position < len(lags) and lags[position] > 0:
                lags[position] -= 1
                codes.append(None)
            else:
                codes.append(card.code)
        return codes

    async def expected_card_count(self, slot: Slot) -> int:
        return len(self._slot_cards(slot))

    async def modal_present(self) -> bool:
        if self.modal_reads > 0:
            self.modal_reads -= 1
            return True
        return False

    # Entry points, named as the host names them

    async def deal(self) -> bool:
        self.invoked.append("deal")
        if not await self.can_start_new_round():
            return False
        if self._needs_shuffle():
            self._shuffle()

        self.rounds_dealt += 1
        self.balance_amount -= self.bet
        self.bets = [self.bet]
        self.hands = [[]]
        self.dealer = []
        self.hole_revealed = False
        self.active_hand = 0
        self.split_aces = False
        self._lag = {slot: [] for slot in Slot}

        self._give(Slot.HAND_0, self.hands[0])
        self._give(Slot.DEALER, self.dealer)
        self._give(Slot.HAND_0, self.hands[0])
        self._give(Slot.DEALER, self.dealer)

        if self.dealer[0].is_ace:
            self.phase = TablePhase.INSURANCE
        else:
            self._peek_for_blackjack()
        return True

    async def decline_insurance(self) -> bool:
        self.invoked.append("decline_insurance")
        if self.phase != TablePhase.INSURANCE:
            return False
        self._peek_for_blackjack()
        return True

    async def hit(self) -> bool:
        self.invoked.append("hit")
        if not await self.is_action_legal(Action.HIT):
            return False
        slot = Slot.for_hand(self.active_hand)
        self._give(slot, self._active_cards())
        if evaluate(self._active_cards()).total >= 21:
            self._next_hand()
        return True

    async def stand(self) -> bool:
        self.invoked.append("stand")
        if not await self.is_action_legal(Action.STAND):
            return False
        self._next_hand()
        return True

    async def double(self) -> bool:
        self.invoked.append("double")
        if not await self.is_action_legal(Action.DOUBLE):
            return False
        self.balance_amount -= self.bet
        self.bets[self.active_hand] += self.bet
        self._give(Slot.for_hand(self.active_hand), self._active_cards())
        self._next_hand()
        return True

    async def spilt(self) -> bool:
        self.invoked.append("spilt")
        if not await self.is_action_legal(Action.SPLIT):
            return False
        first, second = self.hands[0]
        self.balance_amount -= self.bet
        self.bets.append(self.bet)
        self.hands = [[first], [second]]
        self._lag[Slot.HAND_1] = [self._lag[Slot.HAND_0][1]]
        self._lag[Slot.HAND_0] = self._lag[Slot.HAND_0][:1]
        self.split_aces = first.is_ace
        self._give(Slot.HAND_0, self.hands[0])
        if self.split_aces:
            # Split Aces receive one card each and stand
            self._next_hand()
        elif evaluate(self.hands[0]).total >= 21:
            self._next_hand()
        return True
