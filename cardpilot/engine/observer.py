"""
Stabilized observation of card slots.

The host's read primitive may return a partial or transiently stale hand
while cards are still animating in. `StabilizedObserver` turns it into a
confidence-checked snapshot with bounded retries.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from cardpilot.common.card import Card, parse_cards
from cardpilot.engine.pacing import Pacer
from cardpilot.events import BotEventType, EventBus
from cardpilot.host.base import GameHost, Slot

logger = logging.getLogger(__name__)


def _is_complete(read: Sequence[Optional[Card]], expected: int) -> bool:
    return len(read) == expected and all(card is not None for card in read)


def _resolved(read: Sequence[Optional[Card]]) -> Tuple[Card, ...]:
    return tuple(card for card in read if card is not None)


def _best(
    best_full: Optional[Tuple[Card, ...]], best_partial: Tuple[Card, ...]
) -> Tuple[Card, ...]:
    return best_full if best_full is not None else best_partial


class StabilizedObserver:
    """
    Produces trustworthy hand snapshots from an unreliable reader.

    A read is complete when it has the slot's expected number of cards and
    every card resolved. A complete read is trusted once it is seen twice in
    a row; a complete first read is confirmed after half an interval.
    Observation never raises for read gaps: on exhaustion it degrades to the
    best full read seen, or else the largest partial one.
    """

    def __init__(
        self,
        host: GameHost,
        pacer: Pacer,
        attempts: int = 5,
        interval: float = 0.2,
        event_bus=None,
    ):
        self.host = host
        self.pacer = pacer
        self.attempts = attempts
        self.interval = interval
        self.event_bus = event_bus or EventBus.get_instance()

    async def observe(
        self,
        slot: Slot,
        expected_count: Optional[int] = None,
        max_attempts: Optional[int] = None,
        interval: Optional[float] = None,
    ) -> Tuple[Card, ...]:
        """
        Observe a slot until the read is stable or attempts run out.

        Args:
            slot: Slot to read
            expected_count: Cards expected in the slot; re-read from the host
                on every attempt when not given
            max_attempts: Override for the configured attempt budget
            interval: Override for the configured retry interval

        Returns:
            The stabilized hand, or a best-effort partial one (possibly empty)
        """
        attempts = max_attempts if max_attempts is not None else self.attempts
        interval = interval if interval is not None else self.interval

        previous: Optional[Tuple[Card, ...]] = None
        best_full: Optional[Tuple[Card, ...]] = None
        best_partial: Tuple[Card, ...] = ()

        for attempt in range(1, attempts + 1):
            expected = (
                expected_count
                if expected_count is not None
                else await self.host.expected_card_count(slot)
            )
            read: List[Optional[Card]] = parse_cards(await self.host.read_cards(slot))

            if expected == 0 and not read:
                return ()

            if _is_complete(read, expected):
                cards = tuple(read)
                best_full = cards
                if cards == previous:
                    logger.debug(f"{slot.value} stable after {attempt} reads: {cards}")
                    return cards
                if attempts == 1:
                    return cards
                previous = cards
                if attempt == attempts:
                    break
                if attempt == 1:
                    # Confirm a first-try read before trusting it
                    if not await self.pacer.wait(interval / 2):
                        return self._stopped(slot, best_full, best_partial)
                    continue
            else:
                previous = None
                partial = _resolved(read)
                if len(partial) > len(best_partial):
                    best_partial = partial

            if attempt < attempts and not await self.pacer.wait(interval):
                return self._stopped(slot, best_full, best_partial)

        return self._degrade(slot, best_full, best_partial, attempts)

    def _stopped(
        self,
        slot: Slot,
        best_full: Optional[Tuple[Card, ...]],
        best_partial: Tuple[Card, ...],
    ) -> Tuple[Card, ...]:
        logger.debug(f"Observation of {slot.value} cut short by stop")
        return _best(best_full, best_partial)

    def _degrade(
        self,
        slot: Slot,
        best_full: Optional[Tuple[Card, ...]],
        best_partial: Tuple[Card, ...],
        attempts: int,
    ) -> Tuple[Card, ...]:
        result = _best(best_full, best_partial)
        if result:
            kind = "full" if best_full is not None else "partial"
            logger.warning(
                f"Observation of {slot.value} not confirmed after {attempts} attempts; "
                f"using {kind} read {[str(c) for c in result]}"
            )
        else:
            logger.warning(
                f"Observation of {slot.value} produced no readable cards after {attempts} attempts"
            )
        self.event_bus.emit(
            BotEventType.OBSERVATION_DEGRADED,
            {
                "slot": slot.value,
                "attempts": attempts,
                "full": best_full is not None,
                "cards": [str(c) for c in result],
            },
        )
        return result
