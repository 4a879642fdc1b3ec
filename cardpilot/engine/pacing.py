"""
Suspension points for the bot.

Every timed wait the bot makes (between observer reads, after an action,
between split hands, in the error cooldown) goes through a `Pacer`. The pacer
also carries the active flag that start/stop toggles, so each wait returns
whether the bot is still supposed to be running once it wakes up.
"""

import asyncio
import time
from typing import Awaitable, Callable


class Pacer:
    """
    Cancellable timed waits and the bot's clock.

    In-flight waits are never aborted; they complete and then report the
    active flag so the caller can decide not to act.
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], float] = time.monotonic,
    ):
        self._sleep = sleep
        self._now = now
        self.active = False

    async def wait(self, seconds: float) -> bool:
        """
        Suspend for `seconds`.

        Returns:
            True if the bot is still active after the wait
        """
        if seconds > 0:
            await self._sleep(seconds)
        else:
            # Still yield to the loop so a stop request can be observed
            await self._sleep(0)
        return self.active

    async def sleep(self, seconds: float) -> None:
        """Suspend without consulting the active flag."""
        await self._sleep(max(seconds, 0))

    def now(self) -> float:
        return self._now()
