"""
The round driver: a fixed-cadence scheduler around the turn automaton.

The driver runs a frame loop, accumulates elapsed time and executes as many
automaton ticks as the current phase's polling interval allows. It owns the
only `BotState`, catches every fault escaping a tick, and always tells the
UI why it stopped.
"""

import logging
from typing import Any, Dict, Optional

from cardpilot.adapters.base import PlatformAdapter
from cardpilot.config import BotConfig
from cardpilot.engine.automaton import TurnAutomaton
from cardpilot.engine.pacing import Pacer
from cardpilot.errors import HostBindError
from cardpilot.events import BotEventType, EventBus
from cardpilot.host.base import GameHost
from cardpilot.state.models import BotPhase, BotState
from cardpilot.state.transitions import StateTransitionEngine

logger = logging.getLogger(__name__)


class RoundDriver:
    """
    Schedules automaton steps and escalates faults.

    Ticks never overlap: each one runs to completion, including its timed
    waits, before the next is considered.
    """

    def __init__(
        self,
        automaton: TurnAutomaton,
        host: GameHost,
        adapter: PlatformAdapter,
        config: Optional[BotConfig] = None,
        pacer: Optional[Pacer] = None,
        event_bus=None,
    ):
        self.automaton = automaton
        self.host = host
        self.adapter = adapter
        self.config = config or BotConfig()
        self.pacer = pacer or automaton.pacer
        self.event_bus = event_bus or EventBus.get_instance()

        self.state = BotState()
        self.stop_reason: Optional[str] = None
        self.ticks = 0
        self._bind_failures = 0

    @property
    def active(self) -> bool:
        return self.pacer.active

    def interval_for(self, phase: BotPhase) -> float:
        """Polling interval for a phase: waiting polls faster, error slower."""
        if phase is BotPhase.WAITING_FOR_ACTION_RESULT:
            return self.config.interval_for_waiting()
        if phase is BotPhase.ERROR:
            return self.config.interval_for_error()
        return self.config.tick_interval

    async def _publish(self, event_type: BotEventType, data: Dict[str, Any]) -> None:
        self.event_bus.emit(event_type, data)
        await self.adapter.notify_event(event_type, data)

    async def start(self) -> bool:
        """
        Bind to the host and mark the bot active.

        Binding is retried `bind_attempts` times; if it never succeeds the bot
        stops with the binding failure as its reason.

        Returns:
            True if the bot is now active
        """
        last_error: Optional[HostBindError] = None
        for attempt in range(1, self.config.bind_attempts + 1):
            try:
                await self.host.bind()
                break
            except HostBindError as e:
                last_error = e
                logger.debug(f"Bind attempt {attempt} failed: {e}")
                if attempt < self.config.bind_attempts:
                    await self.pacer.sleep(self.config.bind_retry_delay)
        else:
            await self._halt(str(last_error))
            return False

        self.pacer.active = True
        self.stop_reason = None
        self._bind_failures = 0
        logger.info("Bot started")
        await self.adapter.render_status("Bot started")
        await self._publish(BotEventType.BOT_STARTED, {"phase": self.state.phase.name})
        return True

    async def stop(self, reason: str = "stopped by user") -> None:
        """Clear the active flag; the current tick finishes, no new one starts."""
        if self.pacer.active:
            await self._halt(reason)

    async def run(self) -> None:
        """
        Frame loop: run ticks for as long as the bot is active.

        Elapsed time accumulates across frames; each tick consumes one interval
        of the phase it ran in. A backlog beyond `max_ticks_per_frame` ticks is
        dropped rather than replayed.
        """
        accumulated = 0.0
        last = self.pacer.now()

        while self.pacer.active:
            await self.pacer.sleep(self.config.frame_interval)
            now = self.pacer.now()
            accumulated += now - last
            last = now

            ticks_this_frame = 0
            while self.pacer.active:
                interval = self.interval_for(self.state.phase)
                if accumulated < interval:
                    break
                accumulated -= interval
                await self.tick()
                ticks_this_frame += 1
                if ticks_this_frame >= self.config.max_ticks_per_frame:
                    accumulated = 0.0
                    break

    async def tick(self) -> None:
        """Run one automaton step, unless stopped or blocked by a modal."""
        if not self.pacer.active:
            return

        phase = self.state.phase
        try:
            if await self.host.modal_present():
                logger.debug(f"Modal present; holding in {phase.name}")
                await self.adapter.render_status("Paused: a dialog is covering the table")
                await self._publish(BotEventType.MODAL_BLOCKED, {"phase": phase.name})
                return

            self.state = await self.automaton.step(self.state)
            self.ticks += 1
            self._bind_failures = 0

        except HostBindError as e:
            self._bind_failures += 1
            logger.warning(
                f"Host binding lost ({self._bind_failures}/"
                f"{self.config.max_bind_failures}): {e}"
            )
            if self._bind_failures >= self.config.max_bind_failures:
                await self._halt(str(e))
                return
            try:
                await self.host.bind()
            except HostBindError as rebind_error:
                logger.debug(f"Rebind failed: {rebind_error}")

        except Exception as e:
            logger.exception(f"Fatal error during {phase.name} tick")
            self.state = StateTransitionEngine.enter_error(self.state)
            await self._publish(
                BotEventType.ERROR, {"phase": phase.name, "error": str(e)}
            )
            await self._halt(f"fatal tick error: {e}")

    async def _halt(self, reason: str) -> None:
        self.pacer.active = False
        self.stop_reason = reason
        logger.info(f"Bot stopped: {reason}")
        await self.adapter.render_status(f"Bot stopped: {reason}")
        await self.adapter.bot_stopped(reason)
        await self._publish(
            BotEventType.BOT_STOPPED,
            {"reason": reason, "session": self.state.session.report()},
        )
