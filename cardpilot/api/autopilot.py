"""
High-level API for running the bot against a game host.

`Autopilot` wires a host, a UI adapter and a configuration into an automaton
and a driver, and exposes start/stop as the UI sink's controls.
"""

import asyncio
from typing import Any, Callable, Dict, Optional, Union

from cardpilot.adapters import DummyAdapter, PlatformAdapter
from cardpilot.blackjack.decision_logger import decision_logger
from cardpilot.config import BotConfig
from cardpilot.engine.automaton import TurnAutomaton
from cardpilot.engine.driver import RoundDriver
from cardpilot.engine.pacing import Pacer
from cardpilot.events import BotEventType, EventBus, EventPriority
from cardpilot.host.base import GameHost
from cardpilot.state.models import BotState


class Autopilot:
    """
    Runs the bot as a background task.

    Example:
        ```python
        pilot = Autopilot(SimulatedTable(seed=7), CLIAdapter())
        pilot.on(BotEventType.ROUND_ENDED, print)
        await pilot.start()
        await asyncio.sleep(60)
        await pilot.stop()
        print(pilot.report())
        ```
    """

    def __init__(
        self,
        host: GameHost,
        adapter: Optional[PlatformAdapter] = None,
        config: Optional[BotConfig] = None,
        pacer: Optional[Pacer] = None,
    ):
        """
        Args:
            host: The game to play
            adapter: Where statuses and events go; a recording adapter if None
            config: Bot settings; defaults if None
            pacer: Clock and timed waits; real time if None
        """
        self.host = host
        self.adapter = adapter or DummyAdapter()
        self.config = config or BotConfig()
        self.pacer = pacer or Pacer()
        self.event_bus = EventBus.get_instance()
        self.event_handlers = {}

        self.automaton = TurnAutomaton(
            host, self.adapter, self.config, self.pacer, self.event_bus
        )
        self.driver = RoundDriver(
            self.automaton, host, self.adapter, self.config, self.pacer, self.event_bus
        )
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def state(self) -> BotState:
        """Read-only view of the current bot state."""
        return self.driver.state

    async def start(self) -> bool:
        """
        Bind to the host and start the driver loop in the background.

        Returns:
            True if the bot started; otherwise the stop reason is in
            `self.driver.stop_reason`
        """
        if self.running:
            return True

        await self.adapter.initialize()
        if not await self.driver.start():
            return False

        self._task = asyncio.create_task(self.driver.run())
        return True

    async def stop(self, reason: str = "stopped by user") -> None:
        """
        Stop scheduling and wait for the in-flight tick to finish.

        Handlers registered through `on` are removed from the shared event bus
        once the driver has published its stop.
        """
        await self.driver.stop(reason)
        await self.wait_stopped()
        for unsubscribers in self.event_handlers.values():
            for unsubscribe in unsubscribers:
                unsubscribe()
        self.event_handlers.clear()
        await self.adapter.shutdown()

    async def wait_stopped(self) -> None:
        """Wait until the driver loop has exited."""
        if self._task is not None:
            await self._task
            self._task = None

    def on(
        self,
        event_type: Union[str, BotEventType],
        handler: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Register an event handler.

        Args:
            event_type: Type of event to listen for
            handler: Event handler function
            priority: Priority level for the handler

        Returns:
            Function to call to unsubscribe the handler
        """
        if isinstance(event_type, str):
            try:
                event_type = BotEventType[event_type.upper()]
            except KeyError:
                # Keep as string if not a known event type
                pass

        unsubscribe_func = self.event_bus.on(event_type, handler, priority)
        self.event_handlers.setdefault(event_type, []).append(unsubscribe_func)
        return unsubscribe_func

    def report(self) -> Dict[str, Any]:
        """Session counters plus a summary of the decisions made."""
        report = self.driver.state.session.report()
        report["decisions"] = decision_logger.get_decision_summary()
        report["stop_reason"] = self.driver.stop_reason
        return report
