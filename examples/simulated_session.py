#!/usr/bin/env python3
"""
Run the bot against the simulated table and print the session report.

Example:
    python examples/simulated_session.py --rounds 20 --seed 7 --reveal-lag 1
"""

import argparse
import asyncio
import json
import logging

from cardpilot.adapters import CLIAdapter
from cardpilot.api import Autopilot
from cardpilot.blackjack.decision_logger import decision_logger
from cardpilot.config import BotConfig
from cardpilot.events import BotEventType
from cardpilot.host import SimulatedTable


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Let the bot play a simulated blackjack table"
    )
    parser.add_argument(
        "-r", "--rounds", type=int, default=10, help="Number of rounds to play"
    )
    parser.add_argument("-s", "--seed", type=int, help="Shuffle seed")
    parser.add_argument(
        "-b", "--bankroll", type=float, default=1000.0, help="Starting bankroll"
    )
    parser.add_argument("--bet", type=float, default=10.0, help="Fixed bet")
    parser.add_argument(
        "--reveal-lag",
        type=int,
        default=0,
        help="Reads during which a freshly dealt card is unreadable",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=10.0,
        help="Speed-up factor applied to every interval and delay",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Echo every bot event"
    )
    parser.add_argument(
        "--export", help="Write the decision history to this JSON file"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    defaults = BotConfig()
    scaled = {
        name: getattr(defaults, name) / args.speed
        for name in (
            "tick_interval",
            "frame_interval",
            "observe_interval",
            "split_settle_delay",
            "round_settle_delay",
            "error_cooldown",
            "bind_retry_delay",
        )
    }
    config = BotConfig(**scaled)

    table = SimulatedTable(
        seed=args.seed,
        bet=args.bet,
        balance=args.bankroll,
        reveal_lag=args.reveal_lag,
    )
    pilot = Autopilot(table, CLIAdapter(verbose=args.verbose), config)

    finished = asyncio.Event()
    rounds = {"ended": 0}

    def on_round_ended(data):
        rounds["ended"] += 1
        if rounds["ended"] >= args.rounds:
            finished.set()

    pilot.on(BotEventType.ROUND_ENDED, on_round_ended)
    pilot.on(BotEventType.BOT_STOPPED, lambda data: finished.set())

    if not await pilot.start():
        print(f"Could not start: {pilot.driver.stop_reason}")
        return

    try:
        await finished.wait()
    finally:
        await pilot.stop("session complete")

    print(json.dumps(pilot.report(), indent=2))

    if args.export:
        decision_logger.export_decisions(args.export)


if __name__ == "__main__":
    asyncio.run(main())
