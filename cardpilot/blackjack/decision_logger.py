"""
Logging system for the bot's decision paths.
Tracks every decision point, table lookup, strategy deviation and phase change.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..common.card import Card
from .action import Action


@dataclass
class DecisionContext:
    """Context for a single decision point."""

    timestamp: datetime
    round_number: int
    hand_index: int
    hand_cards: List[Card]
    hand_value: int
    is_soft: bool
    is_pair: bool
    is_split_hand: bool
    dealer_upcard: Optional[Card]
    legal_actions: List[Action]
    recommended_action: Optional[Action] = None
    chosen_action: Optional[Action] = None
    deviation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "round": self.round_number,
            "hand_index": self.hand_index,
            "cards": [str(c) for c in self.hand_cards],
            "value": self.hand_value,
            "soft": self.is_soft,
            "pair": self.is_pair,
            "split_hand": self.is_split_hand,
            "dealer_up": str(self.dealer_upcard) if self.dealer_upcard else None,
            "legal_actions": [a.value for a in self.legal_actions],
            "recommended": (
                self.recommended_action.value if self.recommended_action else None
            ),
            "chosen": self.chosen_action.value if self.chosen_action else None,
            "deviation": self.deviation,
        }


class DecisionLogger:
    """Logs all decision-making processes of the bot."""

    def __init__(self, log_level=logging.DEBUG):
        self.logger = logging.getLogger("cardpilot.decisions")
        # Check environment variable to quiet logging in simulation runs
        if os.environ.get("CARDPILOT_DISABLE_LOGGING", "").lower() in (
            "1",
            "true",
            "yes",
        ):
            self.logger.setLevel(logging.ERROR)
        else:
            self.logger.setLevel(log_level)

        # Add console handler if none exists
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

        self.decision_history: List[DecisionContext] = []
        self.current_round_decisions: List[DecisionContext] = []

    def set_level(self, level):
        """Set the logging level."""
        self.logger.setLevel(level)

    def log_decision_point(self, context: DecisionContext):
        """Log a decision point with full context."""
        self.current_round_decisions.append(context)

        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"Decision for round {context.round_number} hand {context.hand_index}: "
                f"{[str(c) for c in context.hand_cards]} (value={context.hand_value}, "
                f"soft={context.is_soft}, pair={context.is_pair}) "
                f"vs dealer {context.dealer_upcard}"
            )
            self.logger.debug(
                f"Legal actions: {[a.value for a in context.legal_actions]}"
            )

        if context.chosen_action and self.logger.isEnabledFor(logging.INFO):
            self.logger.info(
                f"Hand {context.hand_index} chose {context.chosen_action.value} "
                f"(table: {context.recommended_action.value if context.recommended_action else 'n/a'})"
            )

    def log_strategy_lookup(
        self, hand_type: str, dealer_value: int, code: str, fallback_used: bool = False
    ):
        """Log a strategy table lookup."""
        if self.logger.isEnabledFor(logging.DEBUG):
            msg = f"Strategy lookup: {hand_type} vs {dealer_value} -> {code}"
            if fallback_used:
                msg += " (outside table, using fallback)"
            self.logger.debug(msg)

    def log_deviation(
        self, recommended: Action, substituted: Action, reason: str, critical: bool
    ):
        """Log a substitution of a recommended action the house currently disallows."""
        message = (
            f"Strategy deviation: {recommended.value} -> {substituted.value} ({reason})"
        )
        if critical:
            self.logger.error(f"CRITICAL {message}")
        else:
            self.logger.warning(message)

    def log_phase_transition(self, from_phase: str, to_phase: str, reason: str = ""):
        """Log automaton phase transitions."""
        if self.logger.isEnabledFor(logging.INFO):
            suffix = f" ({reason})" if reason else ""
            self.logger.info(f"Phase: {from_phase} -> {to_phase}{suffix}")

    def log_round_start(self, round_num: int, balance: Optional[float]):
        """Log the start of a new round."""
        if self.logger.isEnabledFor(logging.INFO):
            self.logger.info(
                f"=== Round {round_num} starting (balance: {balance}) ==="
            )
        self.current_round_decisions = []

    def log_round_end(self, round_num: int, outcomes: Dict[str, Any]):
        """Log the end of a round with outcomes."""
        if self.logger.isEnabledFor(logging.INFO):
            self.logger.info(f"=== Round {round_num} ended ===")
            for hand, outcome in outcomes.items():
                self.logger.info(f"{hand}: {outcome}")

        # Archive current round decisions
        self.decision_history.extend(self.current_round_decisions)
        self.current_round_decisions = []

    def get_decision_summary(self) -> Dict[str, Any]:
        """Get a summary of all decisions made."""
        summary: Dict[str, Any] = {
            "total_decisions": len(self.decision_history),
            "by_action": {},
            "deviation_count": 0,
            "split_count": 0,
            "double_count": 0,
        }

        for decision in self.decision_history:
            action = decision.chosen_action.value if decision.chosen_action else "none"
            summary["by_action"][action] = summary["by_action"].get(action, 0) + 1

            if decision.deviation:
                summary["deviation_count"] += 1
            if decision.chosen_action == Action.SPLIT:
                summary["split_count"] += 1
            elif decision.chosen_action == Action.DOUBLE:
                summary["double_count"] += 1

        return summary

    def export_decisions(self, filepath: str):
        """Export decision history to a file."""
        data = {
            "decisions": [d.to_dict() for d in self.decision_history],
            "summary": self.get_decision_summary(),
        }

        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)

        self.logger.info(
            f"Exported {len(self.decision_history)} decisions to {filepath}"
        )


# Global logger instance
decision_logger = DecisionLogger()
