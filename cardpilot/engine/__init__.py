"""
The bot's runtime: stabilized observation, the turn automaton and the
fixed-cadence round driver.
"""

from cardpilot.engine.pacing import Pacer
from cardpilot.engine.observer import StabilizedObserver
from cardpilot.engine.automaton import TurnAutomaton
from cardpilot.engine.driver import RoundDriver

__all__ = ["Pacer", "StabilizedObserver", "TurnAutomaton", "RoundDriver"]
