"""
cardpilot: an autopilot for one seat at a blackjack table.
"""

__version__ = "0.1.0"
