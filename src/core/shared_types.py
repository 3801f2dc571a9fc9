"""
Type definitions used across layers
"""

from enum import StrEnum


class MatchStatus(StrEnum):
    SETUP = "setup"
    ACTIVE = "active"
    FINISHED = "finished"
    ABORTED = "aborted"


class TurnPhase(StrEnum):
    AWAITING_MOVE = "awaiting move"
    AWAITING_BURN = "awaiting burn"


class SeatType(StrEnum):
    HUMAN = "human"
    AUTOMATED = "bot"


class TimeoutPolicy(StrEnum):
    """What happens when a seat runs out of time for its turn."""

    FORFEIT_MATCH = "forfeit_match"
    SKIP_TURN = "skip_turn"


class RejectionReason(StrEnum):
    OUT_OF_BOUNDS = "out of bounds"
    ILLEGAL_MOVE = "illegal move"
    ILLEGAL_BURN = "illegal burn"
    NOT_YOUR_TURN = "not your turn"
    WRONG_PHASE = "wrong phase"
    UNKNOWN_PARTICIPANT = "unknown participant"
    UNKNOWN_MATCH = "unknown match"
    INVALID_CONFIGURATION = "invalid configuration"
