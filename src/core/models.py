"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
The API layer parses loosely-typed payloads into these validated structures. The domain layer (src/amazons) only
ever receives these, never raw request data.
"""

from dataclasses import dataclass

from src.core.shared_types import SeatType, TimeoutPolicy

ExternalId = str


@dataclass(frozen=True)
class PiecePlacement:
    x: int
    y: int
    owner: int


@dataclass(frozen=True)
class SeatSpec:
    """A participant that accepted the match. Automated seats get their identity assigned at setup."""

    external_id: ExternalId
    seat_type: SeatType


@dataclass(frozen=True)
class MatchConfig:
    """Everything needed to create and begin a match."""

    seats: tuple[SeatSpec, ...]
    placements: tuple[PiecePlacement, ...]
    board_size: int
    turn_timer_ms: int = 0
    allow_origin_burn: bool = True
    timeout_policy: TimeoutPolicy = TimeoutPolicy.FORFEIT_MATCH


@dataclass
class UserModel:
    """Transport-safe representation of a registered user."""

    username: str
    user_id: ExternalId
