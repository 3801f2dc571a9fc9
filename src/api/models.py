"""Requests, Responses and broadcast Event models"""

from typing import Optional, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.amazons.board import MAX_BOARD_SIZE
from src.amazons.coordinate import Coordinate
from src.amazons.tiles import MAX_SEATS
from src.core.exceptions import InvalidConfigurationError
from src.core.models import ExternalId
from src.core.shared_types import (
    MatchStatus,
    RejectionReason,
    SeatType,
    TimeoutPolicy,
    TurnPhase,
)


class CoordinateModel(BaseModel):
    x: int
    y: int

    @classmethod
    def from_coordinate(cls, coord: Coordinate) -> Self:
        return cls(x=coord.x, y=coord.y)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.x, self.y)


# --- REQUEST MODELS ---
class SeatRequest(BaseModel):
    external_id: ExternalId
    type: SeatType
    accepted: bool = True


class PiecePlacementRequest(BaseModel):
    x: int
    y: int
    owner: int

    @field_validator(*["x", "y", "owner"])
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise InvalidConfigurationError(f"Piece placement values cannot be negative: {value}")
        return value


class StartMatchRequest(BaseModel):
    seats: list[SeatRequest]
    piece_config: list[PiecePlacementRequest]
    # None: use the server's configured default
    board_size: Optional[int] = None
    turn_timer_ms: Optional[int] = None
    allow_origin_burn: Optional[bool] = None
    timeout_policy: Optional[TimeoutPolicy] = None

    @field_validator("board_size")
    @classmethod
    def validate_board_size(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and not 1 <= value <= MAX_BOARD_SIZE:
            raise InvalidConfigurationError(
                f"Board size must be between 1 and {MAX_BOARD_SIZE}, got {value}"
            )
        return value

    @field_validator("turn_timer_ms")
    @classmethod
    def validate_turn_timer(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise InvalidConfigurationError(f"Turn timer cannot be negative: {value}")
        return value

    @model_validator(mode="after")
    def validate_pieces_and_seats(self) -> Self:
        """
        The piece configuration decides how many seats a match has: one per owner index.
        Exactly that many participants must have accepted.
        """
        if not self.piece_config:
            raise InvalidConfigurationError("A match needs at least one piece.")

        occupied: set[tuple[int, int]] = set()
        for piece in self.piece_config:
            # without a size, the board checks its bounds once the default size is known
            if self.board_size is not None and max(piece.x, piece.y) >= self.board_size:
                raise InvalidConfigurationError(
                    f"Piece at ({piece.x}, {piece.y}) is outside of the {self.board_size}x{self.board_size} board."
                )
            if (piece.x, piece.y) in occupied:
                raise InvalidConfigurationError(f"Two pieces placed on ({piece.x}, {piece.y}).")
            occupied.add((piece.x, piece.y))

        required_seats = max(piece.owner for piece in self.piece_config) + 1
        if required_seats > MAX_SEATS:
            raise InvalidConfigurationError(f"At most {MAX_SEATS} seats are supported.")

        accepted = [seat for seat in self.seats if seat.accepted]
        if len(accepted) != required_seats:
            raise InvalidConfigurationError(
                f"Piece configuration needs {required_seats} players, but {len(accepted)} accepted."
            )
        return self


class AttemptMoveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_id: UUID
    external_id: ExternalId
    from_: CoordinateModel = Field(alias="from")
    to: CoordinateModel


class AttemptBurnRequest(BaseModel):
    match_id: UUID
    external_id: ExternalId
    tile: CoordinateModel


class LeaveMatchRequest(BaseModel):
    match_id: UUID
    external_id: ExternalId


class GetMatchRequest(BaseModel):
    match_id: UUID


class RegisterUserRequest(BaseModel):
    username: str


# --- REQUEST BODIES (match id comes from the URL) ---
class MoveBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    external_id: ExternalId
    from_: CoordinateModel = Field(alias="from")
    to: CoordinateModel


class BurnBody(BaseModel):
    external_id: ExternalId
    tile: CoordinateModel


# --- RESPONSE MODELS ---
class MoveSuccess(BaseModel):
    to: CoordinateModel


class BurnSuccess(BaseModel):
    tile: CoordinateModel


class Rejection(BaseModel):
    reason: RejectionReason
    detail: str


class UserResponse(BaseModel):
    user_id: ExternalId
    username: str


# --- EVENT MODELS (broadcast) ---
class TileModel(BaseModel):
    owner: Optional[int] = None
    burned: bool = False


class BoardSnapshotEvent(BaseModel):
    match_id: UUID
    tiles: list[list[TileModel]]  # indexed as tiles[x][y]
    notation: str
    players: list[ExternalId]
    turn_seat: int
    phase: TurnPhase
    status: MatchStatus
    winner_seat: Optional[int] = None


class MatchFinishedEvent(BaseModel):
    match_id: UUID
    winner_seat: Optional[int]


MatchEvent = BoardSnapshotEvent | MatchFinishedEvent
