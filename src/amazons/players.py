"""Seats: who sits where in a match."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Self

from src.core.exceptions import InvalidConfigurationError, UnknownParticipantError
from src.core.models import ExternalId
from src.core.shared_types import SeatType


@dataclass(frozen=True)
class Seat:
    index: int
    external_id: ExternalId
    seat_type: SeatType

    @property
    def is_automated(self) -> bool:
        return self.seat_type == SeatType.AUTOMATED


class PlayerRegistry:
    """External identity <-> internal seat index. Filled once when the match begins, read-only afterwards."""

    def __init__(self, seats: tuple[Seat, ...]) -> None:
        self._seats = seats
        self._by_external_id: Mapping[ExternalId, int] = MappingProxyType(
            {seat.external_id: seat.index for seat in seats}
        )

    @classmethod
    def from_participants(cls, participants: Iterable[tuple[ExternalId, SeatType]]) -> Self:
        """Seat indices follow the order in which participants are listed."""
        seats = tuple(
            Seat(index, external_id, seat_type)
            for index, (external_id, seat_type) in enumerate(participants)
        )
        external_ids = [seat.external_id for seat in seats]
        if len(set(external_ids)) != len(external_ids):
            raise InvalidConfigurationError(
                f"Each participant can only take one seat: {external_ids}"
            )
        return cls(seats)

    @property
    def seats(self) -> tuple[Seat, ...]:
        return self._seats

    def __len__(self) -> int:
        return len(self._seats)

    def internal_seat(self, external_id: ExternalId) -> int:
        if external_id not in self._by_external_id:
            raise UnknownParticipantError(f"{external_id!r} does not take part in this match")
        return self._by_external_id[external_id]

    def external_id(self, seat: int) -> ExternalId:
        return self._seats[seat].external_id

    def seat(self, index: int) -> Seat:
        return self._seats[index]

    def is_automated(self, seat: int) -> bool:
        return self._seats[seat].is_automated

    def human_seats(self) -> list[int]:
        return [seat.index for seat in self._seats if not seat.is_automated]
