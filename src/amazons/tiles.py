"""Defines the states a tile can be in"""

from dataclasses import dataclass
from enum import Enum, auto
from string import ascii_lowercase
from typing import Optional, Self

from src.core.exceptions import InvalidConfigurationError

BURNED_CHARACTER = "x"
# a piece of seat 0 is written 'a', seat 1 'b', ... ('x' is taken by burned tiles)
SEAT_CHARACTERS = ascii_lowercase.replace(BURNED_CHARACTER, "")
MAX_SEATS = len(SEAT_CHARACTERS)


class TileKind(Enum):
    EMPTY = auto()
    OCCUPIED = auto()
    BURNED = auto()


@dataclass(frozen=True)
class TileState:
    kind: TileKind
    owner: Optional[int] = None

    @classmethod
    def occupied(cls, seat: int) -> Self:
        return cls(TileKind.OCCUPIED, seat)

    @classmethod
    def from_notation(cls, character: str) -> Self:
        if character == BURNED_CHARACTER:
            return cls(TileKind.BURNED)
        if character in SEAT_CHARACTERS:
            return cls.occupied(SEAT_CHARACTERS.index(character))
        raise InvalidConfigurationError(f"Unknown tile character {character!r}")

    def to_notation(self) -> str:
        """Empty tiles are written as run lengths by the board, so they have no character of their own."""
        if self.kind == TileKind.BURNED:
            return BURNED_CHARACTER
        if self.kind == TileKind.OCCUPIED:
            # for the type checker
            assert self.owner is not None
            return SEAT_CHARACTERS[self.owner]
        return ""

    @property
    def is_empty(self) -> bool:
        return self.kind == TileKind.EMPTY

    @property
    def is_burned(self) -> bool:
        return self.kind == TileKind.BURNED

    def is_owned_by(self, seat: int) -> bool:
        return self.kind == TileKind.OCCUPIED and self.owner == seat


EMPTY = TileState(TileKind.EMPTY)
BURNED = TileState(TileKind.BURNED)
