"""The Board owns the grid of tiles: where the pieces are, and which tiles have been burned."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Self

from src.amazons.coordinate import Coordinate, direction_between
from src.amazons.tiles import BURNED, EMPTY, MAX_SEATS, TileKind, TileState
from src.core.exceptions import (
    InternalInvariantViolationError,
    InvalidConfigurationError,
    OutOfBoundsError,
)
from src.core.models import PiecePlacement

MAX_BOARD_SIZE = 26

# Rows (one per y) are separated by slashes in the board notation.
ROW_SEPARATOR = "/"


@dataclass(frozen=True)
class BoardSnapshot:
    """
    Immutable copy of the full grid, indexed as tiles[x][y].

    Safe to hand to the transport layer: later moves on the Board are never visible through it.
    """

    size: int
    tiles: tuple[tuple[TileState, ...], ...]

    def tile_at(self, coord: Coordinate) -> TileState:
        return self.tiles[coord.x][coord.y]

    def burned_tiles(self) -> frozenset[Coordinate]:
        return frozenset(
            Coordinate(x, y)
            for x, column in enumerate(self.tiles)
            for y, tile in enumerate(column)
            if tile.is_burned
        )

    def to_notation(self) -> str:
        return ROW_SEPARATOR.join(
            _row_to_notation(self.tiles[x][y] for x in range(self.size))
            for y in range(self.size)
        )


def _row_to_notation(row: Iterable[TileState]) -> str:
    """Notation of a single row: empty runs as numbers, burned as 'x', pieces as the seat's letter."""
    characters: list[str] = []
    empty_count = 0
    for tile in row:
        if tile.is_empty:
            empty_count += 1
            continue
        if empty_count > 0:
            characters.append(str(empty_count))
            empty_count = 0
        characters.append(tile.to_notation())

    if empty_count > 0:
        characters.append(str(empty_count))
    return "".join(characters)


@dataclass
class Board:
    size: int
    tiles: dict[Coordinate, TileState]

    @classmethod
    def empty(cls, size: int) -> Self:
        if not 1 <= size <= MAX_BOARD_SIZE:
            raise InvalidConfigurationError(
                f"Board size must be between 1 and {MAX_BOARD_SIZE}, got {size}"
            )
        tiles = {Coordinate(x, y): EMPTY for x in range(size) for y in range(size)}
        return cls(size, tiles)

    @classmethod
    def from_placements(cls, size: int, placements: Iterable[PiecePlacement]) -> Self:
        """Set up a board from (x, y, owner) triples. Every tile not listed starts out empty."""
        board = cls.empty(size)
        for placement in placements:
            coord = Coordinate(placement.x, placement.y)
            if not board.is_within_bounds(coord):
                raise InvalidConfigurationError(
                    f"Piece placed outside of the {size}x{size} board: {placement}"
                )
            if not 0 <= placement.owner < MAX_SEATS:
                raise InvalidConfigurationError(f"Invalid owner for piece: {placement}")
            if not board.tiles[coord].is_empty:
                raise InvalidConfigurationError(f"Two pieces placed on {coord}")
            board.tiles[coord] = TileState.occupied(placement.owner)
        return board

    @classmethod
    def from_notation(cls, notation: str) -> Self:
        """
        Construct a board from its notation.

        ex) 4x4 board with a piece of seat 0 in the corner (0, 0), one of seat 1 in (3, 3) and a burned tile at (1, 1):
        a3/1x2/4/3b
        * one row per y (starting at y=0), separated by slashes
        * inside a row, x runs from 0 upwards
        * a number denotes that many empty tiles, 'x' is a burned tile, 'a', 'b', ... a piece of seat 0, 1, ...
        """
        rows = notation.strip().split(ROW_SEPARATOR)
        board = cls.empty(len(rows))
        for y, row in enumerate(rows):
            x = 0
            digits = ""
            for character in row + " ":
                if character.isdigit():
                    digits += character
                    continue
                if digits:
                    x += int(digits)
                    digits = ""
                if character == " ":
                    break
                if x >= board.size:
                    raise InvalidConfigurationError(f"Row {y} too long in {notation!r}")
                board.tiles[Coordinate(x, y)] = TileState.from_notation(character)
                x += 1
            if x != board.size:
                raise InvalidConfigurationError(
                    f"Row {y} describes {x} tiles instead of {board.size} in {notation!r}"
                )
        return board

    def to_notation(self) -> str:
        return self.snapshot().to_notation()

    # --- QUERIES ---
    def is_within_bounds(self, coord: Coordinate) -> bool:
        return coord.is_within(self.size)

    def tile_at(self, coord: Coordinate) -> TileState:
        if not self.is_within_bounds(coord):
            raise OutOfBoundsError(
                f"({coord.x}, {coord.y}) is not on the {self.size}x{self.size} board"
            )
        return self.tiles[coord]

    def is_empty(self, coord: Coordinate) -> bool:
        """Off-board coordinates count as blocked"""
        return self.is_within_bounds(coord) and self.tiles[coord].is_empty

    def piece_positions(self, seat: int) -> list[Coordinate]:
        return sorted(coord for coord, tile in self.tiles.items() if tile.is_owned_by(seat))

    def piece_counts(self) -> dict[int, int]:
        counts = Counter(
            tile.owner for tile in self.tiles.values() if tile.kind == TileKind.OCCUPIED
        )
        return dict(counts)

    @property
    def seat_count(self) -> int:
        """Number of seats implied by the pieces on the board (highest owner + 1)."""
        owners = self.piece_counts().keys()
        return max(owners) + 1 if owners else 0

    def burned_tiles(self) -> set[Coordinate]:
        return {coord for coord, tile in self.tiles.items() if tile.is_burned}

    def empty_tiles(self) -> list[Coordinate]:
        return sorted(coord for coord, tile in self.tiles.items() if tile.is_empty)

    def line_path(self, from_coord: Coordinate, to_coord: Coordinate) -> list[Coordinate]:
        """
        Coordinates strictly between the two ends, in order, walking from `from_coord` towards `to_coord`.

        Empty list if the two are not on a shared rank, file or diagonal, if they coincide, or if either end is off the board.
        (A list is also empty for adjacent tiles, callers that care must check colinearity themselves.)
        """
        if not (self.is_within_bounds(from_coord) and self.is_within_bounds(to_coord)):
            return []
        direction = direction_between(from_coord, to_coord)
        if direction is None:
            return []

        path: list[Coordinate] = []
        current = from_coord.step(direction)
        while current != to_coord:
            path.append(current)
            current = current.step(direction)
        return path

    # --- MUTATIONS ---
    def apply_move(self, from_coord: Coordinate, to_coord: Coordinate) -> None:
        """Relocate a piece. Legality is checked by the rules beforehand; a broken precondition here is a bug."""
        moving = self.tile_at(from_coord)
        target = self.tile_at(to_coord)
        if moving.kind != TileKind.OCCUPIED or not target.is_empty:
            raise InternalInvariantViolationError(
                f"Cannot move from {from_coord} ({moving.kind.name}) to {to_coord} ({target.kind.name})"
            )
        self.tiles[from_coord] = EMPTY
        self.tiles[to_coord] = moving

    def apply_burn(self, coord: Coordinate) -> None:
        """Burned tiles stay burned for the rest of the match."""
        target = self.tile_at(coord)
        if not target.is_empty:
            raise InternalInvariantViolationError(
                f"Cannot burn {coord}: tile is {target.kind.name}"
            )
        self.tiles[coord] = BURNED

    def copy(self) -> Self:
        """Independent board to try moves on. Tile states are immutable, so a shallow copy of the grid is enough."""
        return type(self)(self.size, dict(self.tiles))

    def snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            size=self.size,
            tiles=tuple(
                tuple(self.tiles[Coordinate(x, y)] for y in range(self.size))
                for x in range(self.size)
            ),
        )

    @classmethod
    def from_snapshot(cls, snapshot: BoardSnapshot) -> Self:
        tiles = {
            Coordinate(x, y): tile
            for x, column in enumerate(snapshot.tiles)
            for y, tile in enumerate(column)
        }
        return cls(snapshot.size, tiles)
