"""
A coordinate on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

Vector = tuple[int, int]

# Amazons move like chess queens: horizontally, vertically and diagonally
DIRECTIONS: tuple[Vector, ...] = (
    (1, 0),
    (-1, 0),
    (0, 1),
    (0, -1),
    (1, 1),
    (1, -1),
    (-1, 1),
    (-1, -1),
)


@dataclass(frozen=True, order=True)
class Coordinate:
    x: int
    y: int

    def step(self, direction: Vector) -> Coordinate:
        dx, dy = direction
        return Coordinate(self.x + dx, self.y + dy)

    def is_within(self, size: int) -> bool:
        return (0 <= self.x < size) and (0 <= self.y < size)


def direction_between(from_coord: Coordinate, to_coord: Coordinate) -> Vector | None:
    """
    Unit step from one coordinate towards the other, if they share a rank, file or exact diagonal.

    None for non-colinear or zero-length requests.
    """
    dx = to_coord.x - from_coord.x
    dy = to_coord.y - from_coord.y
    if dx == 0 and dy == 0:
        return None
    if dx != 0 and dy != 0 and abs(dx) != abs(dy):
        return None
    return ((dx > 0) - (dx < 0), (dy > 0) - (dy < 0))
