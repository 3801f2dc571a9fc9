"""
Movement and burning rules

Key idea: pieces and arrows travel the same way, like a chess queen. So a single raycasting routine
answers "where can this piece go?" as well as "where can this piece shoot?".

All functions are stateless and pure: they never mutate the board they are given.
"""

from dataclasses import dataclass
from typing import Optional

from src.amazons.board import Board
from src.amazons.coordinate import DIRECTIONS, Coordinate, direction_between


@dataclass(frozen=True)
class Move:
    """Relocating a piece"""

    from_coord: Coordinate
    to_coord: Coordinate


# --- RAYCASTING ---
def reachable_tiles(board: Board, origin: Coordinate) -> list[Coordinate]:
    """
    Raycasting algorithm
    -----

    Walk along all 8 directions until we hit a piece, a burned tile or the edge of the board.
    Every empty tile passed on the way is reachable.
    """
    tiles: list[Coordinate] = []
    for direction in DIRECTIONS:
        current = origin.step(direction)
        while board.is_empty(current):
            tiles.append(current)
            current = current.step(direction)
    return tiles


def is_clear_line(board: Board, from_coord: Coordinate, to_coord: Coordinate) -> bool:
    """True if `to_coord` is an empty tile on a straight, unobstructed line from `from_coord`."""
    # cheap rejection first: not a straight line at all
    if direction_between(from_coord, to_coord) is None:
        return False
    if not (board.is_within_bounds(from_coord) and board.is_empty(to_coord)):
        return False
    return all(board.is_empty(coord) for coord in board.line_path(from_coord, to_coord))


# --- LEGALITY ---
def is_legal_move(board: Board, seat: int, from_coord: Coordinate, to_coord: Coordinate) -> bool:
    if direction_between(from_coord, to_coord) is None:
        return False
    if not board.is_within_bounds(from_coord):
        return False
    if not board.tile_at(from_coord).is_owned_by(seat):
        return False
    return is_clear_line(board, from_coord, to_coord)


def is_legal_burn(
    board: Board,
    seat: int,
    piece_position: Coordinate,
    tile: Coordinate,
    vacated: Optional[Coordinate] = None,
    allow_origin_burn: bool = True,
) -> bool:
    """
    The arrow is shot from the piece's position AFTER its move.

    * The tile must be empty: shooting at the piece itself (or any other piece) is never allowed.
    * `vacated` is the tile the piece just moved away from. It is empty, so normally a valid target.
      With allow_origin_burn=False it is forbidden.
    """
    if direction_between(piece_position, tile) is None:
        return False
    if not board.is_within_bounds(piece_position):
        return False
    if not board.tile_at(piece_position).is_owned_by(seat):
        return False
    if not allow_origin_burn and vacated is not None and tile == vacated:
        return False
    return is_clear_line(board, piece_position, tile)


def has_any_legal_move(board: Board, seat: int) -> bool:
    """
    Terminal condition check: can any of the seat's pieces take a single step in any direction?

    A piece that can reach anything at all can reach its neighbour first, so checking adjacent tiles is enough.
    """
    for position in board.piece_positions(seat):
        for direction in DIRECTIONS:
            if board.is_empty(position.step(direction)):
                return True
    return False


def leaves_a_burn(board: Board, seat: int, move: Move, allow_origin_burn: bool = True) -> bool:
    """
    Can the piece still burn a tile after `move`? Expects the move to be legal, but not yet applied.

    The vacated origin is always reachable from the new position, so this only fails when origin burns are forbidden.
    """
    if allow_origin_burn:
        return True
    after_move = board.copy()
    after_move.apply_move(move.from_coord, move.to_coord)
    return any(tile != move.from_coord for tile in reachable_tiles(after_move, move.to_coord))


def has_any_legal_turn(board: Board, seat: int, allow_origin_burn: bool = True) -> bool:
    """
    Terminal condition check: can the seat play a whole turn, a move followed by a burn?

    With origin burns allowed any move will do. Otherwise a move into a pocket whose only empty tile is the one just
    left does not count.
    """
    if allow_origin_burn:
        return has_any_legal_move(board, seat)
    return any(leaves_a_burn(board, seat, move, allow_origin_burn) for move in legal_moves(board, seat))


# --- ENUMERATION ---
def legal_moves(board: Board, seat: int) -> list[Move]:
    """Every move of the rulebook. Callers enforcing the origin-burn policy filter with `leaves_a_burn`."""
    return [
        Move(from_coord=position, to_coord=target)
        for position in board.piece_positions(seat)
        for target in reachable_tiles(board, position)
    ]


def legal_burns(
    board: Board,
    seat: int,
    piece_position: Coordinate,
    vacated: Optional[Coordinate] = None,
    allow_origin_burn: bool = True,
) -> list[Coordinate]:
    """All tiles the piece on `piece_position` may burn. Expects the move to be applied on `board` already."""
    if not board.tile_at(piece_position).is_owned_by(seat):
        return []
    return [
        tile
        for tile in reachable_tiles(board, piece_position)
        if allow_origin_burn or tile != vacated
    ]


def mobility(board: Board, seat: int) -> int:
    """Number of (piece, destination) pairs available to a seat. Used as evaluation by the AI."""
    return sum(len(reachable_tiles(board, position)) for position in board.piece_positions(seat))
