"""
The Match class is the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a turn of Amazons:
a move, followed by a burn from the moved piece's new position.

The Match raises an ActionRejectedError subclass whenever an action is refused. Nothing is mutated in that case.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Optional
from uuid import UUID

from src.amazons.board import Board, BoardSnapshot
from src.amazons.coordinate import Coordinate
from src.amazons.players import PlayerRegistry
from src.amazons.rules import Move, has_any_legal_turn, is_legal_burn, is_legal_move, leaves_a_burn
from src.core.exceptions import (
    IllegalBurnError,
    IllegalMoveError,
    InternalInvariantViolationError,
    InvalidConfigurationError,
    NotYourTurnError,
    WrongPhaseError,
)
from src.core.models import ExternalId
from src.core.shared_types import MatchStatus, TimeoutPolicy, TurnPhase

logger = logging.getLogger(__name__)


class ActionKind(Enum):
    MOVE = auto()
    BURN = auto()
    SKIP = auto()


@dataclass(frozen=True)
class MoveRecord:
    """One accepted mutation, with the board as it looked right after it."""

    match_id: UUID
    seat: int
    kind: ActionKind
    snapshot: BoardSnapshot
    from_coord: Optional[Coordinate] = None
    to_coord: Optional[Coordinate] = None
    burned: Optional[Coordinate] = None


@dataclass
class Match:
    # --- DOMAIN LAYER API CALLED BY SERVICE ---

    match_id: UUID
    allow_origin_burn: bool = True
    timeout_policy: TimeoutPolicy = TimeoutPolicy.FORFEIT_MATCH
    status: MatchStatus = MatchStatus.SETUP
    phase: TurnPhase = TurnPhase.AWAITING_MOVE
    turn_seat: int = 0
    turn_number: int = 0
    turn_time_budget_ms: int = 0
    winner: Optional[int] = None
    board: Board = field(default_factory=lambda: Board.empty(1))
    players: PlayerRegistry = field(default_factory=lambda: PlayerRegistry(()))
    departed: set[int] = field(default_factory=set)
    history: list[MoveRecord] = field(default_factory=list)
    initial_snapshot: Optional[BoardSnapshot] = None
    # where the piece of the current turn came from / went to (only set while awaiting the burn)
    moved_from: Optional[Coordinate] = None
    moved_to: Optional[Coordinate] = None

    def begin(self, players: PlayerRegistry, board: Board, turn_time_budget_ms: int = 0) -> None:
        """
        Setup --> Active
        ----

        The seats must match the piece configuration exactly: one seat per owner index, from 0 up to the highest owner.
        On failure the match stays in Setup.
        """
        if self.status != MatchStatus.SETUP:
            raise WrongPhaseError(f"Match {self.match_id} has already begun. status: {self.status}")

        required_seats = board.seat_count
        if required_seats == 0 or len(players) != required_seats:
            raise InvalidConfigurationError(
                f"Piece configuration needs {required_seats} seats, but {len(players)} were provided."
            )
        if turn_time_budget_ms < 0:
            raise InvalidConfigurationError(f"Turn timer cannot be negative: {turn_time_budget_ms}")

        self.players = players
        self.board = board
        self.turn_time_budget_ms = turn_time_budget_ms
        self.initial_snapshot = board.snapshot()
        self._change_status(MatchStatus.ACTIVE)
        logger.info(
            "Match %s begun: %d seats on a %dx%d board",
            self.match_id,
            len(players),
            board.size,
            board.size,
        )

        # Someone might be boxed in from the very start
        self._update_match_status(previous_seat=self._previous_seat(self.turn_seat))

    def get_internal_seat(self, external_id: ExternalId) -> int:
        return self.players.internal_seat(external_id)

    def attempt_move(self, acting_seat: int, from_coord: Coordinate, to_coord: Coordinate) -> MoveRecord:
        """
        Attempt the first half of a turn
        -----

        1. the match must be active and it must be your turn
        2. you have not moved yet this turn
        3. the rules must allow the move (raises OutOfBoundsError for coordinates off the board),
           and the moved piece must still have a tile to burn afterwards
        4. update the board, record the move, wait for the burn
        """
        self._assert_active()
        self._assert_your_turn(acting_seat)
        self._assert_phase(TurnPhase.AWAITING_MOVE)

        # raise OutOfBoundsError before asking the rules
        self.board.tile_at(from_coord)
        self.board.tile_at(to_coord)
        if not is_legal_move(self.board, acting_seat, from_coord, to_coord):
            raise IllegalMoveError(
                f"Seat {acting_seat} cannot move from ({from_coord.x}, {from_coord.y}) to ({to_coord.x}, {to_coord.y})"
            )
        if not leaves_a_burn(self.board, acting_seat, Move(from_coord, to_coord), self.allow_origin_burn):
            raise IllegalMoveError(
                f"Seat {acting_seat} cannot move to ({to_coord.x}, {to_coord.y}): no tile left to burn from there"
            )

        self.board.apply_move(from_coord, to_coord)
        self.moved_from = from_coord
        self.moved_to = to_coord
        self.phase = TurnPhase.AWAITING_BURN
        record = self._record(
            acting_seat, ActionKind.MOVE, from_coord=from_coord, to_coord=to_coord
        )
        logger.debug("Match %s: seat %d moved %s -> %s", self.match_id, acting_seat, from_coord, to_coord)
        return record

    def attempt_burn(self, acting_seat: int, tile: Coordinate) -> MoveRecord:
        """
        Attempt the second half of a turn
        -----

        1. the match must be active, it must be your turn and you must have moved already
        2. the arrow must travel in a clear straight line from the piece that just moved
        3. update the board, record the burn
        4. pass the turn on and check whether the next seat can still move at all
        """
        self._assert_active()
        self._assert_your_turn(acting_seat)
        self._assert_phase(TurnPhase.AWAITING_BURN)

        # for the type checker: both are set while awaiting a burn
        assert self.moved_to is not None

        self.board.tile_at(tile)
        if not is_legal_burn(
            self.board,
            acting_seat,
            self.moved_to,
            tile,
            vacated=self.moved_from,
            allow_origin_burn=self.allow_origin_burn,
        ):
            raise IllegalBurnError(
                f"Seat {acting_seat} cannot burn ({tile.x}, {tile.y}) from ({self.moved_to.x}, {self.moved_to.y})"
            )

        self.board.apply_burn(tile)
        record = self._record(acting_seat, ActionKind.BURN, burned=tile)
        logger.debug("Match %s: seat %d burned %s", self.match_id, acting_seat, tile)

        self._advance_turn()
        self._update_match_status(previous_seat=acting_seat)
        return record

    def expire_turn(self) -> None:
        """
        The current seat ran out of time.

        * FORFEIT_MATCH: the match ends, the next seat in order wins.
        * SKIP_TURN: the turn passes on as is. A piece that was already moved stays where it is, no tile is burned.
        """
        self._assert_active()
        expired_seat = self.turn_seat
        logger.info(
            "Match %s: seat %d ran out of time (%s)", self.match_id, expired_seat, self.timeout_policy
        )

        if self.timeout_policy == TimeoutPolicy.FORFEIT_MATCH:
            self._finish(winner=self._next_seat(expired_seat))
            return

        self._record(expired_seat, ActionKind.SKIP)
        self._advance_turn()
        self._update_match_status(previous_seat=expired_seat)

    def depart(self, seat: int) -> None:
        """
        A participant left the match.

        Once at most one seat is left, that seat wins. Otherwise, the turn moves on if it was the departed seat's turn.
        """
        if self.is_over or seat in self.departed:
            return

        self.departed.add(seat)
        logger.info("Match %s: seat %d left", self.match_id, seat)
        if self.status != MatchStatus.ACTIVE:
            return

        remaining = self.remaining_seats()
        if len(remaining) <= 1:
            self._finish(winner=remaining[0] if remaining else None)
            return

        if seat == self.turn_seat:
            self._advance_turn()
            self._update_match_status(previous_seat=self._previous_seat(self.turn_seat))

    def abort(self, reason: str) -> None:
        """Quarantine the match. Used when the engine itself misbehaved, or everybody left."""
        if self.is_over:
            return
        logger.warning("Match %s aborted: %s", self.match_id, reason)
        self._change_status(MatchStatus.ABORTED)

    # --- STATE INFO ---
    @property
    def is_over(self) -> bool:
        return self.status in (MatchStatus.FINISHED, MatchStatus.ABORTED)

    def remaining_seats(self) -> list[int]:
        return [seat.index for seat in self.players.seats if seat.index not in self.departed]

    def snapshot(self) -> BoardSnapshot:
        return self.board.snapshot()

    # -- PRIVATE HELPERS ---
    def _assert_active(self) -> None:
        if self.status != MatchStatus.ACTIVE:
            raise WrongPhaseError(f"Match is not active. status: {self.status}")

    def _assert_your_turn(self, seat: int) -> None:
        if seat != self.turn_seat:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for seat {self.turn_seat} to finish its turn first."
            )

    def _assert_phase(self, phase: TurnPhase) -> None:
        if self.phase != phase:
            raise WrongPhaseError(f"Expected the match to be {phase}, but it is {self.phase}")

    def _next_seat(self, seat: int) -> int:
        """Next seat in seat order (wrapping around) that has not left the match."""
        seat_count = len(self.players)
        for offset in range(1, seat_count + 1):
            candidate = (seat + offset) % seat_count
            if candidate not in self.departed:
                return candidate
        return seat

    def _previous_seat(self, seat: int) -> int:
        seat_count = len(self.players)
        for offset in range(1, seat_count + 1):
            candidate = (seat - offset) % seat_count
            if candidate not in self.departed:
                return candidate
        return seat

    def _advance_turn(self) -> None:
        self.turn_seat = self._next_seat(self.turn_seat)
        self.turn_number += 1
        self.phase = TurnPhase.AWAITING_MOVE
        self.moved_from = None
        self.moved_to = None

    def _update_match_status(self, previous_seat: int) -> None:
        """Terminal condition: the seat that is about to move cannot play a turn. The seat before it wins."""
        if not has_any_legal_turn(self.board, self.turn_seat, self.allow_origin_burn):
            logger.info("Match %s: seat %d has no legal move left", self.match_id, self.turn_seat)
            self._finish(winner=previous_seat)

    def _finish(self, winner: Optional[int]) -> None:
        self.winner = winner
        self._change_status(MatchStatus.FINISHED)
        logger.info("Match %s finished. winner: seat %s", self.match_id, winner)

    def _change_status(self, new_status: MatchStatus) -> None:
        self.status = new_status

    def _record(
        self,
        seat: int,
        kind: ActionKind,
        from_coord: Optional[Coordinate] = None,
        to_coord: Optional[Coordinate] = None,
        burned: Optional[Coordinate] = None,
    ) -> MoveRecord:
        record = MoveRecord(
            match_id=self.match_id,
            seat=seat,
            kind=kind,
            snapshot=self.board.snapshot(),
            from_coord=from_coord,
            to_coord=to_coord,
            burned=burned,
        )
        self.history.append(record)
        return record


def replay(initial: BoardSnapshot, records: Iterable[MoveRecord]) -> list[BoardSnapshot]:
    """
    Re-apply recorded actions onto the initial board.

    Every intermediate board must be identical to the snapshot stored in its record, otherwise the history is corrupt.
    """
    board = Board.from_snapshot(initial)
    snapshots: list[BoardSnapshot] = []
    for record in records:
        if record.kind == ActionKind.MOVE:
            # for the type checker
            assert record.from_coord is not None and record.to_coord is not None
            board.apply_move(record.from_coord, record.to_coord)
        elif record.kind == ActionKind.BURN:
            assert record.burned is not None
            board.apply_burn(record.burned)

        snapshot = board.snapshot()
        if snapshot != record.snapshot:
            raise InternalInvariantViolationError(
                f"Replay of match {record.match_id} diverged at a {record.kind.name} by seat {record.seat}"
            )
        snapshots.append(snapshot)
    return snapshots
