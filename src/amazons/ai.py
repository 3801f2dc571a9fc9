"""
Automated opponent.

Picks a (move, burn) pair with a one-ply mobility heuristic: good positions are those where our pieces can reach
many tiles and the strongest opponent can reach few. In Amazons, running out of reachable tiles is exactly how you lose.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Optional

from src.amazons.board import Board
from src.amazons.coordinate import Coordinate
from src.amazons.rules import (
    Move,
    has_any_legal_turn,
    is_legal_burn,
    is_legal_move,
    legal_burns,
    leaves_a_burn,
    legal_moves,
    mobility,
)
from src.core.exceptions import InternalInvariantViolationError

logger = logging.getLogger(__name__)

# Share of the turn budget the search may use. The rest is left for applying the action.
TIME_BUDGET_SHARE = 0.5


@dataclass(frozen=True)
class AutomatedAction:
    move: Move
    burn: Coordinate


def evaluate(board: Board, seat: int) -> int:
    """Own mobility minus the mobility of the most mobile opponent."""
    opponents = [other for other in range(board.seat_count) if other != seat]
    opponent_mobility = max((mobility(board, other) for other in opponents), default=0)
    return mobility(board, seat) - opponent_mobility


class MobilityAI:
    """Greedy mobility player. Not deterministic (ties are broken at random), but always legal."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def choose_action(
        self,
        board: Board,
        seat: int,
        allow_origin_burn: bool = True,
        time_budget_ms: int = 0,
    ) -> AutomatedAction:
        """
        Choose a move, then a burn from the moved piece's new position.
        ----

        The given board is never mutated. With a time budget, the search returns the best candidate found when
        the deadline passes (at least one candidate is always scored).
        """
        if not has_any_legal_turn(board, seat, allow_origin_burn):
            raise InternalInvariantViolationError(f"AI asked to play seat {seat}, which has no legal turn")

        started = time.monotonic()
        deadline = (
            started + TIME_BUDGET_SHARE * time_budget_ms / 1000 if time_budget_ms > 0 else None
        )

        move, board_after_move = self._choose_move(board, seat, allow_origin_burn, deadline)
        burn = self._choose_burn(board_after_move, seat, move, allow_origin_burn, deadline)
        action = AutomatedAction(move=move, burn=burn)

        self._verify(board, board_after_move, seat, action, allow_origin_burn)
        logger.debug(
            "AI seat %d chose %s -> %s, burn %s in %.3fs",
            seat,
            move.from_coord,
            move.to_coord,
            burn,
            time.monotonic() - started,
        )
        return action

    # -- SEARCH ---
    def _choose_move(
        self, board: Board, seat: int, allow_origin_burn: bool, deadline: Optional[float]
    ) -> tuple[Move, Board]:
        # moves into a pocket with nothing left to burn are refused by the match
        candidates = [
            move
            for move in legal_moves(board, seat)
            if leaves_a_burn(board, seat, move, allow_origin_burn)
        ]
        self.rng.shuffle(candidates)

        best: Optional[tuple[int, Move, Board]] = None
        for move in candidates:
            after_move = board.copy()
            after_move.apply_move(move.from_coord, move.to_coord)
            score = evaluate(after_move, seat)
            if best is None or score > best[0]:
                best = (score, move, after_move)
            if _past(deadline):
                break

        if best is None:
            raise InternalInvariantViolationError(f"AI found no move for seat {seat}")
        return best[1], best[2]

    def _choose_burn(
        self,
        board_after_move: Board,
        seat: int,
        move: Move,
        allow_origin_burn: bool,
        deadline: Optional[float],
    ) -> Coordinate:
        candidates = legal_burns(
            board_after_move,
            seat,
            move.to_coord,
            vacated=move.from_coord,
            allow_origin_burn=allow_origin_burn,
        )
        if not candidates:
            raise InternalInvariantViolationError(
                f"AI found no tile to burn for seat {seat} after {move.from_coord} -> {move.to_coord}"
            )
        self.rng.shuffle(candidates)

        best: Optional[tuple[int, Coordinate]] = None
        for tile in candidates:
            after_burn = board_after_move.copy()
            after_burn.apply_burn(tile)
            score = evaluate(after_burn, seat)
            if best is None or score > best[0]:
                best = (score, tile)
            if _past(deadline):
                break

        # for the type checker: there was at least one candidate
        assert best is not None
        return best[1]

    def _verify(
        self,
        board: Board,
        board_after_move: Board,
        seat: int,
        action: AutomatedAction,
        allow_origin_burn: bool,
    ) -> None:
        """The AI is held to the same rules as everybody else. Anything else is a bug."""
        move = action.move
        if not is_legal_move(board, seat, move.from_coord, move.to_coord):
            raise InternalInvariantViolationError(f"AI produced an illegal move: {move}")
        if not is_legal_burn(
            board_after_move,
            seat,
            move.to_coord,
            action.burn,
            vacated=move.from_coord,
            allow_origin_burn=allow_origin_burn,
        ):
            raise InternalInvariantViolationError(f"AI produced an illegal burn: {action.burn}")


def _past(deadline: Optional[float]) -> bool:
    return deadline is not None and time.monotonic() >= deadline
