"""
One live match and everything that acts on it.

The session is the only owner of its Match. Every mutation (human action, AI action, timer expiry, departure) goes
through the session's lock, so at most one read-modify-write is in flight per match. Sessions share nothing with each
other, so matches proceed independently.
"""

import asyncio
import logging
from typing import Callable, Optional
from uuid import UUID

from src.amazons.ai import MobilityAI
from src.amazons.coordinate import Coordinate
from src.amazons.match import Match, MoveRecord
from src.api.models import BoardSnapshotEvent
from src.core.exceptions import ActionRejectedError, InternalInvariantViolationError
from src.core.models import ExternalId
from src.services.events import EventSink, build_finished_event, build_snapshot_event

logger = logging.getLogger(__name__)


class MatchSession:
    def __init__(
        self,
        match: Match,
        ai: MobilityAI,
        sink: EventSink,
        on_closed: Optional[Callable[[UUID], None]] = None,
    ) -> None:
        self.match = match
        self.ai = ai
        self.sink = sink
        self.on_closed = on_closed
        self.closed = asyncio.Event()
        self._lock = asyncio.Lock()
        self._timer_task: Optional[asyncio.Task[None]] = None
        self._ai_task: Optional[asyncio.Task[None]] = None

    @property
    def match_id(self) -> UUID:
        return self.match.match_id

    async def start(self) -> BoardSnapshotEvent:
        """Broadcast the starting position and kick off the first turn."""
        async with self._lock:
            event = build_snapshot_event(self.match)
            self.sink.publish(event)
            if self.match.is_over:
                self._publish_finished()
                self._close()
            else:
                self._on_turn_started()
            return event

    # --- ACTIONS ---
    async def attempt_move(
        self, external_id: ExternalId, from_coord: Coordinate, to_coord: Coordinate
    ) -> MoveRecord:
        async with self._lock:
            seat = self.match.get_internal_seat(external_id)
            turn_number = self.match.turn_number
            record = self._guarded(lambda: self.match.attempt_move(seat, from_coord, to_coord))
            self._after_mutation(turn_number)
            return record

    async def attempt_burn(self, external_id: ExternalId, tile: Coordinate) -> MoveRecord:
        async with self._lock:
            seat = self.match.get_internal_seat(external_id)
            turn_number = self.match.turn_number
            record = self._guarded(lambda: self.match.attempt_burn(seat, tile))
            self._after_mutation(turn_number)
            return record

    async def leave(self, external_id: ExternalId) -> None:
        """A participant left. Once no human is left, nobody is watching: tear the match down."""
        async with self._lock:
            seat = self.match.get_internal_seat(external_id)
            if self.match.is_over:
                return
            turn_number = self.match.turn_number
            self.match.depart(seat)
            humans_left = [
                index for index in self.match.players.human_seats() if index not in self.match.departed
            ]
            if not humans_left:
                self.match.abort("all human seats have left")
            self._after_mutation(turn_number)

    async def snapshot_event(self) -> BoardSnapshotEvent:
        """Current state, read under the lock so it never mixes two turns."""
        async with self._lock:
            return build_snapshot_event(self.match)

    async def close(self) -> None:
        async with self._lock:
            self._close()

    # --- BACKGROUND WORK ---
    async def _play_automated_turn(self, turn_number: int) -> None:
        """
        Let the AI play the turn of an automated seat.
        ----

        The search runs in a worker thread on a copy of the board, so a slow search never blocks other matches.
        The result is applied through the same locked path as a human action, but only if the turn has not
        moved on in the meantime (timer expiry, departures).
        """
        async with self._lock:
            if self._is_stale(turn_number):
                return
            seat = self.match.turn_seat
            board = self.match.board.copy()

        try:
            action = await asyncio.to_thread(
                self.ai.choose_action,
                board,
                seat,
                self.match.allow_origin_burn,
                self.match.turn_time_budget_ms,
            )
        except InternalInvariantViolationError as exc:
            async with self._lock:
                self._quarantine(exc)
            return

        async with self._lock:
            if self._is_stale(turn_number):
                logger.debug("Match %s: dropping stale AI action for turn %d", self.match_id, turn_number)
                return
            try:
                self.match.attempt_move(seat, action.move.from_coord, action.move.to_coord)
                self._after_mutation(turn_number)
                self.match.attempt_burn(seat, action.burn)
            except (ActionRejectedError, InternalInvariantViolationError) as exc:
                # the AI is checked against the same rules, so a refusal here is a bug
                self._quarantine(
                    InternalInvariantViolationError(f"AI action refused by the match: {exc}")
                )
                return
            self._after_mutation(turn_number)

    async def _run_turn_timer(self, turn_number: int, budget_ms: int) -> None:
        await asyncio.sleep(budget_ms / 1000)
        async with self._lock:
            if self._is_stale(turn_number):
                return
            self.match.expire_turn()
            self._after_mutation(turn_number)

    # -- PRIVATE HELPERS ---
    def _guarded(self, action: Callable[[], MoveRecord]) -> MoveRecord:
        """Run a match action. Rejections pass through untouched; engine defects quarantine the match first."""
        try:
            return action()
        except InternalInvariantViolationError as exc:
            self._quarantine(exc)
            raise

    def _is_stale(self, turn_number: int) -> bool:
        return self.match.is_over or self.match.turn_number != turn_number

    def _after_mutation(self, turn_number: int) -> None:
        """Broadcast the new board, then either wrap up or start the next turn."""
        self.sink.publish(build_snapshot_event(self.match))
        if self.match.is_over:
            self._publish_finished()
            self._close()
        elif self.match.turn_number != turn_number:
            self._on_turn_started()

    def _on_turn_started(self) -> None:
        self._cancel(self._timer_task)
        self._timer_task = None
        budget_ms = self.match.turn_time_budget_ms
        if budget_ms > 0:
            self._timer_task = asyncio.create_task(
                self._run_turn_timer(self.match.turn_number, budget_ms)
            )

        if self.match.players.is_automated(self.match.turn_seat):
            self._ai_task = asyncio.create_task(self._play_automated_turn(self.match.turn_number))

    def _publish_finished(self) -> None:
        event = build_finished_event(self.match)
        if event is not None:
            self.sink.publish(event)

    def _quarantine(self, exc: InternalInvariantViolationError) -> None:
        logger.error("Match %s: internal invariant violated: %s", self.match_id, exc, exc_info=exc)
        self.match.abort(str(exc))
        self.sink.publish(build_snapshot_event(self.match))
        self._close()

    def _close(self) -> None:
        if self.closed.is_set():
            return
        self._cancel(self._timer_task)
        self._cancel(self._ai_task)
        self.closed.set()
        logger.info("Match %s closed (%s)", self.match_id, self.match.status)
        if self.on_closed is not None:
            self.on_closed(self.match_id)

    @staticmethod
    def _cancel(task: Optional[asyncio.Task[None]]) -> None:
        """Cancel a background task, unless it is the one currently running this code."""
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
