"""Orchestration of communication from the transport (API router) to the match engine (and the reverse direction)."""

import logging
from typing import Optional

from src.amazons.ai import MobilityAI
from src.amazons.board import Board
from src.amazons.match import Match
from src.amazons.players import PlayerRegistry
from src.api.models import (
    AttemptBurnRequest,
    AttemptMoveRequest,
    BoardSnapshotEvent,
    BurnSuccess,
    CoordinateModel,
    GetMatchRequest,
    LeaveMatchRequest,
    MoveSuccess,
    Rejection,
    StartMatchRequest,
)
from src.core.config import Settings
from src.core.exceptions import ActionRejectedError
from src.core.ids import IdGenerator, UUIDGenerator
from src.core.models import MatchConfig, PiecePlacement, SeatSpec
from src.core.shared_types import SeatType
from src.services.events import EventSink
from src.services.match_session import MatchSession
from src.services.registry import MatchRegistry

logger = logging.getLogger(__name__)


class MatchService:
    """Orchestration of layers for Amazons matches."""

    def __init__(
        self,
        registry: MatchRegistry,
        sink: EventSink,
        ai: Optional[MobilityAI] = None,
        id_generator: Optional[IdGenerator] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.registry = registry
        self.sink = sink
        self.ai = ai or MobilityAI()
        self.ids = id_generator or UUIDGenerator()
        self.settings = settings or Settings()

    # -- API routes logic ---
    async def start_match(self, request: StartMatchRequest) -> BoardSnapshotEvent:
        """
        Create and begin a new match.

        Raises InvalidConfigurationError (and no match is created) if the seats do not fit the piece configuration.
        """
        config = self._build_config(request)

        match = Match(
            match_id=self.ids.new_match_id(),
            allow_origin_burn=config.allow_origin_burn,
            timeout_policy=config.timeout_policy,
        )
        players = PlayerRegistry.from_participants(
            (seat.external_id, seat.seat_type) for seat in config.seats
        )
        board = Board.from_placements(config.board_size, config.placements)
        match.begin(players, board, config.turn_timer_ms)

        session = MatchSession(match, self.ai, self.sink, on_closed=self.registry.remove)
        self.registry.add(session)
        return await session.start()

    async def attempt_move(self, request: AttemptMoveRequest) -> MoveSuccess | Rejection:
        try:
            session = self.registry.get(request.match_id)
            record = await session.attempt_move(
                request.external_id, request.from_.to_coordinate(), request.to.to_coordinate()
            )
        except ActionRejectedError as exc:
            return self._reject(request.match_id, request.external_id, exc)

        # for the type checker: a move record always has a target
        assert record.to_coord is not None
        return MoveSuccess(to=CoordinateModel.from_coordinate(record.to_coord))

    async def attempt_burn(self, request: AttemptBurnRequest) -> BurnSuccess | Rejection:
        try:
            session = self.registry.get(request.match_id)
            record = await session.attempt_burn(request.external_id, request.tile.to_coordinate())
        except ActionRejectedError as exc:
            return self._reject(request.match_id, request.external_id, exc)

        assert record.burned is not None
        return BurnSuccess(tile=CoordinateModel.from_coordinate(record.burned))

    async def leave_match(self, request: LeaveMatchRequest) -> None:
        """Unknown matches / participants are ignored: the participant is gone either way."""
        try:
            session = self.registry.get(request.match_id)
            await session.leave(request.external_id)
        except ActionRejectedError as exc:
            logger.info("Ignoring leave request for match %s: %s", request.match_id, exc.message)

    async def get_match(self, request: GetMatchRequest) -> BoardSnapshotEvent:
        """Current state of a live match. Raises UnknownMatchError otherwise."""
        return await self.registry.get(request.match_id).snapshot_event()

    async def shutdown(self) -> None:
        await self.registry.close_all()

    # -- Internal helpers --
    def _build_config(self, request: StartMatchRequest) -> MatchConfig:
        """
        Convert the (already validated) request into the engine's configuration.

        Declined invitations are dropped. Automated seats get a fresh identity, not tied to any connection.
        """
        seats = tuple(
            SeatSpec(
                external_id=(
                    self.ids.new_bot_id(seat.external_id)
                    if seat.type == SeatType.AUTOMATED
                    else seat.external_id
                ),
                seat_type=seat.type,
            )
            for seat in request.seats
            if seat.accepted
        )
        placements = tuple(
            PiecePlacement(x=piece.x, y=piece.y, owner=piece.owner) for piece in request.piece_config
        )
        return MatchConfig(
            seats=seats,
            placements=placements,
            board_size=(
                request.board_size
                if request.board_size is not None
                else self.settings.default_board_size
            ),
            turn_timer_ms=(
                request.turn_timer_ms
                if request.turn_timer_ms is not None
                else self.settings.default_turn_timer_ms
            ),
            allow_origin_burn=(
                request.allow_origin_burn
                if request.allow_origin_burn is not None
                else self.settings.allow_origin_burn
            ),
            timeout_policy=request.timeout_policy or self.settings.timeout_policy,
        )

    def _reject(self, match_id: object, external_id: str, exc: ActionRejectedError) -> Rejection:
        """Rejections leave the match untouched. Nothing gets broadcast, the caller decides whom to tell."""
        logger.info("Rejected action by %s in match %s: %s", external_id, match_id, exc.message)
        return Rejection(reason=exc.reason, detail=exc.message)
