"""Service layer: request in, engine action, response / broadcast out."""

import asyncio
from typing import Any
from uuid import UUID

import pytest

from src.api.models import (
    AttemptBurnRequest,
    AttemptMoveRequest,
    BoardSnapshotEvent,
    BurnSuccess,
    GetMatchRequest,
    LeaveMatchRequest,
    MatchFinishedEvent,
    MoveSuccess,
    Rejection,
    StartMatchRequest,
)
from src.core.config import Settings
from src.core.exceptions import InvalidConfigurationError, UnknownMatchError
from src.core.shared_types import MatchStatus, RejectionReason, TurnPhase
from src.services.events import CollectingEventSink
from src.services.match_service import MatchService
from src.services.registry import MatchRegistry

CORNER_PIECES = [{"x": 0, "y": 0, "owner": 0}, {"x": 3, "y": 3, "owner": 1}]
HUMANS = [{"external_id": "alice", "type": "human"}, {"external_id": "bob", "type": "human"}]


def start_request(seats: list[dict[str, Any]] = HUMANS, pieces: list[dict[str, Any]] = CORNER_PIECES, **kwargs: Any) -> StartMatchRequest:
    payload: dict[str, Any] = {"seats": seats, "piece_config": pieces, "board_size": 4}
    payload.update(kwargs)
    return StartMatchRequest.model_validate(payload)


def move_request(match_id: UUID, external_id: str, from_xy: tuple[int, int], to_xy: tuple[int, int]) -> AttemptMoveRequest:
    return AttemptMoveRequest.model_validate(
        {
            "match_id": match_id,
            "external_id": external_id,
            "from": {"x": from_xy[0], "y": from_xy[1]},
            "to": {"x": to_xy[0], "y": to_xy[1]},
        }
    )


def burn_request(match_id: UUID, external_id: str, tile_xy: tuple[int, int]) -> AttemptBurnRequest:
    return AttemptBurnRequest.model_validate(
        {"match_id": match_id, "external_id": external_id, "tile": {"x": tile_xy[0], "y": tile_xy[1]}}
    )


async def wait_until(predicate: Any, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        assert loop.time() < deadline, "condition not reached in time"
        await asyncio.sleep(0.01)


@pytest.fixture
def sink() -> CollectingEventSink:
    return CollectingEventSink()


@pytest.fixture
def registry() -> MatchRegistry:
    return MatchRegistry()


@pytest.fixture
def service(registry: MatchRegistry, sink: CollectingEventSink, id_generator: Any) -> MatchService:
    return MatchService(registry, sink, id_generator=id_generator, settings=Settings())


# --- START ---
@pytest.mark.asyncio
async def test_start_match(service: MatchService, registry: MatchRegistry, sink: CollectingEventSink) -> None:
    event = await service.start_match(start_request())

    assert event.match_id == UUID(int=1)
    assert event.status == MatchStatus.ACTIVE
    assert event.phase == TurnPhase.AWAITING_MOVE
    assert event.notation == "a3/4/4/3b"
    assert event.players == ["alice", "bob"]
    assert event.tiles[0][0].owner == 0
    assert event.tiles[3][3].owner == 1
    assert event.match_id in registry
    assert sink.events == [event]
    await service.shutdown()


@pytest.mark.asyncio
async def test_declined_seats_are_dropped(service: MatchService) -> None:
    seats = [
        {"external_id": "alice", "type": "human"},
        {"external_id": "carol", "type": "human", "accepted": False},
        {"external_id": "bob", "type": "human"},
    ]
    event = await service.start_match(start_request(seats=seats))
    assert event.players == ["alice", "bob"]
    await service.shutdown()


@pytest.mark.asyncio
async def test_automated_seats_get_their_own_identity(service: MatchService) -> None:
    seats = [{"external_id": "alice", "type": "human"}, {"external_id": "bot", "type": "bot"}]
    event = await service.start_match(start_request(seats=seats))

    assert event.players[0] == "alice"
    assert event.players[1].startswith("bot_")
    await service.shutdown()


@pytest.mark.asyncio
async def test_server_defaults_fill_missing_fields(registry: MatchRegistry, sink: CollectingEventSink) -> None:
    service = MatchService(registry, sink, settings=Settings(default_board_size=6, allow_origin_burn=False))
    request = StartMatchRequest.model_validate({"seats": HUMANS, "piece_config": CORNER_PIECES})

    event = await service.start_match(request)

    assert len(event.tiles) == 6
    assert registry.get(event.match_id).match.allow_origin_burn is False
    await service.shutdown()


@pytest.mark.asyncio
async def test_pieces_outside_the_default_board(service: MatchService, registry: MatchRegistry, sink: CollectingEventSink) -> None:
    request = StartMatchRequest.model_validate(
        {"seats": HUMANS, "piece_config": [{"x": 0, "y": 0, "owner": 0}, {"x": 12, "y": 0, "owner": 1}]}
    )
    with pytest.raises(InvalidConfigurationError):
        _ = await service.start_match(request)
    assert len(registry) == 0
    assert sink.events == []


@pytest.mark.asyncio
async def test_match_over_before_the_first_turn(service: MatchService, registry: MatchRegistry, sink: CollectingEventSink) -> None:
    """2x2 board where seat 0 cannot move at all: seat 1 wins on the spot."""
    pieces = [
        {"x": 0, "y": 0, "owner": 0},
        {"x": 0, "y": 1, "owner": 0},
        {"x": 1, "y": 1, "owner": 0},
        {"x": 1, "y": 0, "owner": 1},
    ]
    event = await service.start_match(start_request(pieces=pieces, board_size=2))

    assert event.status == MatchStatus.FINISHED
    assert event.winner_seat == 1
    assert sink.events[-1] == MatchFinishedEvent(match_id=event.match_id, winner_seat=1)
    assert event.match_id not in registry


# --- ACTIONS ---
@pytest.mark.asyncio
async def test_move_and_burn(service: MatchService, sink: CollectingEventSink) -> None:
    event = await service.start_match(start_request())

    moved = await service.attempt_move(move_request(event.match_id, "alice", (0, 0), (3, 0)))
    assert isinstance(moved, MoveSuccess)
    assert (moved.to.x, moved.to.y) == (3, 0)
    assert len(sink.events) == 2

    burned = await service.attempt_burn(burn_request(event.match_id, "alice", (0, 0)))
    assert isinstance(burned, BurnSuccess)
    assert len(sink.events) == 3

    latest = await service.get_match(GetMatchRequest(match_id=event.match_id))
    assert latest.notation == "x2a/4/4/3b"
    assert latest.turn_seat == 1
    assert latest.phase == TurnPhase.AWAITING_MOVE
    assert sink.events[-1] == latest
    await service.shutdown()


@pytest.mark.asyncio
async def test_not_your_turn(service: MatchService, sink: CollectingEventSink) -> None:
    event = await service.start_match(start_request())

    result = await service.attempt_move(move_request(event.match_id, "bob", (3, 3), (3, 2)))

    assert isinstance(result, Rejection)
    assert result.reason == RejectionReason.NOT_YOUR_TURN
    assert sink.events == [event]
    assert (await service.get_match(GetMatchRequest(match_id=event.match_id))).notation == event.notation
    await service.shutdown()


@pytest.mark.asyncio
async def test_illegal_burn_is_rejected(service: MatchService, sink: CollectingEventSink) -> None:
    event = await service.start_match(start_request())
    await service.attempt_move(move_request(event.match_id, "alice", (0, 0), (3, 0)))

    result = await service.attempt_burn(burn_request(event.match_id, "alice", (3, 3)))

    assert isinstance(result, Rejection)
    assert result.reason == RejectionReason.ILLEGAL_BURN
    assert len(sink.events) == 2
    await service.shutdown()


@pytest.mark.asyncio
async def test_unknown_match(service: MatchService) -> None:
    result = await service.attempt_move(move_request(UUID(int=999), "alice", (0, 0), (0, 1)))
    assert isinstance(result, Rejection)
    assert result.reason == RejectionReason.UNKNOWN_MATCH

    with pytest.raises(UnknownMatchError):
        _ = await service.get_match(GetMatchRequest(match_id=UUID(int=999)))


@pytest.mark.asyncio
async def test_unknown_participant(service: MatchService) -> None:
    event = await service.start_match(start_request())
    result = await service.attempt_burn(burn_request(event.match_id, "mallory", (1, 1)))
    assert isinstance(result, Rejection)
    assert result.reason == RejectionReason.UNKNOWN_PARTICIPANT
    await service.shutdown()


# --- LEAVING ---
@pytest.mark.asyncio
async def test_leaving_hands_the_win_to_the_other_seat(service: MatchService, registry: MatchRegistry, sink: CollectingEventSink) -> None:
    event = await service.start_match(start_request())

    await service.leave_match(LeaveMatchRequest(match_id=event.match_id, external_id="alice"))

    assert event.match_id not in registry
    assert sink.events[-1] == MatchFinishedEvent(match_id=event.match_id, winner_seat=1)


@pytest.mark.asyncio
async def test_leaving_an_unknown_match_is_ignored(service: MatchService) -> None:
    await service.leave_match(LeaveMatchRequest(match_id=UUID(int=999), external_id="alice"))


# --- AUTOMATED SEATS ---
@pytest.mark.asyncio
async def test_automated_seat_answers_a_human_turn(service: MatchService, registry: MatchRegistry) -> None:
    seats = [{"external_id": "alice", "type": "human"}, {"external_id": "bot", "type": "bot"}]
    pieces = [{"x": 0, "y": 0, "owner": 0}, {"x": 4, "y": 4, "owner": 1}]
    event = await service.start_match(start_request(seats=seats, pieces=pieces, board_size=5))
    match = registry.get(event.match_id).match

    await service.attempt_move(move_request(event.match_id, "alice", (0, 0), (0, 2)))
    await service.attempt_burn(burn_request(event.match_id, "alice", (0, 0)))
    await wait_until(lambda: match.turn_seat == 0 or match.is_over)

    assert match.status == MatchStatus.ACTIVE
    assert match.turn_number == 2
    assert len(match.board.burned_tiles()) == 2
    await service.shutdown()


@pytest.mark.asyncio
async def test_automated_match_plays_to_the_end(service: MatchService, registry: MatchRegistry, sink: CollectingEventSink) -> None:
    seats = [{"external_id": "bot", "type": "bot"}, {"external_id": "bot", "type": "bot"}]
    event = await service.start_match(start_request(seats=seats))
    session = registry.get(event.match_id)

    await asyncio.wait_for(session.closed.wait(), timeout=10)

    assert session.match.status == MatchStatus.FINISHED
    assert event.match_id not in registry
    finished = sink.events[-1]
    assert isinstance(finished, MatchFinishedEvent)
    assert finished.winner_seat in (0, 1)
    assert all(isinstance(e, BoardSnapshotEvent) for e in sink.events[:-1])


@pytest.mark.asyncio
async def test_shutdown_closes_every_match(service: MatchService, registry: MatchRegistry) -> None:
    first = await service.start_match(start_request())
    second = await service.start_match(start_request())
    sessions = [registry.get(first.match_id), registry.get(second.match_id)]

    await service.shutdown()

    assert len(registry) == 0
    assert all(session.closed.is_set() for session in sessions)
