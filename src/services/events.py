"""Broadcast events: what the engine tells the outside world after each accepted action."""

import logging
from typing import Protocol

from src.amazons.match import Match
from src.amazons.tiles import TileKind
from src.api.models import (
    BoardSnapshotEvent,
    MatchEvent,
    MatchFinishedEvent,
    TileModel,
)
from src.core.shared_types import MatchStatus

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Transport side of the engine. Receives immutable events; may hold on to them as long as it likes."""

    def publish(self, event: MatchEvent) -> None: ...


class CollectingEventSink:
    """Keeps every published event in memory (tests, simple polling clients)."""

    def __init__(self) -> None:
        self.events: list[MatchEvent] = []

    def publish(self, event: MatchEvent) -> None:
        self.events.append(event)

    def clear(self) -> None:
        self.events.clear()


class LoggingEventSink:
    def publish(self, event: MatchEvent) -> None:
        logger.info("%s: %s", type(event).__name__, event.model_dump_json())


def build_snapshot_event(match: Match) -> BoardSnapshotEvent:
    """Convert the current state of a Match into its broadcast form."""
    snapshot = match.snapshot()
    tiles = [
        [
            TileModel(
                owner=tile.owner if tile.kind == TileKind.OCCUPIED else None,
                burned=tile.is_burned,
            )
            for tile in column
        ]
        for column in snapshot.tiles
    ]
    return BoardSnapshotEvent(
        match_id=match.match_id,
        tiles=tiles,
        notation=snapshot.to_notation(),
        players=[seat.external_id for seat in match.players.seats],
        turn_seat=match.turn_seat,
        phase=match.phase,
        status=match.status,
        winner_seat=match.winner,
    )


def build_finished_event(match: Match) -> MatchFinishedEvent | None:
    if match.status != MatchStatus.FINISHED:
        return None
    return MatchFinishedEvent(match_id=match.match_id, winner_seat=match.winner)
