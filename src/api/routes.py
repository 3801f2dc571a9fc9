"""HTTP routes. Thin: parse the request, hand it to a Service, translate the outcome into a status code."""

from typing import Generator
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from src.api.models import (
    AttemptBurnRequest,
    AttemptMoveRequest,
    BoardSnapshotEvent,
    BurnBody,
    BurnSuccess,
    GetMatchRequest,
    LeaveMatchRequest,
    MoveBody,
    MoveSuccess,
    RegisterUserRequest,
    Rejection,
    StartMatchRequest,
    UserResponse,
)
from src.core.shared_types import RejectionReason
from src.db.database import get_db
from src.db.sql_repository import SQLUserRepository
from src.services.match_service import MatchService
from src.services.user_service import UserService

REJECTION_STATUS: dict[RejectionReason, int] = {
    RejectionReason.UNKNOWN_MATCH: status.HTTP_404_NOT_FOUND,
    RejectionReason.UNKNOWN_PARTICIPANT: status.HTTP_404_NOT_FOUND,
    RejectionReason.NOT_YOUR_TURN: status.HTTP_409_CONFLICT,
    RejectionReason.WRONG_PHASE: status.HTTP_409_CONFLICT,
    RejectionReason.OUT_OF_BOUNDS: status.HTTP_422_UNPROCESSABLE_CONTENT,
    RejectionReason.ILLEGAL_MOVE: status.HTTP_422_UNPROCESSABLE_CONTENT,
    RejectionReason.ILLEGAL_BURN: status.HTTP_422_UNPROCESSABLE_CONTENT,
    RejectionReason.INVALID_CONFIGURATION: status.HTTP_422_UNPROCESSABLE_CONTENT,
}

router = APIRouter()


# --- DEPENDENCIES ---
def get_match_service(request: Request) -> MatchService:
    return request.app.state.match_service


def get_db_session(request: Request) -> Generator[Session, None, None]:
    yield from get_db(request.app.state.db_factory)


def get_user_service(db: Session = Depends(get_db_session)) -> UserService:
    return UserService(SQLUserRepository(db))


def _raise_rejection(rejection: Rejection) -> None:
    raise HTTPException(
        status_code=REJECTION_STATUS[rejection.reason],
        detail={"reason": rejection.reason.value, "detail": rejection.detail},
    )


# --- USERS ---
@router.post("/users", response_model=UserResponse)
def register_user(
    body: RegisterUserRequest,
    request: Request,
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    candidate_id = request.app.state.id_generator.new_user_id()
    return users.register(body, candidate_id)


# --- MATCHES ---
@router.post("/matches", response_model=BoardSnapshotEvent, status_code=status.HTTP_201_CREATED)
async def start_match(
    body: StartMatchRequest, service: MatchService = Depends(get_match_service)
) -> BoardSnapshotEvent:
    return await service.start_match(body)


@router.get("/matches/{match_id}", response_model=BoardSnapshotEvent)
async def get_match(match_id: UUID, service: MatchService = Depends(get_match_service)) -> BoardSnapshotEvent:
    return await service.get_match(GetMatchRequest(match_id=match_id))


@router.post("/matches/{match_id}/move", response_model=MoveSuccess)
async def attempt_move(
    match_id: UUID, body: MoveBody, service: MatchService = Depends(get_match_service)
) -> MoveSuccess:
    result = await service.attempt_move(
        AttemptMoveRequest(
            match_id=match_id, external_id=body.external_id, from_=body.from_, to=body.to
        )
    )
    if isinstance(result, Rejection):
        _raise_rejection(result)
    # for the type checker: rejections raised above
    assert isinstance(result, MoveSuccess)
    return result


@router.post("/matches/{match_id}/burn", response_model=BurnSuccess)
async def attempt_burn(
    match_id: UUID, body: BurnBody, service: MatchService = Depends(get_match_service)
) -> BurnSuccess:
    result = await service.attempt_burn(
        AttemptBurnRequest(match_id=match_id, external_id=body.external_id, tile=body.tile)
    )
    if isinstance(result, Rejection):
        _raise_rejection(result)
    assert isinstance(result, BurnSuccess)
    return result


@router.delete("/matches/{match_id}/players/{external_id}", status_code=status.HTTP_204_NO_CONTENT)
async def leave_match(
    match_id: UUID, external_id: str, service: MatchService = Depends(get_match_service)
) -> None:
    await service.leave_match(LeaveMatchRequest(match_id=match_id, external_id=external_id))
