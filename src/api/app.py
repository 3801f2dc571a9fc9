"""Application factory: wires settings, logging, persistence and the match service together."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.routes import REJECTION_STATUS, router
from src.core.config import Settings
from src.core.exceptions import (
    ActionRejectedError,
    InvalidUsernameError,
    RepositoryError,
)
from src.core.ids import IdGenerator, UUIDGenerator
from src.core.logging_config import setup_logging
from src.db.database import create_db_engine, session_factory
from src.services.events import EventSink, LoggingEventSink
from src.services.match_service import MatchService
from src.services.registry import MatchRegistry

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    sink: Optional[EventSink] = None,
    id_generator: Optional[IdGenerator] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(debug=settings.debug, level=settings.log_level)

    engine = create_db_engine(settings.database_url, echo=settings.debug)
    ids = id_generator or UUIDGenerator()
    match_service = MatchService(
        MatchRegistry(), sink or LoggingEventSink(), id_generator=ids, settings=settings
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await match_service.shutdown()
        engine.dispose()

    app = FastAPI(title="Amazons match server", lifespan=lifespan)
    app.state.settings = settings
    app.state.match_service = match_service
    app.state.db_factory = session_factory(engine)
    app.state.id_generator = ids
    app.include_router(router)
    _register_exception_handlers(app)
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ActionRejectedError)
    async def handle_rejection(request: Request, exc: ActionRejectedError) -> JSONResponse:
        return JSONResponse(
            status_code=REJECTION_STATUS[exc.reason],
            content={"detail": {"reason": exc.reason.value, "detail": exc.message}},
        )

    @app.exception_handler(InvalidUsernameError)
    async def handle_invalid_username(request: Request, exc: InvalidUsernameError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, content={"detail": str(exc)}
        )

    @app.exception_handler(RepositoryError)
    async def handle_repository_error(request: Request, exc: RepositoryError) -> JSONResponse:
        logger.error("Repository error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)}
        )
