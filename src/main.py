"""
FastAPI application: the passive room store.

Run with `uvicorn src.main:app --port 3000`.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.models import ErrorResponse
from src.api.routes import router as rooms_router
from src.core.config import settings
from src.core.exceptions import (
    GameError,
    GameStateError,
    InvalidRequestError,
    RepositoryError,
    RoomFullError,
    RoomNotFoundError,
    StoreUnavailableError,
    WriteConflictError,
)
from src.db.database import init_db

logger = logging.getLogger(__name__)

# Most specific first: the first matching class decides the status code.
ERROR_STATUS: list[tuple[type[GameError], int]] = [
    (RoomNotFoundError, 404),
    (RoomFullError, 409),
    (WriteConflictError, 409),
    (InvalidRequestError, 422),
    (GameStateError, 422),
    (StoreUnavailableError, 503),
    (RepositoryError, 503),
]


def status_for(exc: GameError) -> int:
    return next(
        (status for error_type, status in ERROR_STATUS if isinstance(exc, error_type)),
        400,
    )


async def game_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, GameError)
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    body = ErrorResponse(error=str(exc), code=type(exc).__name__)
    return JSONResponse(status_code=status, content=body.model_dump(by_alias=True))


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    # CORS must be added before the routers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(GameError, game_error_handler)
    app.include_router(rooms_router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "app": settings.APP_NAME}

    return app


app = create_app()
