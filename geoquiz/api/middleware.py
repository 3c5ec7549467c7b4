"""Rate limiting and error translation shared by every router."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from geoquiz.config import settings
from geoquiz.domain.entities import InvalidStateTransition
from geoquiz.domain.errors import GameError, InsufficientLocations

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])


async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, InsufficientLocations):
        body["required"] = exc.required
        body["available"] = exc.available
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body)


async def state_transition_handler(
    request: Request, exc: InvalidStateTransition
) -> JSONResponse:
    return JSONResponse(
        status_code=409, content={"detail": str(exc), "code": "invalid_transition"}
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GameError, game_error_handler)
    app.add_exception_handler(InvalidStateTransition, state_transition_handler)
