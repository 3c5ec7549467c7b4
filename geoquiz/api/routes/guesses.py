"""
Guess & hint endpoints
======================

POST /api/v1/guesses                 -- submit a guess (or a timeout)
GET  /api/v1/rounds/{round_id}/hint  -- hint circle for a released slot
"""

from fastapi import APIRouter, Depends, Query, Request

from geoquiz.api.dependencies import get_service
from geoquiz.api.middleware import limiter
from geoquiz.api.schemas import (
    CoordinateResponse,
    ErrorResponse,
    GuessCreateRequest,
    GuessResponse,
    HintResponse,
)
from geoquiz.config import settings
from geoquiz.domain.distance import format_distance
from geoquiz.domain.entities import Coordinate
from geoquiz.services.progression import ProgressionService

router = APIRouter(tags=["guesses"])


@router.post(
    "/guesses",
    status_code=201,
    response_model=GuessResponse,
    summary="Submit a guess",
    responses={
        403: {"model": ErrorResponse, "description": "Round not released / not a member"},
        409: {"model": ErrorResponse, "description": "Already guessed this round"},
    },
)
@limiter.limit(settings.rate_limit)
async def submit_guess(
    request: Request,
    body: GuessCreateRequest,
    service: ProgressionService = Depends(get_service),
):
    coordinate = None
    if not body.timeout:
        coordinate = Coordinate(lat=body.latitude, lng=body.longitude)

    result = await service.submit_guess(
        body.game_round_id,
        body.user_id,
        coordinate=coordinate,
        timeout=body.timeout,
        time_seconds=body.time_seconds,
    )
    return GuessResponse(
        id=result.guess_id,
        distance_km=result.distance_km,
        distance_label=format_distance(result.distance_km, result.game_type),
        score=result.score,
        timeout=result.timeout,
        target=CoordinateResponse(lat=result.target.lat, lng=result.target.lng),
    )


@router.get(
    "/rounds/{round_id}/hint",
    response_model=HintResponse,
    summary="Hint circle that contains the target",
)
@limiter.limit(settings.rate_limit)
async def round_hint(
    request: Request,
    round_id: int,
    user_id: int = Query(...),
    service: ProgressionService = Depends(get_service),
):
    result = await service.hint_for_round(round_id, user_id)
    return HintResponse(
        game_round_id=result.game_round_id,
        center=CoordinateResponse(lat=result.hint.center.lat, lng=result.hint.center.lng),
        radius_km=result.hint.radius_km,
    )
