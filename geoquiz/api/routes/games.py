"""
Game endpoints
==============

POST /api/v1/games                          -- create a game (no round released)
GET  /api/v1/games/{game_id}/status         -- rounds released / completed by a user
GET  /api/v1/games/{game_id}/rounds         -- released slots and the user's results
POST /api/v1/games/{game_id}/rounds         -- release the next round
POST /api/v1/games/{game_id}/complete       -- end the game (one-way)
POST /api/v1/games/{game_id}/leaderboard/reveal -- show standings to players
GET  /api/v1/games/{game_id}/leaderboard    -- standings for a player, optionally per round
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from geoquiz.api.dependencies import get_service
from geoquiz.api.middleware import limiter
from geoquiz.api.schemas import (
    AdminActionRequest,
    ErrorResponse,
    GameCreateRequest,
    GameResponse,
    GameStatusResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    ReleaseRoundRequest,
    RoundReleaseResponse,
    RoundSlotResponse,
)
from geoquiz.config import settings
from geoquiz.services.progression import ProgressionService

router = APIRouter(prefix="/games", tags=["games"])


@router.post(
    "",
    status_code=201,
    response_model=GameResponse,
    summary="Create a game",
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def create_game(
    request: Request,
    body: GameCreateRequest,
    service: ProgressionService = Depends(get_service),
):
    return await service.create_game(
        user_id=body.user_id,
        mode=body.mode,
        group_id=body.group_id,
        game_type=body.game_type,
        country=body.country,
        name=body.name,
        locations_per_round=body.locations_per_round,
        time_limit_seconds=body.time_limit_seconds,
    )


@router.get(
    "/{game_id}/status",
    response_model=GameStatusResponse,
    summary="Round progress of one player",
)
@limiter.limit(settings.rate_limit)
async def game_status(
    request: Request,
    game_id: int,
    user_id: int = Query(...),
    service: ProgressionService = Depends(get_service),
):
    progress = await service.game_status(game_id, user_id)
    return GameStatusResponse(
        game_id=progress.game_id,
        status=progress.status,
        name=progress.name,
        current_round=progress.current_round,
        locations_per_round=progress.locations_per_round,
        user_completed_rounds=progress.user_completed_rounds,
        finished=progress.finished,
    )


@router.get(
    "/{game_id}/rounds",
    response_model=list[RoundSlotResponse],
    summary="Released rounds with the player's own results",
)
@limiter.limit(settings.rate_limit)
async def list_rounds(
    request: Request,
    game_id: int,
    user_id: int = Query(...),
    service: ProgressionService = Depends(get_service),
):
    slots = await service.released_rounds(game_id, user_id)
    return [RoundSlotResponse.model_validate(slot) for slot in slots]


@router.post(
    "/{game_id}/rounds",
    response_model=RoundReleaseResponse,
    summary="Release the next round",
    description=(
        "Draws the round's locations at random from the unused part of the "
        "game type's pool.  Rejected with 409 when too few remain; nothing "
        "is changed in that case."
    ),
    responses={409: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def release_round(
    request: Request,
    game_id: int,
    body: ReleaseRoundRequest,
    service: ProgressionService = Depends(get_service),
):
    release = await service.release_round(
        game_id,
        body.user_id,
        game_type=body.game_type,
        locations_per_round=body.locations_per_round,
        time_limit_seconds=body.time_limit_seconds,
    )
    return RoundReleaseResponse(
        current_round=release.round_number,
        locations_in_round=release.locations_in_round,
        game_type=release.game_type,
    )


@router.post("/{game_id}/complete", status_code=204, summary="Complete the game")
@limiter.limit(settings.rate_limit)
async def complete_game(
    request: Request,
    game_id: int,
    body: AdminActionRequest,
    service: ProgressionService = Depends(get_service),
):
    await service.complete_game(game_id, body.user_id)


@router.post(
    "/{game_id}/leaderboard/reveal",
    status_code=204,
    summary="Reveal the leaderboard until the next round is released",
)
@limiter.limit(settings.rate_limit)
async def reveal_leaderboard(
    request: Request,
    game_id: int,
    body: AdminActionRequest,
    service: ProgressionService = Depends(get_service),
):
    await service.reveal_leaderboard(game_id, body.user_id)


@router.get(
    "/{game_id}/leaderboard",
    response_model=LeaderboardResponse,
    summary="Game leaderboard",
)
@limiter.limit(settings.rate_limit)
async def leaderboard(
    request: Request,
    game_id: int,
    user_id: int = Query(...),
    round_number: Optional[int] = Query(None, ge=1),
    service: ProgressionService = Depends(get_service),
):
    view = await service.leaderboard(game_id, user_id, round_number)
    return LeaderboardResponse(
        game_id=view.game_id,
        revealed=view.revealed,
        current_round=view.current_round,
        game_type=view.game_type,
        leaderboard=[LeaderboardEntryResponse.model_validate(e) for e in view.entries],
    )
