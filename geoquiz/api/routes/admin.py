"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health      -- simple health check
GET /api/v1/admin/game-types  -- the registered game types and their scoring
"""

from fastapi import APIRouter, Depends, Query, Request

from geoquiz.api.dependencies import get_registry
from geoquiz.api.middleware import limiter
from geoquiz.api.schemas import GameTypeResponse, HealthResponse
from geoquiz.config import settings
from geoquiz.domain.game_types import GameTypeRegistry

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/game-types",
    response_model=list[GameTypeResponse],
    summary="List registered game types",
)
@limiter.limit(settings.rate_limit)
async def list_game_types(
    request: Request,
    locale: str = Query("en", pattern="^(de|en|sl)$"),
    registry: GameTypeRegistry = Depends(get_registry),
):
    return [
        GameTypeResponse(
            id=config.id,
            kind=config.kind,
            name=config.name.get(locale),
            timeout_penalty=config.timeout_penalty,
            score_scale_factor=config.score_scale_factor,
            hint_radius=config.hint_radius,
        )
        for config in registry.values()
    ]


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
