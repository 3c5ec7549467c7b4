"""
FastAPI application factory.

* Registers routes for games, guesses/hints and admin.
* Builds the game-type registry once on startup via lifespan events.
* Applies rate-limiting middleware and maps domain errors to HTTP.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from geoquiz.api.dependencies import get_registry
from geoquiz.api.middleware import limiter, register_error_handlers
from geoquiz.api.routes import admin, games, guesses
from geoquiz.config import settings
from geoquiz.infrastructure.database import dispose_engine

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the game-type registry up front; close pooled connections on shutdown."""
    registry = get_registry()
    logger.info("Loaded %d game types (default %s)", len(registry), registry.default_id)
    yield
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Geo Quiz API",
        description=(
            "Scoring and round progression for a multiplayer location-guessing "
            "game.  Admins release rounds of random, never-repeated locations; "
            "players guess on country, world or image maps and are scored by "
            "distance."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)

    # Routers
    app.include_router(games.router, prefix="/api/v1")
    app.include_router(guesses.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
