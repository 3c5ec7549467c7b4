"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from geoquiz.config import settings
from geoquiz.domain.distance import format_total_distance
from geoquiz.domain.enums import GameKind, GameMode, GameStatus


# ── Requests ──────────────────────────────────────────────────────────


class GameCreateRequest(BaseModel):
    user_id: int
    mode: GameMode = GameMode.GROUP
    group_id: Optional[int] = None
    name: Optional[str] = Field(None, max_length=120)
    game_type: Optional[str] = Field(None, examples=["country:switzerland"])
    country: Optional[str] = Field(
        None, description="Legacy pool selector, used when game_type is omitted."
    )
    locations_per_round: int = Field(settings.default_locations_per_round, ge=1, le=50)
    time_limit_seconds: Optional[int] = Field(None, ge=5, le=3600)


class ReleaseRoundRequest(BaseModel):
    user_id: int
    game_type: Optional[str] = None
    locations_per_round: Optional[int] = Field(None, ge=1, le=50)
    time_limit_seconds: Optional[int] = Field(None, ge=5, le=3600)


class AdminActionRequest(BaseModel):
    user_id: int


class GuessCreateRequest(BaseModel):
    game_round_id: int
    user_id: int
    # Geographic maps: degrees.  Image maps: latitude = y, longitude = x pixels.
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timeout: bool = False
    time_seconds: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _coordinate_or_timeout(self):
        if not self.timeout and (self.latitude is None or self.longitude is None):
            raise ValueError("latitude and longitude are required unless timeout is set")
        return self


# ── Responses ─────────────────────────────────────────────────────────


class CoordinateResponse(BaseModel):
    lat: float
    lng: float


class GameResponse(BaseModel):
    id: int
    mode: GameMode
    group_id: Optional[int] = None
    user_id: Optional[int] = None
    name: Optional[str] = None
    game_type: Optional[str] = None
    country: str
    locations_per_round: int
    time_limit_seconds: Optional[int] = None
    status: GameStatus
    current_round: int
    leaderboard_revealed: bool

    model_config = {"from_attributes": True}


class RoundReleaseResponse(BaseModel):
    success: bool = True
    current_round: int
    locations_in_round: int
    game_type: str


class RoundSlotResponse(BaseModel):
    game_round_id: int
    round_number: int
    location_index: int
    game_type: str
    time_limit_seconds: Optional[int] = None
    guessed: bool
    distance_km: Optional[float] = None
    score: Optional[int] = None

    model_config = {"from_attributes": True}


class GuessResponse(BaseModel):
    id: int
    distance_km: float
    distance_label: str
    score: int
    timeout: bool
    target: CoordinateResponse


class GameStatusResponse(BaseModel):
    game_id: int
    status: GameStatus
    name: Optional[str] = None
    current_round: int
    locations_per_round: int
    user_completed_rounds: int
    finished: bool


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: int
    user_name: Optional[str] = None
    total_distance: float
    total_score: int
    rounds_played: int
    completed: bool

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def total_distance_label(self) -> str:
        return format_total_distance(self.total_distance)


class LeaderboardResponse(BaseModel):
    game_id: int
    revealed: bool
    current_round: int
    game_type: str
    leaderboard: list[LeaderboardEntryResponse] = []


class HintResponse(BaseModel):
    game_round_id: int
    center: CoordinateResponse
    radius_km: float


class GameTypeResponse(BaseModel):
    id: str
    kind: GameKind
    name: str
    timeout_penalty: float
    score_scale_factor: float
    hint_radius: float


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: Optional[str] = None
