"""
Game-type registry.

A game type combines a location pool kind (country / world / image) with a
pool selector (country name, world category or image map id).  The
registry is built once at process start by ``build_default_registry`` and
handed to whoever needs lookups; it is read-only after construction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from .enums import GameKind
from .errors import UnknownGameType

logger = logging.getLogger(__name__)

DEFAULT_GAME_TYPE = "country:switzerland"
DEFAULT_COUNTRY = "switzerland"


@dataclass(frozen=True)
class Bounds:
    south: float
    west: float
    north: float
    east: float


# Ranking box used for world maps, which have no bounds of their own
WORLD_BOUNDS = Bounds(south=-85.0, west=-180.0, north=85.0, east=180.0)


@dataclass(frozen=True)
class LocalizedName:
    de: str
    en: str
    sl: str

    def get(self, locale: str) -> str:
        return getattr(self, locale, None) or self.en


@dataclass(frozen=True)
class GameTypeConfig:
    id: str
    kind: GameKind
    name: LocalizedName
    timeout_penalty: float  # km
    score_scale_factor: float  # km at which the score drops to 100/e
    bounds: Optional[Bounds] = None
    # Image maps only: pixel rectangle, lat = y, lng = x
    image_bounds: Optional[Bounds] = None
    # Pool selector for country types, as stored on ``locations.country``
    country_name: Optional[str] = None

    @property
    def selector(self) -> str:
        """The part after the colon: country key, world category or map id."""
        return self.id.split(":", 1)[1]

    @property
    def hint_radius(self) -> float:
        if self.kind == GameKind.WORLD:
            return 3000.0
        return self.score_scale_factor * 0.6


class GameTypeRegistry(Mapping[str, GameTypeConfig]):
    """Immutable id -> ``GameTypeConfig`` map with a default fallback."""

    def __init__(
        self,
        configs: list[GameTypeConfig] | tuple[GameTypeConfig, ...],
        default_id: str = DEFAULT_GAME_TYPE,
    ):
        self._configs = MappingProxyType({c.id: c for c in configs})
        if default_id not in self._configs:
            raise ValueError(f"Default game type {default_id!r} is not registered")
        self.default_id = default_id

    def __getitem__(self, game_type_id: str) -> GameTypeConfig:
        return self._configs[game_type_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    @property
    def default(self) -> GameTypeConfig:
        return self._configs[self.default_id]

    def lookup(self, game_type_id: str | None) -> GameTypeConfig:
        """Return the config for *game_type_id*, falling back to the default."""
        if game_type_id and game_type_id in self._configs:
            return self._configs[game_type_id]
        if game_type_id:
            logger.warning(
                "Unknown game type %r, falling back to %s", game_type_id, self.default_id
            )
        return self.default

    def lookup_strict(self, game_type_id: str) -> GameTypeConfig:
        try:
            return self._configs[game_type_id]
        except KeyError:
            raise UnknownGameType(f"Unknown game type: {game_type_id}") from None

    def by_kind(self, kind: GameKind) -> list[GameTypeConfig]:
        return [c for c in self._configs.values() if c.kind == kind]


# ── Selectors ─────────────────────────────────────────────────────────


def game_type_from_country(country: str) -> str:
    """Legacy ``switzerland`` -> ``country:switzerland``."""
    return f"country:{country}"


def effective_game_type(game_type: str | None, country: str | None) -> str:
    """The game's own type, else the one implied by its legacy country field."""
    return game_type or game_type_from_country(country or DEFAULT_COUNTRY)


def kind_of(game_type_id: str) -> GameKind:
    """``world:capitals`` -> ``GameKind.WORLD``.  Raises ``UnknownGameType``."""
    prefix = game_type_id.split(":", 1)[0]
    try:
        return GameKind(prefix)
    except ValueError:
        raise UnknownGameType(f"Unknown game type: {game_type_id}") from None


def is_world_game_type(game_type_id: str | None) -> bool:
    return bool(game_type_id) and game_type_id.startswith("world:")


def is_image_game_type(game_type_id: str | None) -> bool:
    return bool(game_type_id) and game_type_id.startswith("image:")


def country_key(game_type_id: str) -> str | None:
    """``country:slovenia`` -> ``slovenia``."""
    if not game_type_id.startswith("country:"):
        return None
    return game_type_id.split(":", 1)[1]


def world_category(game_type_id: str) -> str | None:
    """``world:capitals`` -> ``capitals``."""
    if not is_world_game_type(game_type_id):
        return None
    return game_type_id.split(":", 1)[1]


def image_map_id(game_type_id: str) -> str | None:
    """``image:garten`` -> ``garten``."""
    if not is_image_game_type(game_type_id):
        return None
    return game_type_id.split(":", 1)[1]


# ── Default configuration ─────────────────────────────────────────────


def _world(slug: str, de: str, en: str, sl: str) -> GameTypeConfig:
    return GameTypeConfig(
        id=f"world:{slug}",
        kind=GameKind.WORLD,
        name=LocalizedName(de=de, en=en, sl=sl),
        timeout_penalty=5000,
        score_scale_factor=3000,
    )


def build_default_registry(default_id: str = DEFAULT_GAME_TYPE) -> GameTypeRegistry:
    return GameTypeRegistry(
        [
            GameTypeConfig(
                id="country:switzerland",
                kind=GameKind.COUNTRY,
                name=LocalizedName(de="Schweiz", en="Switzerland", sl="Švica"),
                bounds=Bounds(south=45.8, west=5.9, north=47.8, east=10.5),
                timeout_penalty=400,
                score_scale_factor=100,
                country_name="Switzerland",
            ),
            GameTypeConfig(
                id="country:slovenia",
                kind=GameKind.COUNTRY,
                name=LocalizedName(de="Slowenien", en="Slovenia", sl="Slovenija"),
                bounds=Bounds(south=45.4, west=13.4, north=46.9, east=16.6),
                timeout_penalty=250,
                score_scale_factor=60,
                country_name="Slovenia",
            ),
            _world("highest-mountains", "Höchste Berge", "Highest Mountains", "Najvišje gore"),
            _world("capitals", "Hauptstädte", "World Capitals", "Prestolnice"),
            _world("famous-places", "Berühmte Orte", "Famous Places", "Znamenite lokacije"),
            _world("unesco", "UNESCO Welterbe", "UNESCO World Heritage", "UNESCO svetovna dediščina"),
            _world("airports", "Internationale Flughäfen", "International Airports", "Mednarodna letališča"),
            # 2330 x 2229 px at 92 px = 10 m, roughly 253 m x 242 m
            GameTypeConfig(
                id="image:garten",
                kind=GameKind.IMAGE,
                name=LocalizedName(de="Garten", en="Garden", sl="Vrt"),
                image_bounds=Bounds(south=0, west=0, north=2229, east=2330),
                timeout_penalty=0.350,
                score_scale_factor=0.035,
            ),
        ],
        default_id=default_id,
    )
