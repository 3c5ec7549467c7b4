"""
Hint Circle Generator
=====================

Places a circle of fixed radius so that the target lies strictly inside it
but never at its center, preferring placements that keep the whole circle
inside the map.

Algorithm
---------
1. Score the eight bearings 0, 45, ..., 315 by the open space between the
   target and the map edges in that direction (diagonals take the smaller
   of their two edges).
2. Walk the bearings best-space-first.  For each, perturb the bearing by a
   uniform offset in [-30, +30] degrees and pick a center distance uniform
   in [min_buffer, radius - min_buffer].
3. Project the center from the target and accept the first circle that
   fits inside the bounds.  World maps have no bounds and always accept.
4. If nothing fits, use the best-ranked bearing anyway.  The circle may
   overflow the map edge; this never raises.

Geographic maps project along great circles.  Image maps run the same
steps in pixel space with a planar projection.

Complexity: O(1) -- at most nine projections per hint.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Optional, Protocol

from .distance import EARTH_RADIUS_KM, METERS_PER_PIXEL
from .entities import Coordinate
from .enums import GameKind
from .game_types import WORLD_BOUNDS, Bounds, GameTypeConfig, GameTypeRegistry

KM_PER_DEGREE_LAT = 111.0
BEARINGS = (0, 45, 90, 135, 180, 225, 270, 315)
BEARING_JITTER_DEG = 30.0


def min_buffer(radius: float, floor: float = 5.0) -> float:
    """Closest the target may come to the circle's center or edge.

    ``max(floor, 8 % of radius)``, shrunk to 8 % when the floor would leave
    no room inside a small circle.
    """
    buffer = max(floor, radius * 0.08)
    if 2 * buffer > radius:
        buffer = radius * 0.08
    return buffer


def hint_circle_radius(game_type: GameTypeConfig) -> float:
    """World maps: 3000 km.  Everything else: 60 % of the score scale factor."""
    return game_type.hint_radius


def destination_point(
    lat: float, lng: float, distance_km: float, bearing_deg: float
) -> Coordinate:
    """Point reached travelling *distance_km* along a great circle at *bearing_deg*."""
    lat1 = math.radians(lat)
    lng1 = math.radians(lng)
    bearing = math.radians(bearing_deg)
    angular = distance_km / EARTH_RADIUS_KM

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(bearing)
    )
    lng2 = lng1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )
    return Coordinate(lat=math.degrees(lat2), lng=math.degrees(lng2))


def km_per_degree_lng(lat: float) -> float:
    return max(KM_PER_DEGREE_LAT * math.cos(math.radians(lat)), 1e-6)


def circle_within_bounds(center: Coordinate, radius_km: float, bounds: Bounds) -> bool:
    """Whether the circle's bounding box lies inside *bounds*."""
    radius_lat = radius_km / KM_PER_DEGREE_LAT
    radius_lng = radius_km / km_per_degree_lng(center.lat)
    return (
        center.lat - radius_lat >= bounds.south
        and center.lat + radius_lat <= bounds.north
        and center.lng - radius_lng >= bounds.west
        and center.lng + radius_lng <= bounds.east
    )


# ── Coordinate spaces ─────────────────────────────────────────────────


class _Space(Protocol):
    def edge_space(self, target: Coordinate, bounds: Bounds) -> dict[str, float]: ...

    def project(self, target: Coordinate, distance: float, bearing: float) -> Coordinate: ...

    def fits(self, center: Coordinate, radius: float, bounds: Bounds) -> bool: ...


class GeoSpace:
    """Lat/lng maps; distances in km."""

    def edge_space(self, target: Coordinate, bounds: Bounds) -> dict[str, float]:
        per_lng = km_per_degree_lng(target.lat)
        return {
            "north": (bounds.north - target.lat) * KM_PER_DEGREE_LAT,
            "south": (target.lat - bounds.south) * KM_PER_DEGREE_LAT,
            "east": (bounds.east - target.lng) * per_lng,
            "west": (target.lng - bounds.west) * per_lng,
        }

    def project(self, target: Coordinate, distance: float, bearing: float) -> Coordinate:
        return destination_point(target.lat, target.lng, distance, bearing)

    def fits(self, center: Coordinate, radius: float, bounds: Bounds) -> bool:
        return circle_within_bounds(center, radius, bounds)


class PixelSpace:
    """Image maps; distances in pixels, lat = y (up), lng = x."""

    def edge_space(self, target: Coordinate, bounds: Bounds) -> dict[str, float]:
        return {
            "north": bounds.north - target.lat,
            "south": target.lat - bounds.south,
            "east": bounds.east - target.lng,
            "west": target.lng - bounds.west,
        }

    def project(self, target: Coordinate, distance: float, bearing: float) -> Coordinate:
        rad = math.radians(bearing)
        return Coordinate(
            lat=target.lat + distance * math.cos(rad),
            lng=target.lng + distance * math.sin(rad),
        )

    def fits(self, center: Coordinate, radius: float, bounds: Bounds) -> bool:
        return (
            center.lat - radius >= bounds.south
            and center.lat + radius <= bounds.north
            and center.lng - radius >= bounds.west
            and center.lng + radius <= bounds.east
        )


def best_bearings(target: Coordinate, bounds: Bounds, space: _Space | None = None) -> list[int]:
    """Candidate bearings sorted by open space towards the map edge, most first."""
    edges = (space or GeoSpace()).edge_space(target, bounds)
    n, s, e, w = edges["north"], edges["south"], edges["east"], edges["west"]
    scored = [
        (0, n),
        (45, min(n, e)),
        (90, e),
        (135, min(s, e)),
        (180, s),
        (225, min(s, w)),
        (270, w),
        (315, min(n, w)),
    ]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [bearing for bearing, _ in scored]


def _place_center(
    target: Coordinate,
    radius: float,
    buffer: float,
    bounds: Bounds,
    space: _Space,
    rng: random.Random,
    check_bounds: bool,
) -> Coordinate:
    bearings = best_bearings(target, bounds, space)

    def candidate(base: int) -> Coordinate:
        bearing = base + rng.uniform(-BEARING_JITTER_DEG, BEARING_JITTER_DEG)
        distance = rng.uniform(buffer, radius - buffer)
        return space.project(target, distance, bearing)

    for base in bearings:
        center = candidate(base)
        if not check_bounds or space.fits(center, radius, bounds):
            return center

    return candidate(bearings[0])


def generate_hint_circle_center(
    target_lat: float,
    target_lng: float,
    radius_km: float,
    game_type: GameTypeConfig,
    rng: Optional[random.Random] = None,
) -> Coordinate:
    """Center for a hint circle of *radius_km* around a target.

    The target ends up between ``min_buffer`` and ``radius - min_buffer``
    from the returned center.
    """
    rng = rng or random.Random()
    target = Coordinate(lat=target_lat, lng=target_lng)

    if game_type.kind == GameKind.IMAGE:
        radius_px = radius_km * 1000 / METERS_PER_PIXEL
        bounds = game_type.image_bounds or Bounds(
            south=target.lat - radius_px,
            west=target.lng - radius_px,
            north=target.lat + radius_px,
            east=target.lng + radius_px,
        )
        return _place_center(
            target,
            radius_px,
            radius_px * 0.08,
            bounds,
            PixelSpace(),
            rng,
            check_bounds=game_type.image_bounds is not None,
        )

    is_world = game_type.kind == GameKind.WORLD or game_type.bounds is None
    return _place_center(
        target,
        radius_km,
        min_buffer(radius_km),
        WORLD_BOUNDS if is_world else game_type.bounds,
        GeoSpace(),
        rng,
        check_bounds=not is_world,
    )


@dataclass(frozen=True)
class Hint:
    center: Coordinate
    radius_km: float


class HintGenerator:
    """Registry-aware front end used by the service and the API."""

    def __init__(self, registry: GameTypeRegistry, rng: Optional[random.Random] = None):
        self.registry = registry
        self.rng = rng or random.Random()

    def generate(self, target: Coordinate, game_type_id: str | None) -> Hint:
        config = self.registry.lookup(game_type_id)
        radius = hint_circle_radius(config)
        center = generate_hint_circle_center(
            target.lat, target.lng, radius, config, self.rng
        )
        return Hint(center=center, radius_km=radius)
