"""
Distance calculation for geographic and image maps.

Geographic maps use the Haversine great-circle formula.  Image maps place
guesses in pixel space, converted with a fixed scale of 92 px = 10 m.

Complexity: O(1) per call.
"""

import math

from .entities import Coordinate
from .enums import GameKind, SpaceKind
from .game_types import is_image_game_type

EARTH_RADIUS_KM = 6_371.0

# 92 pixels = 10 meters on every image map
METERS_PER_PIXEL = 10 / 92


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves up (2.5 -> 3); the builtin ``round`` sends them to the even neighbour."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the unrounded great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def calculate_distance(
    lat1: float, lon1: float, lat2: float, lon2: float
) -> float:
    """Haversine distance in km, rounded to one decimal place."""
    return round_half_up(haversine_km(lat1, lon1, lat2, lon2), 1)


def calculate_pixel_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Pixel distance on an image map, rounded to the meter, in km."""
    pixels = math.hypot(x2 - x1, y2 - y1)
    meters = round_half_up(pixels * METERS_PER_PIXEL)
    return meters / 1000


def space_for(kind: GameKind) -> SpaceKind:
    return SpaceKind.PIXEL if kind == GameKind.IMAGE else SpaceKind.GEO


def compute_distance(a: Coordinate, b: Coordinate, space: SpaceKind) -> float:
    """Distance in km between *a* and *b* in the given coordinate space."""
    if space == SpaceKind.PIXEL:
        # image maps: lat = y, lng = x
        return calculate_pixel_distance(a.lng, a.lat, b.lng, b.lat)
    return calculate_distance(a.lat, a.lng, b.lat, b.lng)


def format_distance(distance_km: float, game_type_id: str | None = None) -> str:
    """'23 m' on image maps, '5.2 km' everywhere else."""
    if is_image_game_type(game_type_id):
        return f"{int(round_half_up(distance_km * 1000))} m"
    return f"{distance_km:.1f} km"


def format_total_distance(distance_km: float) -> str:
    return f"{distance_km:.3f} km"
