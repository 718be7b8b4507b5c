"""Great-circle helpers for WGS84 coordinates."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

from .models import Coordinates

_EARTH_RADIUS_KM = 6371.0

Bounds = Tuple[Tuple[float, float], Tuple[float, float]]


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """Return the haversine distance between ``a`` and ``b`` in kilometres.

    Non-finite inputs propagate as NaN; callers validate coordinates first.
    """

    sin = math.sin
    cos = math.cos
    radians = math.radians
    lat1_rad = radians(a.lat)
    lat2_rad = radians(b.lat)
    delta_lat = lat2_rad - lat1_rad
    delta_lon = radians(b.lng - a.lng)
    sin_half_lat = sin(delta_lat / 2.0)
    sin_half_lon = sin(delta_lon / 2.0)
    h = sin_half_lat**2 + cos(lat1_rad) * cos(lat2_rad) * sin_half_lon**2
    # Rounding can push h just past 1 for near-antipodal points.
    if h > 1.0:
        h = 1.0
    elif h < 0.0:
        h = 0.0
    c = 2.0 * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))
    return _EARTH_RADIUS_KM * c


def travel_time_hours(
    a: Coordinates, b: Coordinates, avg_speed_kph: float = 40.0
) -> float:
    """Straight-line travel time at a flat average speed."""

    return distance_km(a, b) / avg_speed_kph


def bounds(points: Sequence[Coordinates]) -> Optional[Bounds]:
    """Return ``((south, west), (north, east))`` or ``None`` for no points."""

    if not points:
        return None
    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    return (min(lats), min(lngs)), (max(lats), max(lngs))


__all__ = ["Bounds", "bounds", "distance_km", "travel_time_hours"]
