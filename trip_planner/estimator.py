"""Trip metrics estimator: distance, travel time and recommended days.

Each leg between consecutive itinerary points takes the straight-line
distance, inflates it by a road-condition route factor (real roads are never
straight), and divides by an effective speed of ``mode base speed x road
speed factor``. Days blend sightseeing (half a day per two stops) with a
six-hour daily travel budget.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import (
    DEFAULT_ROAD_CONDITION,
    DEFAULT_START_KEY,
    DEFAULT_TRANSPORT_MODE,
    START_PRESETS,
)
from .geo import distance_km
from .models import Coordinates, Trip

MODE_BASE_SPEED_KPH = {
    "car": 45.0,
    "motorbike": 40.0,
    "scooter": 38.0,
    "bus": 35.0,
    "bicycle": 14.0,
    "walking": 4.5,
}

CONDITION_SPEED_FACTOR = {
    "sealed": 1.0,
    "mixed": 0.8,
    "rough": 0.6,
}

CONDITION_ROUTE_FACTOR = {
    "sealed": 1.9,
    "mixed": 2.2,
    "rough": 2.6,
}

# Sightseeing stops per day and travel hours per day used for the duration.
STOPS_PER_DAY = 2
TRAVEL_HOURS_PER_DAY = 6


@dataclass(frozen=True, slots=True)
class Leg:
    distance_km: float
    time_hours: float


@dataclass(frozen=True, slots=True)
class TripExtras:
    """Synthetic points added before the first stop and after the last."""

    start: Optional[Coordinates] = None
    end: Optional[Coordinates] = None


@dataclass(frozen=True, slots=True)
class TripStats:
    total_distance_km: float
    total_time_hours: float
    estimated_days: int


def _mode(value: Optional[str]) -> str:
    return value if value in MODE_BASE_SPEED_KPH else DEFAULT_TRANSPORT_MODE


def _condition(value: Optional[str]) -> str:
    return value if value in CONDITION_SPEED_FACTOR else DEFAULT_ROAD_CONDITION


def leg_stats(
    origin: Coordinates,
    destination: Coordinates,
    mode: Optional[str],
    condition: Optional[str],
) -> Leg:
    """Estimate one leg; a non-positive effective speed yields zero hours."""

    condition = _condition(condition)
    road_km = distance_km(origin, destination) * CONDITION_ROUTE_FACTOR[condition]
    speed = MODE_BASE_SPEED_KPH[_mode(mode)] * CONDITION_SPEED_FACTOR[condition]
    hours = road_km / speed if speed > 0 else 0.0
    return Leg(distance_km=road_km, time_hours=hours)


def estimated_days(stop_count: int, time_hours: float) -> int:
    raw = stop_count / STOPS_PER_DAY + time_hours / TRAVEL_HOURS_PER_DAY
    if not math.isfinite(raw):
        return 1
    return max(1, math.ceil(raw))


def itinerary_points(
    trip: Trip, extras: Optional[TripExtras] = None
) -> List[Coordinates]:
    """Return the ordered points legs are computed over, extras included."""

    points = [stop.place.coords for stop in trip.ordered_places]
    if not points:
        return []
    if extras and extras.start is not None:
        points.insert(0, extras.start)
    if extras and extras.end is not None:
        points.append(extras.end)
    return points


def legs_for(
    points: Sequence[Coordinates], mode: Optional[str], condition: Optional[str]
) -> List[Leg]:
    return [
        leg_stats(origin, destination, mode, condition)
        for origin, destination in zip(points, points[1:])
    ]


def estimate(trip: Trip, extras: Optional[TripExtras] = None) -> TripStats:
    """Aggregate distance, time and recommended days for ``trip``.

    Manual overrides win verbatim. When only one override is set the other
    figure is reported as ``0`` instead of falling back to the computed value.
    """

    stop_count = len(trip.places)
    if trip.override_distance_km is not None or trip.override_time_hours is not None:
        distance = trip.override_distance_km or 0.0
        hours = trip.override_time_hours or 0.0
        return TripStats(distance, hours, estimated_days(stop_count, hours))

    if stop_count == 0:
        return TripStats(0.0, 0.0, 1)

    legs = legs_for(
        itinerary_points(trip, extras), trip.transport_mode, trip.road_condition
    )
    total_distance = sum(leg.distance_km for leg in legs)
    total_time = sum(leg.time_hours for leg in legs)
    return TripStats(
        total_distance, total_time, estimated_days(stop_count, total_time)
    )


def start_coordinates(start_key: Optional[str]) -> Optional[Coordinates]:
    """Resolve a start preset key; ``None`` means the default preset."""

    key = start_key or DEFAULT_START_KEY
    preset = START_PRESETS.get(key)
    if preset is None:
        return None
    _label, lat, lng = preset
    return Coordinates(lat=lat, lng=lng)


def extras_for_trip(trip: Trip) -> TripExtras:
    """Build the start/end extras from a trip's saved planning preferences."""

    return TripExtras(
        start=start_coordinates(trip.start_key), end=trip.custom_end_coords
    )


__all__ = [
    "CONDITION_ROUTE_FACTOR",
    "CONDITION_SPEED_FACTOR",
    "Leg",
    "MODE_BASE_SPEED_KPH",
    "TripExtras",
    "TripStats",
    "estimate",
    "estimated_days",
    "extras_for_trip",
    "itinerary_points",
    "leg_stats",
    "legs_for",
    "start_coordinates",
]
