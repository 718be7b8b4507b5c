"""Trip, stop and place dataclasses plus their wire (camelCase JSON) form.

Timestamps are timezone-aware UTC datetimes in memory and epoch-millisecond
integers on the wire. A stop embeds a snapshot of the place it points at, so
it still renders after the catalog entry is edited or removed.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import CUSTOM_PLACE_PREFIX

TRANSPORT_MODES = ("car", "motorbike", "scooter", "bus", "bicycle", "walking")
ROAD_CONDITIONS = ("sealed", "mixed", "rough")
START_KEYS = ("dili", "none")


def utc_now() -> datetime:
    """Return the current UTC time truncated to whole milliseconds."""

    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_epoch_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(round(value.timestamp() * 1000))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Coerce epoch milliseconds, ISO strings or datetimes into UTC datetimes."""

    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return parse_timestamp(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def _flag(value: Any) -> bool:
    """Interpret a stored boolean; unrecognised strings count as ``False``."""

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(value, (int, float)):
        return value == 1
    return False


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True, slots=True)
class Coordinates:
    """WGS84 latitude/longitude pair in degrees."""

    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Coordinates"]:
        if isinstance(data, Coordinates):
            return data
        if isinstance(data, Mapping):
            lat = _optional_float(data.get("lat"))
            lng = _optional_float(data.get("lng", data.get("lon")))
        elif isinstance(data, (list, tuple)) and len(data) == 2:
            lat = _optional_float(data[0])
            lng = _optional_float(data[1])
        else:
            return None
        if lat is None or lng is None:
            return None
        return cls(lat=lat, lng=lng)


class PlaceKind(str, Enum):
    CATALOG = "catalog"
    CUSTOM = "custom"


@dataclass(slots=True)
class PlaceSnapshot:
    """Display fields of a place, copied into the stop when it was added."""

    id: str
    title: str
    coords: Coordinates
    category: str = "other"
    municipality: Optional[str] = None
    kind: PlaceKind = PlaceKind.CATALOG

    @property
    def is_custom(self) -> bool:
        return self.kind is PlaceKind.CUSTOM

    @classmethod
    def custom(
        cls, coords: Coordinates, title: Optional[str] = None
    ) -> "PlaceSnapshot":
        """Synthesize a user-drawn pin that is never looked up in the catalog."""

        label = (title or "").strip() or (
            f"Custom Stop ({coords.lat:.4f}, {coords.lng:.4f})"
        )
        return cls(
            id=f"{CUSTOM_PLACE_PREFIX}{time.time_ns() // 1_000_000}-{uuid.uuid4().hex[:6]}",
            title=label,
            coords=coords,
            kind=PlaceKind.CUSTOM,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "title": self.title,
                "coords": self.coords.to_dict(),
                "category": self.category,
                "municipality": self.municipality,
                "kind": self.kind.value,
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlaceSnapshot":
        place_id = str(data.get("id") or "")
        coords = Coordinates.from_dict(data.get("coords"))
        if coords is None:
            raise ValueError(f"place {place_id!r} has no usable coordinates")
        raw_kind = data.get("kind")
        if raw_kind in (PlaceKind.CATALOG.value, PlaceKind.CUSTOM.value):
            kind = PlaceKind(raw_kind)
        elif place_id.startswith(CUSTOM_PLACE_PREFIX):
            # Records written before the explicit tag existed.
            kind = PlaceKind.CUSTOM
        else:
            kind = PlaceKind.CATALOG
        return cls(
            id=place_id,
            title=str(data.get("title") or ""),
            coords=coords,
            category=str(data.get("category") or "other"),
            municipality=data.get("municipality") or None,
            kind=kind,
        )


@dataclass(slots=True)
class TripPhoto:
    url: str
    caption: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({"url": self.url, "caption": self.caption})

    @classmethod
    def from_dict(cls, data: Any) -> Optional["TripPhoto"]:
        if isinstance(data, TripPhoto):
            return data
        if isinstance(data, str) and data:
            return cls(url=data)
        if isinstance(data, Mapping) and data.get("url"):
            caption = data.get("caption", data.get("alt"))
            return cls(url=str(data["url"]), caption=caption or None)
        return None


@dataclass(slots=True)
class TripPlace:
    """One itinerary stop. Position is ``order``, never the list index."""

    place_id: str
    place: PlaceSnapshot
    order: int = 0
    notes: str = ""
    photo: Optional[TripPhoto] = None

    @classmethod
    def for_place(cls, place: PlaceSnapshot, notes: str = "") -> "TripPlace":
        return cls(place_id=place.id, place=place, notes=notes)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "placeId": self.place_id,
                "place": self.place.to_dict(),
                "order": self.order,
                "notes": self.notes,
                "photo": self.photo.to_dict() if self.photo else None,
            }
        )

    @classmethod
    def from_dict(cls, data: Any) -> "TripPlace":
        if isinstance(data, TripPlace):
            return data
        place = PlaceSnapshot.from_dict(data.get("place") or {})
        try:
            order = int(data.get("order") or 0)
        except (TypeError, ValueError):
            order = 0
        return cls(
            place_id=str(data.get("placeId") or place.id),
            place=place,
            order=order,
            notes=str(data.get("notes") or ""),
            photo=TripPhoto.from_dict(data.get("photo")),
        )


def normalize_places(places: Iterable[TripPlace]) -> List[TripPlace]:
    """Sort stops by ``order`` and renumber them densely from zero."""

    ordered = sorted(places, key=lambda stop: stop.order)
    return [replace(stop, order=index) for index, stop in enumerate(ordered)]


def renumber_places(places: Iterable[TripPlace]) -> List[TripPlace]:
    """Renumber stops in their current list position (used after splicing)."""

    return [replace(stop, order=index) for index, stop in enumerate(places)]


# Wire name -> dataclass field name for scalar trip fields.
_WIRE_FIELDS = {
    "id": "id",
    "name": "name",
    "description": "description",
    "ownerId": "owner_id",
    "isPublic": "is_public",
    "transportMode": "transport_mode",
    "roadCondition": "road_condition",
    "startKey": "start_key",
    "customEndName": "custom_end_name",
    "overrideDistanceKm": "override_distance_km",
    "overrideTimeHours": "override_time_hours",
    "estimatedDuration": "estimated_duration",
}


@dataclass(slots=True)
class Trip:
    id: str
    name: str
    places: List[TripPlace] = field(default_factory=list)
    owner_id: str = "anonymous"
    is_public: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    description: Optional[str] = None
    transport_mode: Optional[str] = None
    road_condition: Optional[str] = None
    start_key: Optional[str] = None
    custom_end_name: Optional[str] = None
    custom_end_coords: Optional[Coordinates] = None
    override_distance_km: Optional[float] = None
    override_time_hours: Optional[float] = None
    estimated_duration: Optional[int] = None
    trip_photos: List[TripPhoto] = field(default_factory=list)

    @property
    def ordered_places(self) -> List[TripPlace]:
        return sorted(self.places, key=lambda stop: stop.order)

    def find_stop(self, place_id: str) -> Optional[TripPlace]:
        for stop in self.places:
            if stop.place_id == place_id:
                return stop
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire payload with epoch-millisecond timestamps."""

        payload: Dict[str, Any] = {
            wire: getattr(self, attr) for wire, attr in _WIRE_FIELDS.items()
        }
        payload["places"] = [stop.to_dict() for stop in self.ordered_places]
        payload["customEndCoords"] = (
            self.custom_end_coords.to_dict() if self.custom_end_coords else None
        )
        if self.trip_photos:
            payload["tripPhotos"] = [photo.to_dict() for photo in self.trip_photos]
        payload["createdAt"] = to_epoch_ms(self.created_at)
        payload["updatedAt"] = to_epoch_ms(self.updated_at)
        return _drop_none(payload)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Trip":
        kwargs: Dict[str, Any] = {}
        for wire, attr in _WIRE_FIELDS.items():
            if wire in data and data[wire] is not None:
                kwargs[attr] = data[wire]
        kwargs["id"] = str(data.get("id") or "")
        kwargs["name"] = str(data.get("name") or "")
        kwargs["is_public"] = _flag(data.get("isPublic"))
        for attr in ("override_distance_km", "override_time_hours"):
            if attr in kwargs:
                kwargs[attr] = _optional_float(kwargs[attr])
        kwargs["places"] = normalize_places(
            TripPlace.from_dict(item) for item in data.get("places") or []
        )
        kwargs["custom_end_coords"] = Coordinates.from_dict(
            data.get("customEndCoords")
        )
        photos = (TripPhoto.from_dict(p) for p in data.get("tripPhotos") or [])
        kwargs["trip_photos"] = [photo for photo in photos if photo is not None]
        created = parse_timestamp(data.get("createdAt")) or utc_now()
        kwargs["created_at"] = created
        kwargs["updated_at"] = parse_timestamp(data.get("updatedAt")) or created
        return cls(**kwargs)


TRIP_FIELDS = frozenset(f.name for f in fields(Trip))
_ATTR_BY_WIRE = {
    **_WIRE_FIELDS,
    "places": "places",
    "customEndCoords": "custom_end_coords",
    "tripPhotos": "trip_photos",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def coerce_trip_fields(partial: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a partial update (snake_case or wire names) onto typed field values.

    Unknown keys are dropped. Nested values given as plain dicts are parsed,
    so callers may pass either model objects or JSON-shaped data.
    """

    coerced: Dict[str, Any] = {}
    for key, value in partial.items():
        attr = key if key in TRIP_FIELDS else _ATTR_BY_WIRE.get(key)
        if attr is None:
            continue
        if attr == "places":
            value = [TripPlace.from_dict(item) for item in value or []]
        elif attr == "custom_end_coords":
            value = Coordinates.from_dict(value)
        elif attr == "trip_photos":
            photos = (TripPhoto.from_dict(item) for item in value or [])
            value = [photo for photo in photos if photo is not None]
        elif attr in ("created_at", "updated_at"):
            value = parse_timestamp(value)
        elif attr == "is_public":
            value = _flag(value)
        elif attr in ("override_distance_km", "override_time_hours"):
            value = _optional_float(value)
        coerced[attr] = value
    return coerced


def later_than(previous: datetime, candidate: datetime) -> datetime:
    """Return ``candidate`` bumped so it is strictly after ``previous``."""

    if candidate > previous:
        return candidate
    return previous + timedelta(milliseconds=1)


__all__ = [
    "Coordinates",
    "PlaceKind",
    "PlaceSnapshot",
    "ROAD_CONDITIONS",
    "START_KEYS",
    "TRANSPORT_MODES",
    "Trip",
    "TripPhoto",
    "TripPlace",
    "coerce_trip_fields",
    "later_than",
    "normalize_places",
    "parse_timestamp",
    "renumber_places",
    "to_epoch_ms",
    "utc_now",
]
