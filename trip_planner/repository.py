"""Local trip repository: the client-resident system of record for trips.

The whole collection lives in memory and is serialized back to the store on
every mutation, O(total trips) per write. Storage failures are logged and
swallowed: the in-memory state keeps the mutation for the current session.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import TRIPS_STORAGE_KEY
from .errors import StopNotFoundError, TripNotFoundError, TripStorageError
from .models import (
    Trip,
    TripPlace,
    coerce_trip_fields,
    later_than,
    normalize_places,
    renumber_places,
    utc_now,
)
from .storage import KeyValueStore

LOGGER = logging.getLogger(__name__)

# Fields a partial update may never overwrite.
_PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at"})


def _new_trip_id() -> str:
    return f"trip-{uuid.uuid4().hex}"


def _newest_first(trips: Sequence[Trip]) -> List[Trip]:
    return sorted(trips, key=lambda trip: trip.updated_at, reverse=True)


class TripRepository:
    """Key-addressed trip store with load-or-default initialisation."""

    def __init__(self, store: KeyValueStore, storage_key: str = TRIPS_STORAGE_KEY):
        self._store = store
        self._storage_key = storage_key
        self._lock = threading.RLock()
        self._trips: Dict[str, Trip] = {}

    @classmethod
    def open(
        cls, store: KeyValueStore, storage_key: str = TRIPS_STORAGE_KEY
    ) -> "TripRepository":
        repository = cls(store, storage_key)
        repository.load()
        return repository

    # --- Persistence ---------------------------------------------------
    def load(self) -> int:
        """Replace the in-memory collection with the stored one.

        Returns the number of trips loaded. Unreadable documents start an
        empty collection; individual malformed records are skipped.
        """

        try:
            raw = self._store.read(self._storage_key)
        except TripStorageError as exc:
            LOGGER.error("Failed to read trips from local store: %s", exc)
            raw = None
        trips: Dict[str, Trip] = {}
        if raw:
            try:
                records = json.loads(raw)
            except ValueError as exc:
                LOGGER.error("Stored trips are not valid JSON: %s", exc)
                records = []
            if not isinstance(records, list):
                LOGGER.error("Stored trips are not a list; ignoring")
                records = []
            for record in records:
                try:
                    trip = Trip.from_dict(record)
                except (AttributeError, TypeError, ValueError) as exc:
                    LOGGER.warning("Skipping malformed stored trip: %s", exc)
                    continue
                if trip.id:
                    trips[trip.id] = trip
        with self._lock:
            self._trips = trips
        LOGGER.debug("Loaded %d trips from local store", len(trips))
        return len(trips)

    def _persist(self) -> None:
        payload = json.dumps([trip.to_dict() for trip in self._trips.values()])
        try:
            self._store.write(self._storage_key, payload)
        except (TripStorageError, OSError, TypeError, ValueError) as exc:
            LOGGER.error("Failed to save trips to local store: %s", exc)

    # --- CRUD ----------------------------------------------------------
    def create(self, data: Mapping[str, Any]) -> Trip:
        """Store a new trip with a generated id and matching timestamps."""

        fields = {
            key: value
            for key, value in coerce_trip_fields(data).items()
            if key not in _PROTECTED_FIELDS
        }
        fields.setdefault("name", "")
        now = utc_now()
        trip = Trip(id=_new_trip_id(), created_at=now, updated_at=now, **fields)
        trip.places = normalize_places(trip.places)
        with self._lock:
            self._trips[trip.id] = trip
            self._persist()
        LOGGER.info("Created trip %s (%d stops)", trip.id, len(trip.places))
        return copy.deepcopy(trip)

    def update(self, trip_id: str, partial: Mapping[str, Any]) -> Optional[Trip]:
        """Shallow-merge ``partial`` over the stored trip.

        Nested fields such as ``places`` are replaced wholesale. A missing
        trip is a no-op returning ``None``.
        """

        changes = {
            key: value
            for key, value in coerce_trip_fields(partial).items()
            if key not in _PROTECTED_FIELDS
        }
        if "places" in changes:
            changes["places"] = normalize_places(changes["places"])
        with self._lock:
            existing = self._trips.get(trip_id)
            if existing is None:
                LOGGER.debug("Update ignored; trip %s not found", trip_id)
                return None
            updated = replace(
                existing,
                **changes,
                updated_at=later_than(existing.updated_at, utc_now()),
            )
            self._trips[trip_id] = updated
            self._persist()
        return copy.deepcopy(updated)

    def delete(self, trip_id: str) -> Optional[Trip]:
        """Remove a trip and return it, or ``None`` if it did not exist."""

        with self._lock:
            removed = self._trips.pop(trip_id, None)
            if removed is None:
                return None
            self._persist()
        LOGGER.info("Deleted trip %s", trip_id)
        return removed

    def get(self, trip_id: str) -> Optional[Trip]:
        with self._lock:
            trip = self._trips.get(trip_id)
            return copy.deepcopy(trip) if trip is not None else None

    def list_all(self) -> List[Trip]:
        with self._lock:
            return copy.deepcopy(_newest_first(list(self._trips.values())))

    def list_by_owner(self, owner_id: str) -> List[Trip]:
        return [trip for trip in self.list_all() if trip.owner_id == owner_id]

    def list_public(self) -> List[Trip]:
        return [trip for trip in self.list_all() if trip.is_public]

    def __len__(self) -> int:
        return len(self._trips)

    # --- Stop-level helpers --------------------------------------------
    def _require(self, trip_id: str) -> Trip:
        trip = self._trips.get(trip_id)
        if trip is None:
            raise TripNotFoundError(f"Trip not found: {trip_id}")
        return trip

    def _replace_places(self, trip_id: str, places: List[TripPlace]) -> Trip:
        updated = self.update(trip_id, {"places": renumber_places(places)})
        if updated is None:
            raise TripNotFoundError(f"Trip not found: {trip_id}")
        return updated

    def update_stop(self, trip_id: str, place_id: str, **patch: Any) -> Trip:
        """Patch the stop identified by ``place_id`` (notes, place, photo...)."""

        with self._lock:
            trip = self._require(trip_id)
            if trip.find_stop(place_id) is None:
                raise StopNotFoundError(f"Stop {place_id} not in trip {trip_id}")
            places = [
                replace(stop, **patch) if stop.place_id == place_id else stop
                for stop in trip.places
            ]
            updated = self.update(trip_id, {"places": places})
        if updated is None:
            raise TripNotFoundError(f"Trip not found: {trip_id}")
        return updated

    def update_stop_at(self, trip_id: str, index: int, **patch: Any) -> Trip:
        with self._lock:
            places = self._require(trip_id).ordered_places
            if index < 0 or index >= len(places):
                raise IndexError("index out of range")
            places[index] = replace(places[index], **patch)
            return self._replace_places(trip_id, places)

    def insert_stop(
        self, trip_id: str, stop: TripPlace, index: Optional[int] = None
    ) -> Trip:
        """Insert ``stop`` at ``index`` (clamped), or append when omitted."""

        with self._lock:
            places = self._require(trip_id).ordered_places
            position = len(places) if index is None else max(0, min(index, len(places)))
            places.insert(position, stop)
            return self._replace_places(trip_id, places)

    def remove_stop(self, trip_id: str, place_id: str) -> Trip:
        with self._lock:
            places = [
                stop
                for stop in self._require(trip_id).ordered_places
                if stop.place_id != place_id
            ]
            return self._replace_places(trip_id, places)

    def reorder_stops(self, trip_id: str, place_ids: Sequence[str]) -> Trip:
        """Put the listed stops first, in order; unlisted stops follow."""

        with self._lock:
            current = self._require(trip_id).ordered_places
            by_id = {stop.place_id: stop for stop in current}
            reordered: List[TripPlace] = []
            seen = set()
            for place_id in place_ids:
                stop = by_id.get(place_id)
                if stop is not None and place_id not in seen:
                    reordered.append(stop)
                    seen.add(place_id)
            reordered.extend(stop for stop in current if stop.place_id not in seen)
            return self._replace_places(trip_id, reordered)

    def swap_stops(self, trip_id: str, first_id: str, second_id: str) -> Trip:
        with self._lock:
            places = self._require(trip_id).ordered_places
            ids = [stop.place_id for stop in places]
            try:
                a, b = ids.index(first_id), ids.index(second_id)
            except ValueError as exc:
                raise StopNotFoundError("placeId not found") from exc
            places[a], places[b] = places[b], places[a]
            return self._replace_places(trip_id, places)

    def set_overrides(
        self,
        trip_id: str,
        *,
        distance_km: Optional[float] = None,
        time_hours: Optional[float] = None,
    ) -> Optional[Trip]:
        """Set both manual overrides; ``None`` clears the figure."""

        return self.update(
            trip_id,
            {"override_distance_km": distance_km, "override_time_hours": time_hours},
        )


__all__ = ["TripRepository"]
