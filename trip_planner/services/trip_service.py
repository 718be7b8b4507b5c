"""Trip service: local-first mutations with fire-and-forget remote sync.

Every mutation commits to the local repository first and is never undone.
When the trip is public the matching remote call is submitted to a small
thread pool; callers get a future for the :class:`SyncResult` and may show its
warning or ignore it. Remote calls for the same trip are not serialized, so
two quick edits can race and the last *response* wins remotely.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence

from ..config import SYNC_MAX_WORKERS
from ..estimator import TripStats, estimate, extras_for_trip
from ..models import Trip, TripPlace
from ..repository import TripRepository
from ..sync.publisher import RemotePublishSynchronizer, SyncResult, SyncState


@dataclass(slots=True)
class MutationOutcome:
    trip: Optional[Trip]
    sync: Optional["Future[SyncResult]"] = None

    def sync_warning(self, timeout: Optional[float] = None) -> Optional[str]:
        """Wait for the sync (if any) and return its UI warning text."""

        if self.sync is None:
            return None
        return self.sync.result(timeout=timeout).warning


class TripService:
    def __init__(
        self,
        repository: TripRepository,
        synchronizer: Optional[RemotePublishSynchronizer] = None,
        *,
        max_workers: int = SYNC_MAX_WORKERS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.repository = repository
        self.synchronizer = synchronizer or RemotePublishSynchronizer()
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="trip-sync"
        )
        self._log = logger or logging.getLogger(self.__class__.__name__)

    # --- Lifecycle -----------------------------------------------------
    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "TripService":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    # --- Sync dispatch -------------------------------------------------
    def _submit(
        self, label: str, call: Callable[..., SyncResult], arg: Any
    ) -> "Future[SyncResult]":
        future = self._executor.submit(call, arg)

        def _report(done: "Future[SyncResult]") -> None:
            if done.cancelled() or done.exception() is not None:
                return
            result = done.result()
            if not result.ok:
                self._log.warning("%s did not sync: %s", label, result.error)

        future.add_done_callback(_report)
        return future

    def _sync_saved(self, trip: Trip) -> Optional["Future[SyncResult]"]:
        if not trip.is_public:
            return None
        tracker = self.synchronizer.tracker
        if tracker.state(trip.id) is SyncState.LOCAL_ONLY:
            return self._submit(
                f"Trip {trip.id} publish", self.synchronizer.publish, trip
            )
        tracker.mark_edited(trip.id)
        return self._submit(
            f"Trip {trip.id} update", self.synchronizer.republish, trip
        )

    # --- Trip mutations ------------------------------------------------
    def create(self, data: Mapping[str, Any]) -> MutationOutcome:
        trip = self.repository.create(data)
        sync = None
        if trip.is_public:
            sync = self._submit(
                f"Trip {trip.id} publish", self.synchronizer.publish, trip
            )
        return MutationOutcome(trip=trip, sync=sync)

    def update(self, trip_id: str, partial: Mapping[str, Any]) -> MutationOutcome:
        trip = self.repository.update(trip_id, partial)
        if trip is None:
            return MutationOutcome(trip=None)
        return MutationOutcome(trip=trip, sync=self._sync_saved(trip))

    def delete(self, trip_id: str) -> MutationOutcome:
        trip = self.repository.delete(trip_id)
        sync = None
        if trip is not None and trip.is_public:
            sync = self._submit(
                f"Trip {trip_id} delete", self.synchronizer.retract, trip_id
            )
        return MutationOutcome(trip=trip, sync=sync)

    def _after_stop_change(self, trip: Trip) -> MutationOutcome:
        return MutationOutcome(trip=trip, sync=self._sync_saved(trip))

    def insert_stop(
        self, trip_id: str, stop: TripPlace, index: Optional[int] = None
    ) -> MutationOutcome:
        return self._after_stop_change(
            self.repository.insert_stop(trip_id, stop, index)
        )

    def update_stop(self, trip_id: str, place_id: str, **patch: Any) -> MutationOutcome:
        return self._after_stop_change(
            self.repository.update_stop(trip_id, place_id, **patch)
        )

    def update_stop_at(self, trip_id: str, index: int, **patch: Any) -> MutationOutcome:
        return self._after_stop_change(
            self.repository.update_stop_at(trip_id, index, **patch)
        )

    def remove_stop(self, trip_id: str, place_id: str) -> MutationOutcome:
        return self._after_stop_change(
            self.repository.remove_stop(trip_id, place_id)
        )

    def reorder_stops(self, trip_id: str, place_ids: Sequence[str]) -> MutationOutcome:
        return self._after_stop_change(
            self.repository.reorder_stops(trip_id, place_ids)
        )

    def swap_stops(self, trip_id: str, first_id: str, second_id: str) -> MutationOutcome:
        return self._after_stop_change(
            self.repository.swap_stops(trip_id, first_id, second_id)
        )

    def set_overrides(
        self,
        trip_id: str,
        *,
        distance_km: Optional[float] = None,
        time_hours: Optional[float] = None,
    ) -> MutationOutcome:
        return self.update(
            trip_id,
            {"override_distance_km": distance_km, "override_time_hours": time_hours},
        )

    # --- Reads -----------------------------------------------------------
    def get(self, trip_id: str) -> Optional[Trip]:
        return self.repository.get(trip_id)

    def list_by_owner(self, owner_id: str) -> List[Trip]:
        return self.repository.list_by_owner(owner_id)

    def list_public(self) -> List[Trip]:
        return self.repository.list_public()

    def stats(self, trip_id: str) -> Optional[TripStats]:
        trip = self.repository.get(trip_id)
        if trip is None:
            return None
        return estimate(trip, extras_for_trip(trip))

    def sync_state(self, trip_id: str) -> SyncState:
        return self.synchronizer.tracker.state(trip_id)


__all__ = ["MutationOutcome", "TripService"]
