"""Best-effort mirroring of public trips to the remote trip authority.

Every call reports a :class:`SyncResult` instead of raising. The local copy
has already been committed by the time these run and is never rolled back;
a failure only means the remote copy is missing or stale until the next
successful push. There is no retry queue.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ..config import HTTP_DEBUG_PAYLOADS, REQUEST_TIMEOUT, TRIPS_API_BASE_URL
from ..errors import RemoteSyncError
from ..models import Trip
from .response_handling import extract_error, is_success
from .session import get_default_session

LOGGER = logging.getLogger(__name__)


class SyncState(str, Enum):
    LOCAL_ONLY = "local-only"
    SYNCED = "synced"
    SYNCED_STALE = "synced-stale"


@dataclass(frozen=True, slots=True)
class SyncResult:
    ok: bool
    error: Optional[str] = None
    status: Optional[int] = None
    skipped: bool = False

    @property
    def warning(self) -> Optional[str]:
        """UI text for a failed sync, or ``None`` when nothing went wrong."""

        if self.ok:
            return None
        return f"Saved locally but did not sync: {self.error or 'unknown error'}"


class SyncTracker:
    """In-memory, per-session sync state for each trip id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: Dict[str, SyncState] = {}

    def state(self, trip_id: str) -> SyncState:
        with self._lock:
            return self._states.get(trip_id, SyncState.LOCAL_ONLY)

    def mark_synced(self, trip_id: str) -> None:
        with self._lock:
            self._states[trip_id] = SyncState.SYNCED

    def mark_edited(self, trip_id: str) -> None:
        with self._lock:
            if self._states.get(trip_id) is SyncState.SYNCED:
                self._states[trip_id] = SyncState.SYNCED_STALE

    def forget(self, trip_id: str) -> None:
        with self._lock:
            self._states.pop(trip_id, None)


class RemotePublishSynchronizer:
    """POST/PUT/DELETE public trips against ``{base_url}/trips``."""

    def __init__(
        self,
        base_url: str = TRIPS_API_BASE_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = REQUEST_TIMEOUT,
        tracker: Optional[SyncTracker] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or get_default_session()
        self.timeout = timeout
        self.tracker = tracker or SyncTracker()

    def _trip_path(self, trip_id: Optional[str] = None) -> str:
        if trip_id is None:
            return "/trips"
        return f"/trips/{quote(trip_id, safe='')}"

    def _send(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        allow_not_found: bool = False,
    ) -> SyncResult:
        url = f"{self.base_url}{path}"
        if HTTP_DEBUG_PAYLOADS and payload is not None:
            LOGGER.debug("%s %s payload=%s", method, url, payload)
        try:
            response = self.session.request(
                method, url, json=payload, timeout=self.timeout
            )
            status = response.status_code
            if allow_not_found and status == 404:
                LOGGER.info("%s %s returned 404; treating as retracted", method, path)
                return SyncResult(ok=True, status=status)
            if not is_success(status):
                detail = extract_error(response) or ""
                raise RemoteSyncError(
                    f"{method} {path} failed: {status} {detail}".rstrip(),
                    status=status,
                )
        except requests.RequestException as exc:
            LOGGER.warning("%s %s failed (kept local only): %s", method, path, exc)
            return SyncResult(ok=False, error=f"{method} {path} failed: {exc}")
        except RemoteSyncError as exc:
            LOGGER.warning("Remote sync failed (kept local only): %s", exc)
            return SyncResult(ok=False, error=str(exc), status=exc.status)
        LOGGER.debug("%s %s -> %s", method, path, status)
        return SyncResult(ok=True, status=status)

    def publish(self, trip: Trip) -> SyncResult:
        """Create the remote copy of a public trip."""

        if not trip.is_public:
            return SyncResult(ok=True, skipped=True)
        result = self._send("POST", self._trip_path(), trip.to_dict())
        if result.ok:
            self.tracker.mark_synced(trip.id)
        return result

    def republish(self, trip: Trip) -> SyncResult:
        """Replace the remote copy with the latest local version."""

        if not trip.is_public:
            return SyncResult(ok=True, skipped=True)
        result = self._send("PUT", self._trip_path(trip.id), trip.to_dict())
        if result.ok:
            self.tracker.mark_synced(trip.id)
        return result

    def retract(self, trip_id: str) -> SyncResult:
        """Delete the remote copy; a missing remote copy counts as success."""

        result = self._send("DELETE", self._trip_path(trip_id), allow_not_found=True)
        if result.ok:
            self.tracker.forget(trip_id)
        return result


__all__ = [
    "RemotePublishSynchronizer",
    "SyncResult",
    "SyncState",
    "SyncTracker",
]
