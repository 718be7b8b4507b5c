"""Central error types used across the trip planner core."""

from __future__ import annotations


class TripPlannerError(RuntimeError):
    """Base error for trip planner failures."""


class TripNotFoundError(TripPlannerError):
    """Raised when a stop-level helper targets a trip that does not exist."""


class StopNotFoundError(TripPlannerError):
    """Raised when a stop-level helper references an unknown place id."""


class TripStorageError(TripPlannerError):
    """Raised when the local store cannot be read or written."""


class RemoteSyncError(TripPlannerError):
    """Raised when the remote trip authority rejects or fails a request."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RoutingError(TripPlannerError):
    """Raised when the routing provider cannot route a waypoint chunk."""


__all__ = [
    "TripPlannerError",
    "TripNotFoundError",
    "StopNotFoundError",
    "TripStorageError",
    "RemoteSyncError",
    "RoutingError",
]
