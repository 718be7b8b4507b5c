"""Trip planner core: local trip store, remote sync, estimates and routing."""

from .errors import (
    RoutingError,
    StopNotFoundError,
    TripNotFoundError,
    TripPlannerError,
)
from .estimator import TripExtras, TripStats, estimate
from .models import Coordinates, PlaceKind, PlaceSnapshot, Trip, TripPhoto, TripPlace
from .repository import TripRepository
from .routing import RouteGeometryService, RouteResult
from .services import MutationOutcome, TripService
from .storage import JsonFileStore, MemoryStore
from .sync import RemotePublishSynchronizer, SyncResult, SyncState

__all__ = [
    "Coordinates",
    "JsonFileStore",
    "MemoryStore",
    "MutationOutcome",
    "PlaceKind",
    "PlaceSnapshot",
    "RemotePublishSynchronizer",
    "RouteGeometryService",
    "RouteResult",
    "RoutingError",
    "StopNotFoundError",
    "SyncResult",
    "SyncState",
    "Trip",
    "TripExtras",
    "TripNotFoundError",
    "TripPhoto",
    "TripPlace",
    "TripPlannerError",
    "TripRepository",
    "TripService",
    "TripStats",
    "estimate",
]
