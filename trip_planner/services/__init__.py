"""Service layer package.

Exports the trip service consumed by presentation layers.
"""

from .trip_service import MutationOutcome, TripService

__all__ = ["MutationOutcome", "TripService"]
