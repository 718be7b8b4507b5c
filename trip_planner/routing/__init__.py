"""Route geometry: OSRM client plus chunking/stitching service."""

from .osrm_client import OSRMClient  # noqa: F401
from .route_service import (  # noqa: F401
    RouteGeometryService,
    RouteResult,
    chunk_waypoints,
    profile_for_mode,
    stitch_chunks,
)
