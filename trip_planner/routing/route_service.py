"""Road-following route geometry with a straight-line fallback.

Long waypoint lists are split into overlapping chunks (the provider copes
badly with many waypoints per request), fetched one after another to stay
within third-party rate limits, and stitched back together. Any chunk
failure abandons the whole attempt and returns the waypoints themselves.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from cachetools import TTLCache

from ..config import (
    ROUTE_CACHE_SIZE,
    ROUTE_CACHE_TTL_SECONDS,
    ROUTING_CHUNK_DELAY_SECONDS,
    ROUTING_CHUNK_SIZE,
)
from ..errors import RoutingError
from ..geo import Bounds, bounds
from ..models import Coordinates
from .osrm_client import OSRMClient

LOGGER = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Routing server unreachable - showing straight lines."

_RouteKey = Tuple[str, Tuple[Coordinates, ...]]

# Default for ``cache``: build a TTLCache from config. ``None`` disables caching.
_DEFAULT_CACHE: Any = object()


def profile_for_mode(mode: Optional[str]) -> str:
    if mode == "bicycle":
        return "cycling"
    if mode == "walking":
        return "foot"
    return "driving"


def chunk_waypoints(
    points: Sequence[Coordinates], size: int = ROUTING_CHUNK_SIZE
) -> List[List[Coordinates]]:
    """Split ``points`` into windows of at most ``size`` sharing one point.

    Each chunk after the first starts with the previous chunk's last point,
    so the stitched path has no gap at chunk boundaries.
    """

    if size < 2:
        raise ValueError("chunk size must be >= 2")
    if len(points) <= size:
        return [list(points)]
    chunks: List[List[Coordinates]] = []
    step = size - 1
    for start in range(0, len(points) - 1, step):
        end = min(start + size, len(points))
        chunks.append(list(points[start:end]))
        if end == len(points):
            break
    return chunks


def stitch_chunks(chunks: Sequence[Sequence[Coordinates]]) -> List[Coordinates]:
    """Concatenate chunk polylines, dropping each later chunk's first point."""

    stitched: List[Coordinates] = []
    for index, chunk in enumerate(chunks):
        stitched.extend(chunk if index == 0 else chunk[1:])
    return stitched


@dataclass(frozen=True, slots=True)
class RouteResult:
    points: List[Coordinates]
    routed: bool
    message: Optional[str] = None
    provider_calls: int = 0

    @property
    def bounds(self) -> Optional[Bounds]:
        return bounds(self.points)


class RouteGeometryService:
    def __init__(
        self,
        client: Optional[OSRMClient] = None,
        *,
        chunk_size: int = ROUTING_CHUNK_SIZE,
        chunk_delay: float = ROUTING_CHUNK_DELAY_SECONDS,
        cache: Optional[TTLCache] = _DEFAULT_CACHE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if chunk_size < 2:
            raise ValueError("chunk_size must be >= 2")
        self.client = client or OSRMClient()
        self.chunk_size = chunk_size
        self.chunk_delay = max(0.0, chunk_delay)
        if cache is _DEFAULT_CACHE:
            cache = (
                TTLCache(maxsize=ROUTE_CACHE_SIZE, ttl=ROUTE_CACHE_TTL_SECONDS)
                if ROUTE_CACHE_SIZE > 0
                else None
            )
        self._cache = cache
        self._cache_lock = threading.Lock()
        self._log = logger or logging.getLogger(self.__class__.__name__)

    def _cached(self, key: _RouteKey) -> Optional[List[Coordinates]]:
        if self._cache is None:
            return None
        with self._cache_lock:
            return self._cache.get(key)

    def _remember(self, key: _RouteKey, points: List[Coordinates]) -> None:
        if self._cache is None:
            return
        with self._cache_lock:
            self._cache[key] = points

    def route(
        self, waypoints: Sequence[Coordinates], mode: Optional[str] = None
    ) -> RouteResult:
        """Return a routed polyline, or the waypoints when routing fails."""

        waypoints = list(waypoints)
        if len(waypoints) < 2:
            return RouteResult(points=waypoints, routed=False)

        profile = profile_for_mode(mode)
        key: _RouteKey = (profile, tuple(waypoints))
        cached = self._cached(key)
        if cached is not None:
            return RouteResult(points=list(cached), routed=True)

        chunks = chunk_waypoints(waypoints, self.chunk_size)
        segments: List[List[Coordinates]] = []
        for index, chunk in enumerate(chunks):
            if index and self.chunk_delay:
                time.sleep(self.chunk_delay)
            try:
                segments.append(self.client.route_chunk(chunk, profile))
            except RoutingError as exc:
                self._log.warning(
                    "Routing chunk %d/%d failed (%s); using straight lines",
                    index + 1,
                    len(chunks),
                    exc,
                )
                return RouteResult(
                    points=waypoints,
                    routed=False,
                    message=FALLBACK_MESSAGE,
                    provider_calls=index + 1,
                )

        stitched = stitch_chunks(segments)
        self._remember(key, stitched)
        self._log.info(
            "Routed %d waypoints via %s in %d chunk(s): %d points",
            len(waypoints),
            profile,
            len(chunks),
            len(stitched),
        )
        return RouteResult(
            points=stitched, routed=True, provider_calls=len(chunks)
        )


__all__ = [
    "FALLBACK_MESSAGE",
    "RouteGeometryService",
    "RouteResult",
    "chunk_waypoints",
    "profile_for_mode",
    "stitch_chunks",
]
