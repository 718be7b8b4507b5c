"""OSRM HTTP client: one ``/route`` request per waypoint chunk.

Internal coordinates are ``Coordinates(lat, lng)``; OSRM expects ``lon,lat``
pairs in the URL and returns GeoJSON ``[lon, lat]`` pairs or an encoded
polyline, depending on the requested geometry format.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

import requests
from polyline import decode as polyline_decode

from ..config import OSRM_BASE_URL, REQUEST_TIMEOUT, ROUTING_GEOMETRY_FORMAT
from ..errors import RoutingError
from ..models import Coordinates
from ..sync.response_handling import extract_error, is_success
from ..sync.session import get_default_session

LOGGER = logging.getLogger(__name__)

GEOMETRY_FORMATS = ("geojson", "polyline")


def format_coordinates(points: Sequence[Coordinates]) -> str:
    """Convert points to OSRM's ``lon,lat;lon,lat`` path segment."""

    return ";".join(f"{p.lng},{p.lat}" for p in points)


class OSRMClient:
    def __init__(
        self,
        base_url: str = OSRM_BASE_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = REQUEST_TIMEOUT,
        geometry_format: str = ROUTING_GEOMETRY_FORMAT,
    ) -> None:
        if geometry_format not in GEOMETRY_FORMATS:
            raise ValueError(f"Unsupported geometry format: {geometry_format!r}")
        self.base_url = base_url.rstrip("/")
        self.session = session or get_default_session()
        self.timeout = timeout
        self.geometry_format = geometry_format

    def route_chunk(
        self, points: Sequence[Coordinates], profile: str
    ) -> List[Coordinates]:
        """Return the road-following polyline through ``points``.

        Raises:
            RoutingError: on network failure, non-2xx status, an OSRM error
                code, or a response without usable geometry.
        """

        if len(points) < 2:
            raise ValueError("At least two points are required to route.")
        url = f"{self.base_url}/route/v1/{profile}/{format_coordinates(points)}"
        params = {
            "overview": "full",
            "geometries": self.geometry_format,
            "steps": "false",
        }
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RoutingError(f"OSRM request failed: {exc}") from exc
        if not is_success(response.status_code):
            detail = extract_error(response)
            message = f"OSRM {response.status_code}"
            raise RoutingError(f"{message} | {detail}" if detail else message)
        try:
            data = response.json()
        except ValueError as exc:
            raise RoutingError(f"OSRM returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict) or data.get("code") != "Ok":
            message = data.get("message") if isinstance(data, dict) else None
            raise RoutingError(f"OSRM error: {message or 'Unknown error'}")
        routes = data.get("routes") or []
        if not isinstance(routes, list) or not routes:
            raise RoutingError("No route")
        route = routes[0]
        if not isinstance(route, Mapping):
            raise RoutingError(f"Malformed route entry: {route!r}")
        return self._decode_geometry(route.get("geometry"))

    def _decode_geometry(self, geometry: Any) -> List[Coordinates]:
        try:
            if self.geometry_format == "polyline":
                pairs = polyline_decode(geometry)
                points = [Coordinates(lat=lat, lng=lng) for lat, lng in pairs]
            else:
                points = [
                    Coordinates(lat=float(lat), lng=float(lon))
                    for lon, lat in geometry["coordinates"]
                ]
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
            raise RoutingError(f"Malformed route geometry: {exc}") from exc
        if not points:
            raise RoutingError("Empty route geometry")
        LOGGER.debug("OSRM returned %d points", len(points))
        return points


__all__ = ["GEOMETRY_FORMATS", "OSRMClient", "format_coordinates"]
