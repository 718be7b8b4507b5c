"""Route geometry service: chunking, stitching, fallback and caching."""

from __future__ import annotations

import logging
from typing import List, Sequence

import pytest
from cachetools import TTLCache

from trip_planner.errors import RoutingError
from trip_planner.models import Coordinates
from trip_planner.routing.osrm_client import OSRMClient
from trip_planner.routing.route_service import (
    FALLBACK_MESSAGE,
    RouteGeometryService,
    chunk_waypoints,
    profile_for_mode,
    stitch_chunks,
)

from conftest import FakeResp, FakeSession


def _points(n: int) -> List[Coordinates]:
    return [Coordinates(-8.5 + i * 0.01, 125.5 + i * 0.01) for i in range(n)]


class FakeClient:
    """Returns each chunk with one interpolated point between waypoints."""

    def __init__(self, fail_on_call: int | None = None) -> None:
        self.calls: List[List[Coordinates]] = []
        self.profiles: List[str] = []
        self.fail_on_call = fail_on_call

    def route_chunk(self, points: Sequence[Coordinates], profile: str) -> List[Coordinates]:
        self.calls.append(list(points))
        self.profiles.append(profile)
        if self.fail_on_call == len(self.calls):
            raise RoutingError("OSRM 429")
        routed: List[Coordinates] = [points[0]]
        for a, b in zip(points, points[1:]):
            routed.append(Coordinates((a.lat + b.lat) / 2, (a.lng + b.lng) / 2))
            routed.append(b)
        return routed


@pytest.mark.parametrize(
    "mode, profile",
    [("walking", "foot"), ("bicycle", "cycling"), ("car", "driving"), ("bus", "driving"), (None, "driving")],
)
def test_profile_for_mode(mode, profile):
    assert profile_for_mode(mode) == profile


def test_chunking_25_points_overlaps_by_one():
    points = _points(25)
    chunks = chunk_waypoints(points, 10)
    assert [len(c) for c in chunks] == [10, 10, 7]
    assert chunks[1][0] == chunks[0][-1]
    assert chunks[2][0] == chunks[1][-1]
    assert chunks[-1][-1] == points[-1]


def test_chunking_has_no_trailing_single_point_chunk():
    chunks = chunk_waypoints(_points(19), 10)
    assert [len(c) for c in chunks] == [10, 10]


def test_short_list_is_single_chunk():
    assert chunk_waypoints(_points(10), 10) == [_points(10)]


def test_chunk_size_must_allow_overlap():
    with pytest.raises(ValueError):
        chunk_waypoints(_points(5), 1)


def test_stitch_drops_duplicate_boundary_points():
    a, b, c, d = _points(4)
    assert stitch_chunks([[a, b], [b, c], [c, d]]) == [a, b, c, d]


def test_route_25_waypoints_makes_three_sequential_calls():
    client = FakeClient()
    service = RouteGeometryService(client, chunk_size=10, cache=None)
    result = service.route(_points(25), "car")

    assert result.routed
    assert result.message is None
    assert result.provider_calls == 3
    assert len(client.calls) == 3
    per_chunk = [2 * len(chunk) - 1 for chunk in client.calls]
    assert len(result.points) == sum(per_chunk) - (len(per_chunk) - 1)
    assert client.profiles == ["driving"] * 3


def test_any_chunk_failure_falls_back_to_waypoints(caplog):
    waypoints = _points(25)
    client = FakeClient(fail_on_call=2)
    service = RouteGeometryService(client, chunk_size=10, cache=None)
    with caplog.at_level(logging.WARNING):
        result = service.route(waypoints, "walking")

    assert not result.routed
    assert result.points == waypoints
    assert result.message == FALLBACK_MESSAGE
    assert len(client.calls) == 2  # aborted, third chunk never requested
    assert "straight lines" in caplog.text


def test_fewer_than_two_waypoints_is_noop():
    client = FakeClient()
    service = RouteGeometryService(client, cache=None)
    assert service.route([], "car").points == []
    single = service.route(_points(1), "car")
    assert single.points == _points(1)
    assert not single.routed
    assert single.message is None
    assert client.calls == []


def test_successful_routes_are_cached_but_fallbacks_are_not():
    cache = TTLCache(maxsize=8, ttl=60)
    client = FakeClient()
    service = RouteGeometryService(client, cache=cache)
    first = service.route(_points(3), "car")
    second = service.route(_points(3), "car")
    assert second.points == first.points
    assert second.routed
    assert len(client.calls) == 1

    service.route(_points(3), "bicycle")
    assert len(client.calls) == 2

    failing = FakeClient(fail_on_call=1)
    fallback_service = RouteGeometryService(failing, cache=TTLCache(maxsize=8, ttl=60))
    fallback_service.route(_points(3), "car")
    fallback_service.route(_points(3), "car")
    assert len(failing.calls) == 2


def test_chunk_delay_paces_requests(monkeypatch):
    sleeps: List[float] = []
    monkeypatch.setattr(
        "trip_planner.routing.route_service.time.sleep", lambda s: sleeps.append(s)
    )
    service = RouteGeometryService(FakeClient(), chunk_size=10, chunk_delay=0.5, cache=None)
    service.route(_points(25), "car")
    assert sleeps == [0.5, 0.5]


def test_result_bounds():
    service = RouteGeometryService(FakeClient(), cache=None)
    result = service.route([Coordinates(0, 0), Coordinates(1, 2)], "car")
    assert result.bounds == ((0, 0), (1, 2))


def test_cache_none_disables_caching():
    client = FakeClient()
    service = RouteGeometryService(client, cache=None)
    service.route(_points(3), "car")
    service.route(_points(3), "car")
    assert len(client.calls) == 2


def test_default_cache_is_built_from_config():
    client = FakeClient()
    service = RouteGeometryService(client)
    service.route(_points(3), "car")
    service.route(_points(3), "car")
    assert len(client.calls) == 1


@pytest.mark.parametrize(
    "body, geometry_format",
    [
        ({"code": "Ok", "routes": ["oops"]}, "geojson"),
        ({"code": "Ok", "routes": [{"geometry": "_p~iF~ps|U_"}]}, "polyline"),
    ],
)
def test_malformed_provider_payload_falls_back(body, geometry_format):
    session = FakeSession([FakeResp(200, body)])
    client = OSRMClient("https://osrm.test", session=session, geometry_format=geometry_format)
    waypoints = _points(2)
    result = RouteGeometryService(client, cache=None).route(waypoints, "car")
    assert not result.routed
    assert result.points == waypoints
    assert result.message == FALLBACK_MESSAGE
