"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable fixtures (in-memory trip
repository, sample stops, fake HTTP sessions) to avoid duplication across
test files.
"""
from __future__ import annotations

import json
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from trip_planner.models import Coordinates, PlaceSnapshot, TripPlace
from trip_planner.repository import TripRepository
from trip_planner.storage import MemoryStore


# --- Factory helpers -------------------------------------------------
def make_place(place_id, lat, lng, title=None):
    return PlaceSnapshot(
        id=place_id,
        title=title or place_id.title(),
        coords=Coordinates(lat, lng),
        category="history",
        municipality="Dili",
    )


def make_stop(place_id, lat=-8.55, lng=125.57, order=0, notes=""):
    return TripPlace(
        place_id=place_id, place=make_place(place_id, lat, lng), order=order, notes=notes
    )


class FakeResp:
    """Minimal fake response matching needed parts of requests.Response."""

    def __init__(self, status_code=200, data=None, headers=None, text=None):
        self.status_code = status_code
        self._data = data
        self.headers = headers or {}
        self._text = text
        self.url = "http://fake"

    def json(self):
        if self._data is None:
            raise ValueError("no json body")
        return self._data

    @property
    def text(self):
        if self._text is not None:
            return self._text
        try:
            return json.dumps(self._data)
        except Exception:
            return str(self._data)


class FakeSession:
    """Records requests and answers them from a queue (or a callable)."""

    def __init__(self, responses=None):
        self.calls = []
        if callable(responses):
            self._responses = responses
        else:
            self._responses = list(responses or [])

    def _next(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if callable(self._responses):
            return self._responses(method, url, **kwargs)
        response = self._responses.pop(0) if self._responses else FakeResp(200, {})
        if isinstance(response, Exception):
            raise response
        return response

    def request(self, method, url, json=None, timeout=None):
        return self._next(method, url, json=json, timeout=timeout)

    def get(self, url, params=None, timeout=None):
        return self._next("GET", url, params=params, timeout=timeout)


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def repository(memory_store):
    return TripRepository.open(memory_store)


@pytest.fixture
def sample_stops():
    return [
        make_stop("cristo-rei", -8.5130, 125.6080, order=0),
        make_stop("baucau-market", -8.4667, 126.4500, order=1),
        make_stop("jaco-island", -8.4300, 127.3300, order=2),
    ]


@pytest.fixture
def trip_data(sample_stops):
    return {
        "name": "East coast loop",
        "description": "Three days along the north coast",
        "places": sample_stops,
        "owner_id": "user-1",
        "is_public": False,
        "transport_mode": "car",
        "road_condition": "sealed",
    }
