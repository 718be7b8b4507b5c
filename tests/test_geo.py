import math

import pytest

from trip_planner.geo import bounds, distance_km, travel_time_hours
from trip_planner.models import Coordinates


def test_distance_one_degree_latitude():
    d = distance_km(Coordinates(0.0, 0.0), Coordinates(1.0, 0.0))
    assert d == pytest.approx(111.195, rel=1e-4)


def test_distance_is_symmetric_and_zero_for_same_point():
    a = Coordinates(-8.5586, 125.5736)
    b = Coordinates(-8.4667, 126.45)
    assert distance_km(a, a) == 0.0
    assert distance_km(a, b) == pytest.approx(distance_km(b, a))


def test_nan_coordinates_propagate():
    assert math.isnan(distance_km(Coordinates(float("nan"), 0.0), Coordinates(1.0, 1.0)))


def test_travel_time_uses_flat_speed():
    a, b = Coordinates(0.0, 0.0), Coordinates(1.0, 0.0)
    assert travel_time_hours(a, b, avg_speed_kph=50.0) == pytest.approx(
        distance_km(a, b) / 50.0
    )


def test_bounds():
    assert bounds([]) is None
    box = bounds([Coordinates(-8.5, 125.6), Coordinates(-8.4, 127.3), Coordinates(-9.0, 126.0)])
    assert box == ((-9.0, 125.6), (-8.4, 127.3))


def test_near_antipodal_points_do_not_raise():
    d = distance_km(Coordinates(-0.74, 0.0), Coordinates(0.74, 180.0))
    assert d == pytest.approx(math.pi * 6371.0, rel=1e-3)


@pytest.mark.parametrize("lat", [-82.14, -41.07, -2.22, 2.22, 21.09])
def test_antipodal_sweep_stays_finite(lat):
    d = distance_km(Coordinates(lat, 0.0), Coordinates(-lat, 180.0))
    assert math.isfinite(d)
    assert d <= math.pi * 6371.0 + 1e-6
