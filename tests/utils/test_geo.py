import math

import numpy as np
import pytest

from models.delivery import GeoPoint
from models.errors import MalformedInputError
from utils.geo import (
    EARTH_RADIUS_METERS,
    EARTH_RADIUS_MILES,
    distance_between,
    distances_from,
    estimate_duration_minutes,
    haversine_distance,
    haversine_distances,
    seconds_to_cover,
    validate_coordinates,
)

BALTIMORE = (39.2904, -76.6122)
WASHINGTON = (38.9072, -77.0369)


def test_distance_zero_identity():
    assert haversine_distance(*BALTIMORE, *BALTIMORE) == 0.0


@pytest.mark.parametrize(
    "a, b",
    [
        (BALTIMORE, WASHINGTON),
        ((0.0, 0.0), (45.0, 90.0)),
        ((-33.86, 151.21), (51.5, -0.12)),
        ((89.9, 10.0), (-89.9, -170.0)),
    ],
)
def test_distance_symmetry(a, b):
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a), rel=1e-12)


def test_one_degree_of_latitude():
    """Along a meridian one degree is radius * pi / 180."""
    assert haversine_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(EARTH_RADIUS_MILES * math.pi / 180)


def test_known_city_distance_in_miles_and_meters():
    miles = haversine_distance(*BALTIMORE, *WASHINGTON)
    meters = haversine_distance(*BALTIMORE, *WASHINGTON, radius=EARTH_RADIUS_METERS)
    assert miles == pytest.approx(34.9, abs=0.3)
    # Same angle, different radius
    assert meters / miles == pytest.approx(EARTH_RADIUS_METERS / EARTH_RADIUS_MILES)


def test_antipodal_points_do_not_produce_nan():
    d = haversine_distance(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(EARTH_RADIUS_MILES * math.pi)


def test_vectorized_matches_scalar():
    points = [WASHINGTON, (39.33, -76.70), BALTIMORE]
    result = haversine_distances(BALTIMORE, points)
    assert isinstance(result, np.ndarray)
    assert result.shape == (3,)
    for point, value in zip(points, result):
        assert value == pytest.approx(haversine_distance(*BALTIMORE, *point))


def test_vectorized_empty_points():
    assert haversine_distances(BALTIMORE, []).shape == (0,)


def test_distance_between_and_distances_from_accept_points():
    a = GeoPoint(*BALTIMORE)
    b = GeoPoint(*WASHINGTON)
    assert distance_between(a, b) == pytest.approx(haversine_distance(*BALTIMORE, *WASHINGTON))
    assert distances_from(a, [a, b]) == pytest.approx([0.0, distance_between(a, b)])


@pytest.mark.parametrize(
    "lat, lng",
    [
        (float("nan"), 0.0),
        (0.0, float("inf")),
        (91.0, 0.0),
        (0.0, -180.5),
        ("north", 0.0),
        (None, 0.0),
    ],
)
def test_invalid_coordinates_rejected(lat, lng):
    with pytest.raises(MalformedInputError):
        validate_coordinates(lat, lng)
    with pytest.raises(MalformedInputError):
        haversine_distance(lat, lng, 0.0, 0.0)


def test_validate_coordinates_coerces_numeric_strings():
    assert validate_coordinates("39.5", -76) == (39.5, -76.0)


@pytest.mark.parametrize(
    "miles, minutes",
    [(0.0, 0), (0.1, 1), (2.5, 5), (2.6, 6), (10.0, 20)],
)
def test_estimate_duration_rounds_up(miles, minutes):
    assert estimate_duration_minutes(miles) == minutes


def test_estimate_duration_negative_distance():
    with pytest.raises(MalformedInputError):
        estimate_duration_minutes(-1.0)


def test_seconds_to_cover():
    assert seconds_to_cover(134.0, 13.4) == pytest.approx(10.0)
    with pytest.raises(MalformedInputError):
        seconds_to_cover(100.0, 0.0)
