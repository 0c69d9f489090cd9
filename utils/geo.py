"""
Great-circle distance and travel-time helpers.

One Haversine implementation serves every call site; the Earth radius picks the
unit (miles for assignment, metres for navigation).
"""

import math
from collections.abc import Iterable, Sequence
from typing import Protocol

import numpy as np

from models.errors import MalformedInputError

EARTH_RADIUS_MILES = 3959.0
EARTH_RADIUS_METERS = 6371e3

# Fixed 30 mph assumption used for route estimates
MINUTES_PER_MILE = 2.0
AVERAGE_SPEED_MPS = 13.4


class HasCoordinates(Protocol):
    lat: float
    lng: float


def validate_coordinates(lat: float, lng: float) -> tuple[float, float]:
    """Return the pair as floats, rejecting NaN, infinities and out-of-range degrees."""
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Coordinates must be numeric, got ({lat!r}, {lng!r})") from e
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        raise MalformedInputError(f"Coordinates must be finite, got ({lat_f}, {lng_f})")
    if not -90.0 <= lat_f <= 90.0:
        raise MalformedInputError(f"Latitude {lat_f} outside [-90, 90]")
    if not -180.0 <= lng_f <= 180.0:
        raise MalformedInputError(f"Longitude {lng_f} outside [-180, 180]")
    return lat_f, lng_f


def haversine_distances(
    origin: tuple[float, float],
    points: Sequence[tuple[float, float]],
    radius: float = EARTH_RADIUS_MILES,
) -> np.ndarray:
    """
    Distances from ``origin`` to each of ``points``.

    Args:
        origin: (lat, lng) in degrees.
        points: Sequence of (lat, lng) pairs in degrees.
        radius: Earth radius in the unit wanted for the result.

    Returns:
        1-D numpy array of non-negative distances, one per point.
    """
    lat1, lng1 = validate_coordinates(*origin)
    if len(points) == 0:
        return np.zeros(0)
    validated = [validate_coordinates(lat, lng) for lat, lng in points]
    coords = np.radians(np.asarray(validated, dtype=float))
    lat1_r, lng1_r = np.radians([lat1, lng1])

    d_lat = coords[:, 0] - lat1_r
    d_lng = coords[:, 1] - lng1_r
    a = np.sin(d_lat / 2) ** 2 + np.cos(lat1_r) * np.cos(coords[:, 0]) * np.sin(d_lng / 2) ** 2
    # Rounding can push a a hair past 1 for antipodal points
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return radius * c


def haversine_distance(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    radius: float = EARTH_RADIUS_MILES,
) -> float:
    """Great-circle distance between two points given in degrees."""
    return float(haversine_distances((lat1, lng1), [(lat2, lng2)], radius=radius)[0])


def distance_between(a: HasCoordinates, b: HasCoordinates, radius: float = EARTH_RADIUS_MILES) -> float:
    """Great-circle distance between two objects exposing ``lat``/``lng``."""
    return haversine_distance(a.lat, a.lng, b.lat, b.lng, radius=radius)


def distances_from(origin: HasCoordinates, targets: Iterable[HasCoordinates], radius: float = EARTH_RADIUS_MILES) -> list[float]:
    return haversine_distances(
        (origin.lat, origin.lng), [(t.lat, t.lng) for t in targets], radius=radius
    ).tolist()


def estimate_duration_minutes(distance_miles: float) -> int:
    """Whole minutes to drive ``distance_miles`` at 30 mph, rounded up."""
    if distance_miles < 0:
        raise MalformedInputError(f"Distance cannot be negative: {distance_miles}")
    return math.ceil(distance_miles * MINUTES_PER_MILE)


def seconds_to_cover(distance_meters: float, speed_mps: float = AVERAGE_SPEED_MPS) -> float:
    if speed_mps <= 0:
        raise MalformedInputError(f"Speed must be positive: {speed_mps}")
    return distance_meters / speed_mps
