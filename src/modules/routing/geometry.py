"""Straight-line geometry used when no road route is available."""

from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt
from typing import List

from modules.routing.constants import (
    DEFAULT_PATH_SEGMENTS,
    EARTH_RADIUS_KM,
    HIGHWAY_DISTANCE_THRESHOLD_KM,
    HIGHWAY_SPEED_KMH,
    URBAN_SPEED_KMH,
)
from modules.routing.dtos import Coordinate


def haversine_km(origin: Coordinate, destination: Coordinate) -> float:
    """Great-circle distance between two coordinates, in kilometres."""
    phi1, phi2 = radians(origin.lat), radians(destination.lat)
    dphi = radians(destination.lat - origin.lat)
    dlambda = radians(destination.lng - origin.lng)
    a = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlambda / 2) ** 2
    # rounding can push near-antipodal points just outside [0, 1]
    a = min(1.0, max(0.0, a))
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def interpolate_path(
    origin: Coordinate,
    destination: Coordinate,
    segments: int = DEFAULT_PATH_SEGMENTS,
) -> List[Coordinate]:
    """Evenly spaced points from origin to destination (both included).

    Linear in lat/lng, not geodesic: good enough to animate a marker
    on a map.
    """
    if segments < 1:
        raise ValueError("At least one segment is required to build a path.")
    return [
        Coordinate(
            lat=origin.lat + (destination.lat - origin.lat) * (i / segments),
            lng=origin.lng + (destination.lng - origin.lng) * (i / segments),
        )
        for i in range(segments + 1)
    ]


def estimate_duration_minutes(distance_km: float) -> float:
    # highways above the threshold, city streets below it
    speed = (
        HIGHWAY_SPEED_KMH
        if distance_km > HIGHWAY_DISTANCE_THRESHOLD_KM
        else URBAN_SPEED_KMH
    )
    return distance_km / speed * 60
