from __future__ import annotations

import math
import random
from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt

"""
Geospatial helpers.

Two small pieces of math live here so the reward engine can stay free of GIS dependencies:
- sampling a point uniformly (by area) inside a disc around a hunt center,
- great-circle (Haversine) distance and the inclusive "within range" gate used for claims.

Neither function raises: inputs are plain floats and outputs are plain floats/bools.
"""

EARTH_RADIUS_M = 6_371_000

# Flat-earth conversion used when offsetting a sampled point from the hunt center.
METERS_PER_DEGREE = 111_320


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = lat2 - lat1
    dlng = radians(b.lng) - radians(a.lng)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * atan2(sqrt(h), sqrt(1 - h))


def is_within_range(a: GeoPoint, b: GeoPoint, threshold_m: float) -> bool:
    """Return True when `a` and `b` are at most `threshold_m` meters apart (inclusive)."""
    return haversine_m(a, b) <= threshold_m


def sample_uniform_point_in_disc(
    center_lat: float,
    center_lng: float,
    radius_m: float,
    *,
    rng: random.Random | None = None,
) -> tuple[float, float]:
    """Draw a random (lat, lng) with uniform density over the disc's area.

    The radial fraction is `sqrt(u)`: drawing the radius uniformly would pile samples
    up near the center. Longitude offsets are widened by `1 / cos(lat)` to account for
    meridians converging away from the equator, so `center_lat` must not be a pole.

    Pass a seeded `random.Random` for reproducible output.
    """
    r_source = rng if rng is not None else random
    theta = r_source.random() * 2 * math.pi
    r = radius_m * sqrt(r_source.random())

    lat_offset = (r * cos(theta)) / METERS_PER_DEGREE
    lng_offset = (r * sin(theta)) / (METERS_PER_DEGREE * cos(radians(center_lat)))
    return center_lat + lat_offset, center_lng + lng_offset
