"""
CaddieAI Backend — Geographic Helpers
======================================

What:  Great-circle distance, bounding boxes and point-in-polygon tests on
       WGS84 latitude/longitude pairs.
Who:   CourseService and UserCourseService (nearby searches, proximity and
       boundary checks) and GolfContextService (distance to pin).

Nearby queries use `bounding_box()` as a cheap SQL prefilter on the
latitude/longitude columns, then `haversine_m()` for the exact distance.
"""

from math import atan2, cos, degrees, radians, sin, sqrt
from typing import Iterable, Sequence, Tuple

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_YARD = 0.9144


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute haversine distance between two lat/lon points in meters."""

    lat1_rad = radians(lat1)
    lon1_rad = radians(lon1)
    lat2_rad = radians(lat2)
    lon2_rad = radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = sin(dlat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_M * c


def meters_to_yards(meters: float) -> float:
    return meters / METERS_PER_YARD


def bounding_box(lat: float, lon: float, radius_m: float) -> Tuple[float, float, float, float]:
    """
    Return (min_lat, max_lat, min_lon, max_lon) enclosing a circle of
    `radius_m` around the point.

    The longitude span widens towards the poles; at the poles themselves
    every longitude is included.
    """
    lat_delta = degrees(radius_m / EARTH_RADIUS_M)
    cos_lat = cos(radians(lat))
    if cos_lat <= 1e-12:
        return lat - lat_delta, lat + lat_delta, -180.0, 180.0
    lon_delta = degrees(radius_m / (EARTH_RADIUS_M * cos_lat))
    return lat - lat_delta, lat + lat_delta, lon - lon_delta, lon + lon_delta


def point_in_polygon(lat: float, lon: float, polygon: Iterable[Sequence[float]]) -> bool:
    """
    Ray-casting containment test.

    `polygon` is a sequence of [lat, lon] vertices; closing the ring is
    optional. Fewer than three vertices never contain anything.
    """
    vertices = [(float(p[0]), float(p[1])) for p in polygon]
    if len(vertices) < 3:
        return False

    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        lat_i, lon_i = vertices[i]
        lat_j, lon_j = vertices[j]
        if (lat_i > lat) != (lat_j > lat):
            crossing_lon = lon_i + (lat - lat_i) * (lon_j - lon_i) / (lat_j - lat_i)
            if lon < crossing_lon:
                inside = not inside
        j = i
    return inside
