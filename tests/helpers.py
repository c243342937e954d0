"""Geometry helpers shared by unit and integration tests."""

import math
from datetime import datetime, timedelta, timezone

from domain.entities.geo import EARTH_RADIUS_M, GeoPoint

METERS_PER_DEGREE = 2 * math.pi * EARTH_RADIUS_M / 360.0
T0 = datetime(2026, 5, 1, 7, 0, tzinfo=timezone.utc)


def point(lat: float, lon: float, seconds: float = 0.0) -> GeoPoint:
    """GeoPoint at T0 + seconds."""
    return GeoPoint(lat=lat, lon=lon, timestamp=T0 + timedelta(seconds=seconds))


def square_loop(side_m: float, lat0: float = 0.0, lon0: float = 0.0) -> list[GeoPoint]:
    """Four corners of a square with the given side, one fix every 15 seconds."""
    d_lat = side_m / METERS_PER_DEGREE
    d_lon = side_m / (METERS_PER_DEGREE * math.cos(math.radians(lat0 + d_lat / 2)))
    corners = [
        (lat0, lon0),
        (lat0, lon0 + d_lon),
        (lat0 + d_lat, lon0 + d_lon),
        (lat0 + d_lat, lon0),
    ]
    return [point(lat, lon, 15.0 * i) for i, (lat, lon) in enumerate(corners)]


def figure_eight(d_m: float, lat0: float = 0.0, lon0: float = 0.0) -> list[GeoPoint]:
    """Self-crossing loop (0,0) -> (d,2d) -> (0,2d) -> (d,0), in meters east/north of the origin."""
    d_lat = d_m / METERS_PER_DEGREE
    d_lon = d_m / (METERS_PER_DEGREE * math.cos(math.radians(lat0 + d_lat)))
    corners = [(0, 0), (1, 2), (0, 2), (1, 0)]
    return [
        point(lat0 + north * d_lat, lon0 + east * d_lon, 15.0 * i)
        for i, (east, north) in enumerate(corners)
    ]
