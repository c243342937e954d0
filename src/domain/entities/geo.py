"""Geographic point and recorded path entities."""

import math
from dataclasses import dataclass
from datetime import datetime

EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class GeoPoint:
    """A single WGS84 position fix."""

    lat: float
    lon: float
    timestamp: datetime


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Return great-circle distance in meters between two points."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lon - a.lon)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


@dataclass(frozen=True)
class Path:
    """Finalized, strictly time-ordered sequence of points from one run."""

    points: tuple[GeoPoint, ...]
    distance_m: float

    @property
    def started_at(self) -> datetime:
        return self.points[0].timestamp

    @property
    def ended_at(self) -> datetime:
        return self.points[-1].timestamp

    @property
    def duration_s(self) -> float:
        return (self.ended_at - self.started_at).total_seconds()

    def __len__(self) -> int:
        return len(self.points)
