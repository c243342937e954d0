"""Territory builder: a finished path becomes a claimed region and a run summary.

Pure computation, no I/O.

The ring is projected with pyproj onto a Lambert azimuthal equal-area plane
centred on its first vertex (on the same sphere used for path distances), and
its area is taken from a shapely polygon. Self-intersecting runs such as a
figure eight are repaired with ``make_valid`` so every enclosed lobe counts.
"""

import math
from uuid import UUID

import pyproj
from shapely.geometry import Polygon
from shapely.validation import make_valid

from core.exceptions import DegenerateTerritoryError
from domain.entities.geo import EARTH_RADIUS_M, Path
from domain.entities.territory import Moment, Territory

LatLon = tuple[float, float]

# Geographic coordinates on the haversine sphere
SPHERE = pyproj.CRS.from_proj4(f"+proj=longlat +R={EARTH_RADIUS_M} +no_defs")


def close_ring(vertices: list[LatLon]) -> list[LatLon]:
    """Connect the last vertex back to the first (without doubling an explicit closure)."""
    if not vertices:
        return []
    if vertices[0] == vertices[-1] and len(vertices) > 1:
        return list(vertices)
    return [*vertices, vertices[0]]


def equal_area_transformer(lat0: float, lon0: float) -> pyproj.Transformer:
    """Transformer from (lon, lat) to meters on an equal-area plane centred at (lat0, lon0)."""
    laea = pyproj.CRS.from_proj4(
        f"+proj=laea +lat_0={lat0} +lon_0={lon0} +R={EARTH_RADIUS_M} +units=m +no_defs"
    )
    return pyproj.Transformer.from_crs(SPHERE, laea, always_xy=True)


def enclosed_area_m2(ring: list[LatLon]) -> float:
    """Area enclosed by a closed ring of (lat, lon) vertices, in square meters."""
    if len(ring) < 4:
        # A closed ring needs three distinct vertices plus the closure
        return 0.0

    lat0, lon0 = ring[0]
    transformer = equal_area_transformer(lat0, lon0)
    xs, ys = transformer.transform([lon for _, lon in ring], [lat for lat, _ in ring])

    polygon = make_valid(Polygon(list(zip(xs, ys))))
    return float(polygon.area)


def compute_xp(
    distance_m: float,
    area_m2: float,
    xp_per_km: float = 100.0,
    xp_per_area_root: float = 1.0,
) -> int:
    """XP for a run: non-negative and monotonic in both distance and area."""
    raw = max(distance_m, 0.0) / 1000.0 * xp_per_km + math.sqrt(max(area_m2, 0.0)) * xp_per_area_root
    return int(math.floor(raw))


class TerritoryBuilder:
    """Builds (Territory, Moment) pairs from finalized paths."""

    def __init__(
        self,
        min_area_m2: float = 100.0,
        xp_per_km: float = 100.0,
        xp_per_area_root: float = 1.0,
    ) -> None:
        self._min_area_m2 = min_area_m2
        self._xp_per_km = xp_per_km
        self._xp_per_area_root = xp_per_area_root

    def build(self, path: Path, owner_id: UUID) -> tuple[Territory, Moment]:
        """
        Close the path into a territory and summarize the run.

        Raises:
            DegenerateTerritoryError: the enclosed area is below the minimum
        """
        ring = close_ring([(p.lat, p.lon) for p in path.points])
        area_m2 = enclosed_area_m2(ring)
        if area_m2 < self._min_area_m2:
            raise DegenerateTerritoryError(area_m2, self._min_area_m2)

        territory = Territory(
            owner_id=owner_id,
            vertices=tuple(ring),
            area_m2=area_m2,
            created_at=path.ended_at,
        )
        moment = Moment(
            owner_id=owner_id,
            territory_id=territory.id,
            distance_m=path.distance_m,
            duration_s=path.duration_s,
            xp_awarded=compute_xp(
                path.distance_m, area_m2, self._xp_per_km, self._xp_per_area_root
            ),
            created_at=path.ended_at,
        )
        return territory, moment
