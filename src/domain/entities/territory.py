"""Territory and moment domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Territory:
    """A claimed, closed polygonal region. Immutable once created."""

    owner_id: UUID
    vertices: tuple[tuple[float, float], ...]
    area_m2: float
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Moment:
    """Summary of one completed run, created alongside its territory."""

    owner_id: UUID
    territory_id: UUID
    distance_m: float
    duration_s: float
    xp_awarded: int
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
