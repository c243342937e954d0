"""Pydantic schemas for territory, moment, reward ledger and handle claim documents."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.entities.territory import Moment, Territory


class _Document(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_data(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TerritoryDocument(_Document):
    """Wire shape of ``territories/{id}``."""

    id: UUID
    owner_id: UUID
    vertices: list[tuple[float, float]]
    area_m2: float = Field(..., ge=0)
    created_at: datetime


class MomentDocument(_Document):
    """Wire shape of ``moments/{id}``."""

    id: UUID
    owner_id: UUID
    territory_id: UUID
    distance_m: float = Field(..., ge=0)
    duration_s: float = Field(..., ge=0)
    xp_awarded: int = Field(..., ge=0)
    created_at: datetime


class RewardLedgerEntry(_Document):
    """Wire shape of ``rewards/{moment_id}``; its existence marks the moment as rewarded."""

    moment_id: UUID
    uid: UUID
    xp: int = Field(..., ge=0)
    created_at: datetime


class HandleClaim(_Document):
    """Wire shape of ``handles/{handle}``."""

    uid: UUID
    created_at: datetime


def territory_from_document(data: dict[str, Any]) -> Territory:
    doc = TerritoryDocument.model_validate(data)
    return Territory(
        id=doc.id,
        owner_id=doc.owner_id,
        vertices=tuple(doc.vertices),
        area_m2=doc.area_m2,
        created_at=doc.created_at,
    )


def moment_from_document(data: dict[str, Any]) -> Moment:
    return Moment(**MomentDocument.model_validate(data).model_dump())
