"""Pydantic schemas for the profile form and the profile document."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from domain.entities.profile import Profile, normalize_handle


class ProfileCreate(BaseModel):
    """Schema for the onboarding profile form."""

    display_name: str = Field(..., min_length=1, max_length=100)
    handle: str = Field(..., min_length=1, max_length=50)
    bio: str = Field("", max_length=500)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("display name must not be blank")
        return v

    @field_validator("handle")
    @classmethod
    def normalize(cls, v: str) -> str:
        v = normalize_handle(v)
        if not v:
            raise ValueError("handle must contain at least one non-space character")
        return v


class ProfileDocument(BaseModel):
    """Wire shape of ``users/{uid}`` (camelCase keys)."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    uid: UUID
    display_name: str
    handle: str
    bio: str = ""
    level: int = Field(1, ge=1)
    level_title: str = ""
    xp: int = Field(0, ge=0)
    created_at: datetime


def profile_to_document(profile: Profile) -> dict[str, Any]:
    """Serialize a Profile entity into a store document."""
    return ProfileDocument.model_validate(profile).model_dump(mode="json", by_alias=True)


def profile_from_document(data: dict[str, Any]) -> Profile:
    """Parse a store document into a Profile entity."""
    doc = ProfileDocument.model_validate(data)
    return Profile(**doc.model_dump())
