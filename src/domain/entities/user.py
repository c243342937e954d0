"""Authenticated user handle."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class User:
    """Opaque user identity supplied by the identity provider."""

    id: UUID
    is_anonymous: bool = False
