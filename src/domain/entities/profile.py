"""Profile domain entity."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

_WHITESPACE = re.compile(r"\s")


def normalize_handle(handle: str) -> str:
    """Lower-case a handle and strip every whitespace character."""
    return _WHITESPACE.sub("", handle.lower())


@dataclass
class Profile:
    """Domain entity for a runner profile (mirrored from the document store)."""

    uid: UUID
    display_name: str
    handle: str
    bio: str = ""
    level: int = 1
    level_title: str = ""
    xp: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def initial(self) -> str:
        """First letter of the display name, used as the avatar placeholder."""
        return self.display_name[0] if self.display_name else "?"


@dataclass(frozen=True)
class NewUser:
    """Sentinel delivered when an authenticated user has no profile document yet."""

    uid: UUID
