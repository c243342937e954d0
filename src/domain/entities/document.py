"""Document store snapshot and collection layout."""

from dataclasses import dataclass
from typing import Any


class Collections:
    """Collection names; each is namespaced by the application id."""

    USERS = "users"
    HANDLES = "handles"
    REWARDS = "rewards"
    TERRITORIES = "territories"
    MOMENTS = "moments"


def collection_path(app_id: str, collection: str) -> str:
    """Full namespace of a collection, e.g. ``artifacts/run-realm-v1/users``."""
    return f"artifacts/{app_id}/{collection}"


@dataclass(frozen=True)
class DocumentSnapshot:
    """State of one document after a committed write.

    ``data`` is None when the document does not exist. ``version`` increases
    by one on every write, so readers can discard stale snapshots.
    """

    namespace: str
    key: str
    data: dict[str, Any] | None
    version: int = 0

    @property
    def exists(self) -> bool:
        return self.data is not None
