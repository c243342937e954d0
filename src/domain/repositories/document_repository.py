"""Document store protocols."""

from typing import Any, Protocol

from core.subscription import Handler, Subscription
from domain.entities.document import DocumentSnapshot


class IDocumentRepository(Protocol):
    """Transactional access to documents keyed by ``(namespace, key)``."""

    async def get(self, namespace: str, key: str) -> DocumentSnapshot:
        """Read a document; ``snapshot.data`` is None when it does not exist."""
        ...

    async def list_all(self, namespace: str) -> list[DocumentSnapshot]:
        """Read every document in a namespace, ordered by key."""
        ...

    async def set(self, namespace: str, key: str, data: dict[str, Any]) -> DocumentSnapshot:
        """Replace (or create) a whole document."""
        ...

    async def create(self, namespace: str, key: str, data: dict[str, Any]) -> DocumentSnapshot:
        """Create a document; raises DocumentConflictError if it already exists."""
        ...


class IDocumentFeed(Protocol):
    """Live change notifications, delivered in commit order."""

    def watch(
        self, namespace: str, key: str, handler: Handler[DocumentSnapshot]
    ) -> Subscription:
        """Register a handler for every committed write of one document."""
        ...
