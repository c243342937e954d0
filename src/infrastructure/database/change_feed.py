"""In-process change feed for committed document writes."""

from collections import defaultdict

import structlog

from core.subscription import Handler, HandlerRegistry, Subscription
from domain.entities.document import DocumentSnapshot

logger = structlog.get_logger()


class DocumentChangeFeed:
    """Fan out committed snapshots to per-document watchers.

    The unit of work publishes after each successful commit, in commit order.
    A failing watcher is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._watchers: dict[tuple[str, str], HandlerRegistry[DocumentSnapshot]] = defaultdict(
            HandlerRegistry
        )

    def watch(
        self, namespace: str, key: str, handler: Handler[DocumentSnapshot]
    ) -> Subscription:
        """Register a handler for every committed write of one document."""
        registry = self._watchers[(namespace, key)]
        subscription = registry.add(handler)

        def _release() -> None:
            subscription.cancel()
            if not registry and self._watchers.get((namespace, key)) is registry:
                del self._watchers[(namespace, key)]

        return Subscription(_release)

    def watcher_count(self, namespace: str, key: str) -> int:
        registry = self._watchers.get((namespace, key))
        return len(registry) if registry else 0

    async def publish(self, snapshots: list[DocumentSnapshot]) -> None:
        for snapshot in snapshots:
            registry = self._watchers.get((snapshot.namespace, snapshot.key))
            if registry is None:
                continue
            for handler in registry.handlers():
                try:
                    await handler(snapshot)
                except Exception:
                    logger.exception(
                        "document_watcher_failed",
                        namespace=snapshot.namespace,
                        key=snapshot.key,
                        version=snapshot.version,
                    )
