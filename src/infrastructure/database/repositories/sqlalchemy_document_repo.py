"""SQLAlchemy implementation of the document repository."""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DocumentConflictError, StoreUnavailableError
from domain.entities.document import DocumentSnapshot
from infrastructure.database.models import DocumentModel


@contextmanager
def _store_errors() -> Iterator[None]:
    """Translate driver failures into StoreUnavailableError."""
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreUnavailableError(f"Document store error: {e.__class__.__name__}") from e


class SQLAlchemyDocumentRepository:
    """SQLAlchemy implementation of IDocumentRepository.

    Every write is reported to ``on_write`` so the unit of work can publish
    it once the transaction commits.
    """

    def __init__(
        self,
        session: AsyncSession,
        on_write: Callable[[DocumentSnapshot], None],
    ) -> None:
        self._session = session
        self._on_write = on_write

    async def get(self, namespace: str, key: str) -> DocumentSnapshot:
        """Read a document; ``data`` is None when it does not exist."""
        with _store_errors():
            model = await self._session.get(DocumentModel, (namespace, key))
        if not model:
            return DocumentSnapshot(namespace=namespace, key=key, data=None)
        return self._to_snapshot(model)

    async def list_all(self, namespace: str) -> list[DocumentSnapshot]:
        """Read every document in a namespace, ordered by key."""
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.namespace == namespace)
            .order_by(DocumentModel.key)
        )
        with _store_errors():
            result = await self._session.execute(stmt)
            return [self._to_snapshot(model) for model in result.scalars()]

    async def set(self, namespace: str, key: str, data: dict[str, Any]) -> DocumentSnapshot:
        """Replace the whole document, creating it if needed."""
        with _store_errors():
            model = await self._session.get(DocumentModel, (namespace, key))
            if model:
                model.data = dict(data)
                model.version += 1
            else:
                model = DocumentModel(namespace=namespace, key=key, data=dict(data), version=1)
                self._session.add(model)
            await self._session.flush()

        snapshot = self._to_snapshot(model)
        self._on_write(snapshot)
        return snapshot

    async def create(self, namespace: str, key: str, data: dict[str, Any]) -> DocumentSnapshot:
        """Insert a new document; the primary key rejects duplicates."""
        with _store_errors():
            existing = await self._session.get(DocumentModel, (namespace, key))
        if existing:
            raise DocumentConflictError(namespace, key)

        model = DocumentModel(namespace=namespace, key=key, data=dict(data), version=1)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise DocumentConflictError(namespace, key) from e
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Document store error: {e.__class__.__name__}") from e

        snapshot = self._to_snapshot(model)
        self._on_write(snapshot)
        return snapshot

    def _to_snapshot(self, model: DocumentModel) -> DocumentSnapshot:
        """Convert ORM model to snapshot."""
        return DocumentSnapshot(
            namespace=model.namespace,
            key=model.key,
            data=dict(model.data),
            version=model.version,
        )
