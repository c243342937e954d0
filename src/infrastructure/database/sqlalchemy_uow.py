"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import StoreUnavailableError
from domain.entities.document import DocumentSnapshot
from infrastructure.database.change_feed import DocumentChangeFeed
from infrastructure.database.repositories.sqlalchemy_document_repo import (
    SQLAlchemyDocumentRepository,
)


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy.

    Snapshots written inside the transaction are published to the change
    feed after a successful commit, in write order.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        change_feed: DocumentChangeFeed,
    ) -> None:
        self._session_factory = session_factory
        self._change_feed = change_feed
        self._session: Optional[AsyncSession] = None
        self._pending: list[DocumentSnapshot] = []

    @property
    def documents(self) -> SQLAlchemyDocumentRepository:
        """Get document repository."""
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return SQLAlchemyDocumentRepository(self._session, self._pending.append)

    async def commit(self) -> None:
        """Commit the current transaction and publish its writes."""
        if not self._session:
            return
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            self._pending.clear()
            raise StoreUnavailableError(f"Commit failed: {e.__class__.__name__}") from e

        published, self._pending = self._pending, []
        await self._change_feed.publish(published)

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        self._pending.clear()
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager and create session."""
        self._session = self._session_factory()
        self._pending = []
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager and cleanup."""
        if self._session:
            if exc_type or self._pending:
                await self.rollback()
            await self._session.close()
            self._session = None
