"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.document import DocumentSnapshot


class FakeUnitOfWork:
    """Fake Unit of Work with a mocked document repository for unit testing."""

    def __init__(self) -> None:
        self.documents = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


def missing(namespace: str, key: str) -> DocumentSnapshot:
    """Snapshot of a document that does not exist."""
    return DocumentSnapshot(namespace=namespace, key=key, data=None)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def moment_id() -> UUID:
    """A random moment ID."""
    return uuid4()
