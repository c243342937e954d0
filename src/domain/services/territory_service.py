"""Territory archive: persists and lists claimed territories and run moments."""

from collections.abc import Callable
from uuid import UUID

import structlog

from domain.entities.document import Collections, collection_path
from domain.entities.territory import Moment, Territory
from domain.repositories.unit_of_work import IUnitOfWork
from domain.schemas.territory import (
    MomentDocument,
    TerritoryDocument,
    moment_from_document,
    territory_from_document,
)

logger = structlog.get_logger()


class TerritoryService:
    """Service layer for territory and moment documents."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork], app_id: str) -> None:
        self._uow_factory = uow_factory
        self._territories = collection_path(app_id, Collections.TERRITORIES)
        self._moments = collection_path(app_id, Collections.MOMENTS)

    async def record(self, territory: Territory, moment: Moment) -> None:
        """Store a territory and its moment in one transaction.

        Documents are keyed by id, so recording the same pair again is harmless.
        """
        async with self._uow_factory() as uow:
            await uow.documents.set(
                self._territories,
                str(territory.id),
                TerritoryDocument.model_validate(territory).to_data(),
            )
            await uow.documents.set(
                self._moments,
                str(moment.id),
                MomentDocument.model_validate(moment).to_data(),
            )
            await uow.commit()

        logger.info(
            "territory_claimed",
            uid=str(territory.owner_id),
            territory_id=str(territory.id),
            area_m2=round(territory.area_m2, 1),
            distance_m=round(moment.distance_m, 1),
            xp=moment.xp_awarded,
        )

    async def list_territories(self, owner_id: UUID | None = None) -> list[Territory]:
        """All territories (or one owner's), newest first."""
        async with self._uow_factory() as uow:
            snapshots = await uow.documents.list_all(self._territories)

        territories = [territory_from_document(s.data) for s in snapshots if s.data is not None]
        if owner_id is not None:
            territories = [t for t in territories if t.owner_id == owner_id]
        return sorted(territories, key=lambda t: t.created_at, reverse=True)

    async def count_territories(self) -> int:
        """Global territory count shown on the map."""
        async with self._uow_factory() as uow:
            snapshots = await uow.documents.list_all(self._territories)
        return len(snapshots)

    async def list_moments(self, owner_id: UUID) -> list[Moment]:
        """One user's run moments, newest first."""
        async with self._uow_factory() as uow:
            snapshots = await uow.documents.list_all(self._moments)

        moments = [moment_from_document(s.data) for s in snapshots if s.data is not None]
        return sorted(
            (m for m in moments if m.owner_id == owner_id),
            key=lambda m: m.created_at,
            reverse=True,
        )
