"""Profile synchronizer: live profile mirror, onboarding writes and XP rewards."""

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

import structlog
from pydantic import ValidationError

from core.exceptions import (
    DocumentConflictError,
    HandleConflictError,
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
    ProfileValidationError,
    StoreUnavailableError,
)
from core.subscription import Handler, Subscription
from domain.entities.document import Collections, DocumentSnapshot, collection_path
from domain.entities.profile import NewUser, Profile
from domain.repositories.document_repository import IDocumentFeed
from domain.repositories.unit_of_work import IUnitOfWork
from domain.schemas.profile import ProfileCreate, profile_from_document, profile_to_document
from domain.schemas.territory import HandleClaim, RewardLedgerEntry
from domain.services.leveling import compute_level

logger = structlog.get_logger()

ProfileUpdate = Profile | NewUser


class _ProfileWatch:
    """Delivers snapshots of one profile document, dropping stale versions."""

    def __init__(self, service: "ProfileService", uid: UUID, handler: Handler[ProfileUpdate]) -> None:
        self._service = service
        self._uid = uid
        self._handler = handler
        self.last_version = -1

    async def __call__(self, snapshot: DocumentSnapshot) -> None:
        if snapshot.version <= self.last_version:
            return
        self.last_version = snapshot.version
        await self._handler(self._service._to_update(self._uid, snapshot))


class ProfileService:
    """Service layer keeping the local profile in sync with the document store."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        feed: IDocumentFeed,
        app_id: str,
    ) -> None:
        self._uow_factory = uow_factory
        self._feed = feed
        self._users = collection_path(app_id, Collections.USERS)
        self._handles = collection_path(app_id, Collections.HANDLES)
        self._rewards = collection_path(app_id, Collections.REWARDS)
        self._cache: dict[UUID, Profile] = {}

    def cached(self, uid: UUID) -> Profile | None:
        """Last-known profile for a user, if any was ever seen."""
        return self._cache.get(uid)

    async def subscribe(self, uid: UUID, handler: Handler[ProfileUpdate]) -> Subscription:
        """Deliver the current profile (or NewUser), then every committed change.

        Raises:
            StoreUnavailableError: the initial read failed and nothing is cached.
        """
        watch = _ProfileWatch(self, uid, handler)
        subscription = self._feed.watch(self._users, str(uid), watch)

        try:
            async with self._uow_factory() as uow:
                snapshot = await uow.documents.get(self._users, str(uid))
        except StoreUnavailableError:
            cached = self._cache.get(uid)
            if cached is None:
                subscription.cancel()
                raise
            logger.warning("profile_read_failed_using_cache", uid=str(uid))
            await handler(cached)
            return subscription

        await watch(snapshot)
        return subscription

    async def create(
        self,
        uid: UUID,
        display_name: str,
        handle: str,
        bio: str = "",
    ) -> Profile:
        """Persist a new profile together with its handle claim.

        Handle uniqueness is enforced by the store: the claim document for a
        normalized handle can only be created once.
        """
        try:
            form = ProfileCreate(display_name=display_name, handle=handle, bio=bio)
        except ValidationError as e:
            raise ProfileValidationError(e.errors(include_url=False, include_context=False)) from e

        level = compute_level(0)
        profile = Profile(
            uid=uid,
            display_name=form.display_name,
            handle=form.handle,
            bio=form.bio,
            level=level.level,
            level_title=level.title,
            xp=0,
        )

        async with self._uow_factory() as uow:
            try:
                await uow.documents.create(
                    self._handles,
                    profile.handle,
                    HandleClaim(uid=uid, created_at=profile.created_at).to_data(),
                )
            except DocumentConflictError as e:
                raise HandleConflictError(profile.handle) from e

            try:
                await uow.documents.create(self._users, str(uid), profile_to_document(profile))
            except DocumentConflictError as e:
                raise ProfileAlreadyExistsError(str(uid)) from e

            await uow.commit()

        self._cache[uid] = profile
        logger.info("profile_created", uid=str(uid), handle=profile.handle)
        return profile

    async def apply_reward(self, uid: UUID, xp_delta: int, moment_id: UUID) -> Profile:
        """Add XP for a completed moment and recompute the level.

        The reward ledger entry for ``moment_id`` is written in the same
        transaction as the profile, so a moment is rewarded at most once;
        repeated calls return the current profile unchanged.
        """
        if xp_delta < 0:
            raise ValueError(f"xp_delta must be non-negative, got {xp_delta}")

        async with self._uow_factory() as uow:
            ledger = await uow.documents.get(self._rewards, str(moment_id))
            if ledger.exists:
                logger.info("reward_already_applied", uid=str(uid), moment_id=str(moment_id))
                return await self._read_existing(uow, uid)

            profile = await self._read_existing(uow, uid)
            old_level = profile.level
            profile.xp += xp_delta
            level = compute_level(profile.xp)
            if level.level >= profile.level:
                profile.level = level.level
                profile.level_title = level.title

            entry = RewardLedgerEntry(
                moment_id=moment_id,
                uid=uid,
                xp=xp_delta,
                created_at=datetime.now(timezone.utc),
            )
            try:
                await uow.documents.create(self._rewards, str(moment_id), entry.to_data())
            except DocumentConflictError:
                duplicate = True
            else:
                duplicate = False
                await uow.documents.set(self._users, str(uid), profile_to_document(profile))
                await uow.commit()

        if duplicate:
            # Another call for the same moment committed first
            logger.info("reward_already_applied", uid=str(uid), moment_id=str(moment_id))
            async with self._uow_factory() as uow:
                return await self._read_existing(uow, uid)

        self._cache[uid] = profile
        logger.info(
            "reward_applied",
            uid=str(uid),
            moment_id=str(moment_id),
            xp_delta=xp_delta,
            total_xp=profile.xp,
        )
        if profile.level > old_level:
            logger.info("level_up", uid=str(uid), old_level=old_level, new_level=profile.level)
        return profile

    async def _read_existing(self, uow: IUnitOfWork, uid: UUID) -> Profile:
        snapshot = await uow.documents.get(self._users, str(uid))
        if not snapshot.exists:
            raise ProfileNotFoundError(str(uid))
        return profile_from_document(snapshot.data)  # type: ignore[arg-type]

    def _to_update(self, uid: UUID, snapshot: DocumentSnapshot) -> ProfileUpdate:
        if not snapshot.exists:
            return NewUser(uid=uid)
        profile = profile_from_document(snapshot.data)  # type: ignore[arg-type]
        self._cache[uid] = profile
        return profile
