"""Composition root: builds the session core from Settings."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from core.config import Settings, get_settings
from core.logging import setup_logging
from domain.entities.session import MapViewport
from domain.services.profile_service import ProfileService
from domain.services.session_machine import SessionStateMachine
from domain.services.territory_builder import TerritoryBuilder
from domain.services.territory_service import TerritoryService
from infrastructure.auth.jwt_provider import JWTIdentityProvider
from infrastructure.database.change_feed import DocumentChangeFeed
from infrastructure.database.session import create_engine, create_session_factory, init_models
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.location.adapter import GeolocationAdapter
from infrastructure.location.sensor import HostPositionSensor, IPositionSensor

logger = structlog.get_logger()


@dataclass
class RunRealmApp:
    """Wired object graph; ``session`` is what the UI layer talks to."""

    settings: Settings
    engine: AsyncEngine
    identity: JWTIdentityProvider
    sensor: IPositionSensor
    profiles: ProfileService
    territories: TerritoryService
    session: SessionStateMachine
    uow_factory: Callable[[], SQLAlchemyUnitOfWork]

    async def aclose(self) -> None:
        """Release subscriptions and database connections."""
        await self.session.close()
        await self.engine.dispose()
        logger.info("app_closed")


async def create_app(
    settings: Optional[Settings] = None,
    sensor: Optional[IPositionSensor] = None,
    configure_logging: bool = True,
) -> RunRealmApp:
    """Create and start the application."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)

    engine = create_engine(settings.async_database_url, echo=settings.debug)
    await init_models(engine)
    session_factory = create_session_factory(engine)
    change_feed = DocumentChangeFeed()

    def uow_factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory, change_feed)

    identity = JWTIdentityProvider(
        secret_key=settings.jwt_secret_key,
        issuer=settings.app_id,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.jwt_expire_minutes,
    )
    sensor = sensor or HostPositionSensor()
    profiles = ProfileService(uow_factory, change_feed, app_id=settings.app_id)
    territories = TerritoryService(uow_factory, app_id=settings.app_id)
    builder = TerritoryBuilder(
        min_area_m2=settings.min_territory_area_m2,
        xp_per_km=settings.xp_per_km,
        xp_per_area_root=settings.xp_per_area_root,
    )

    session = SessionStateMachine(
        identity=identity,
        profiles=profiles,
        territories=territories,
        geolocation=GeolocationAdapter(sensor),
        builder=builder,
        default_viewport=MapViewport(
            center=settings.default_coordinates,
            zoom=settings.map_zoom,
            tile_url=settings.map_tile_url,
        ),
    )
    await session.start()

    logger.info("app_started", app_id=settings.app_id, env=settings.app_env)
    return RunRealmApp(
        settings=settings,
        engine=engine,
        identity=identity,
        sensor=sensor,
        profiles=profiles,
        territories=territories,
        session=session,
        uow_factory=uow_factory,
    )
