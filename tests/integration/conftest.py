"""Fixtures wiring the full application against an in-memory store."""

from collections.abc import AsyncGenerator

import pytest

from core.config import Settings
from infrastructure.location.sensor import HostPositionSensor
from main import RunRealmApp, create_app


@pytest.fixture
async def app(settings: Settings, sensor: HostPositionSensor) -> AsyncGenerator[RunRealmApp, None]:
    app = await create_app(settings, sensor=sensor, configure_logging=False)
    yield app
    await app.aclose()
