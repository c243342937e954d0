"""Geolocation adapter: raw sensor fixes to clean, timestamped GeoPoints."""

import asyncio
import math
from collections.abc import AsyncIterator
from datetime import datetime, timezone

import structlog

from core.exceptions import PositionUnavailableError
from core.subscription import Handler, Subscription
from domain.entities.geo import GeoPoint
from infrastructure.location.sensor import IPositionSensor, RawTimestamp

logger = structlog.get_logger()


def to_datetime(timestamp: RawTimestamp) -> datetime:
    """Normalize a sensor timestamp (epoch milliseconds or datetime) to aware UTC."""
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=timezone.utc)
        return timestamp.astimezone(timezone.utc)
    return datetime.fromtimestamp(timestamp / 1000.0, tz=timezone.utc)


def is_valid_coordinate(lat: float, lon: float) -> bool:
    return (
        math.isfinite(lat)
        and math.isfinite(lon)
        and -90.0 <= lat <= 90.0
        and -180.0 <= lon <= 180.0
    )


class GeolocationAdapter:
    """Wraps a position sensor into a cancellable stream of GeoPoints.

    Errors are passed through to the caller untouched; no retries here.
    """

    def __init__(self, sensor: IPositionSensor) -> None:
        self._sensor = sensor

    def subscribe(
        self,
        on_sample: Handler[GeoPoint],
        on_error: Handler[PositionUnavailableError],
    ) -> Subscription:
        """
        Start delivering samples.

        Raises:
            PositionUnavailableError: the sensor refused the watch
        """

        async def _on_position(lat: float, lon: float, timestamp: RawTimestamp) -> None:
            if not is_valid_coordinate(lat, lon):
                logger.warning("position_sample_dropped", lat=lat, lon=lon)
                return
            await on_sample(GeoPoint(lat=lat, lon=lon, timestamp=to_datetime(timestamp)))

        return self._sensor.watch(_on_position, on_error)

    async def stream(self) -> AsyncIterator[GeoPoint]:
        """Iterate samples lazily; a sensor error is raised from the iterator.

        Each call opens its own subscription, released when iteration stops.
        """
        queue: asyncio.Queue[GeoPoint | PositionUnavailableError] = asyncio.Queue()

        async def _on_sample(point: GeoPoint) -> None:
            queue.put_nowait(point)

        async def _on_error(error: PositionUnavailableError) -> None:
            queue.put_nowait(error)

        subscription = self.subscribe(_on_sample, _on_error)
        try:
            while True:
                item = await queue.get()
                if isinstance(item, PositionUnavailableError):
                    raise item
                yield item
        finally:
            subscription.cancel()
