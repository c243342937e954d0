"""Geolocation sensor protocol and the host-fed sensor implementation."""

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol

import structlog

from core.exceptions import PositionUnavailableError
from core.subscription import HandlerRegistry, Subscription

logger = structlog.get_logger()

RawTimestamp = float | int | datetime
PositionHandler = Callable[[float, float, RawTimestamp], Awaitable[None]]
ErrorHandler = Callable[[PositionUnavailableError], Awaitable[None]]


class IPositionSensor(Protocol):
    """Push-driven source of raw position fixes."""

    def watch(self, on_position: PositionHandler, on_error: ErrorHandler) -> Subscription:
        """
        Start receiving fixes.

        Args:
            on_position: Awaited with ``(lat, lon, timestamp)`` per fix
            on_error: Awaited when the sensor is denied or times out

        Raises:
            PositionUnavailableError: access is refused up front
        """
        ...


class HostPositionSensor:
    """Sensor fed by the hosting platform's location bridge.

    The platform calls ``report`` for every fix and ``fail`` when the OS
    denies access or a fix times out.
    """

    def __init__(self, permission_granted: bool = True) -> None:
        self.permission_granted = permission_granted
        self._positions: HandlerRegistry[tuple[float, float, RawTimestamp]] = HandlerRegistry()
        self._errors: HandlerRegistry[PositionUnavailableError] = HandlerRegistry()

    @property
    def is_watching(self) -> bool:
        return len(self._positions) > 0

    def watch(self, on_position: PositionHandler, on_error: ErrorHandler) -> Subscription:
        if not self.permission_granted:
            raise PositionUnavailableError("Location permission denied")

        async def _position(fix: tuple[float, float, RawTimestamp]) -> None:
            await on_position(*fix)

        position_sub = self._positions.add(_position)
        error_sub = self._errors.add(on_error)

        def _release() -> None:
            position_sub.cancel()
            error_sub.cancel()

        return Subscription(_release)

    async def report(self, lat: float, lon: float, timestamp: RawTimestamp) -> None:
        await self._positions.emit((lat, lon, timestamp))

    async def fail(self, reason: str = "Position fix timed out") -> None:
        logger.warning("position_unavailable", reason=reason)
        await self._errors.emit(PositionUnavailableError(reason))
