"""Path recorder: accumulates position samples while tracking is on."""

import structlog

from core.exceptions import AlreadyRecordingError, NotRecordingError, PathTooShortError
from domain.entities.geo import GeoPoint, Path, haversine_m

logger = structlog.get_logger()

MIN_PATH_POINTS = 2


class PathRecorder:
    """Owns the single in-progress path. States: idle -> recording -> idle."""

    def __init__(self) -> None:
        self._points: list[GeoPoint] = []
        self._distance_m = 0.0
        self._recording = False

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def point_count(self) -> int:
        return len(self._points)

    def start(self) -> None:
        """Clear any previous path and begin recording."""
        if self._recording:
            raise AlreadyRecordingError()
        self._reset()
        self._recording = True

    def append(self, point: GeoPoint) -> bool:
        """Append a sample if it is strictly newer than the last one.

        Returns:
            True if appended, False if dropped as stale or out of order.
        """
        if not self._recording:
            raise NotRecordingError()

        if self._points:
            last = self._points[-1]
            if point.timestamp <= last.timestamp:
                return False
            self._distance_m += haversine_m(last, point)

        self._points.append(point)
        return True

    def distance_meters(self) -> float:
        return self._distance_m

    def stop(self) -> Path:
        """Stop recording and hand over the finalized path.

        Raises:
            NotRecordingError: nothing is being recorded.
            PathTooShortError: fewer than two points were recorded.
        """
        if not self._recording:
            raise NotRecordingError()

        points, distance_m = tuple(self._points), self._distance_m
        self._recording = False
        self._reset()

        if len(points) < MIN_PATH_POINTS:
            raise PathTooShortError(len(points))

        return Path(points=points, distance_m=distance_m)

    def discard(self) -> None:
        """Drop the in-progress path without producing anything."""
        if self._recording:
            logger.info("path_discarded", point_count=len(self._points))
        self._recording = False
        self._reset()

    def _reset(self) -> None:
        self._points = []
        self._distance_m = 0.0
