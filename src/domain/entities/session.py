"""Session state machine states and the view snapshot derived from them."""

from dataclasses import dataclass
from enum import StrEnum

from core.exceptions import AppException


class SessionState(StrEnum):
    """Onboarding and authentication states."""

    SIGNED_OUT = "signed_out"
    AUTHENTICATING = "authenticating"
    PROFILE_REQUIRED = "profile_required"
    PROFILE_SUBMITTED = "profile_submitted"
    READY = "ready"


class TrackingState(StrEnum):
    """Tracking sub-state, only meaningful while READY."""

    NOT_TRACKING = "not_tracking"
    TRACKING = "tracking"


ONBOARDING_STEPS: dict[SessionState, int] = {
    SessionState.SIGNED_OUT: 0,
    SessionState.AUTHENTICATING: 0,
    SessionState.PROFILE_REQUIRED: 1,
    SessionState.PROFILE_SUBMITTED: 2,
    SessionState.READY: 3,
}


@dataclass(frozen=True)
class MapViewport:
    """What the map-tile renderer is fed: a center, a zoom and a tile source."""

    center: tuple[float, float]
    zoom: int
    tile_url: str


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot every UI flag is derived from."""

    state: SessionState
    tracking: TrackingState
    display_initial: str
    session_distance_m: float
    territory_count: int
    viewport: MapViewport
    last_error: AppException | None = None

    @property
    def onboarding_step(self) -> int:
        return ONBOARDING_STEPS[self.state]

    @property
    def is_loading(self) -> bool:
        return self.state == SessionState.AUTHENTICATING

    @property
    def is_tracking(self) -> bool:
        return self.tracking == TrackingState.TRACKING

    @property
    def show_map(self) -> bool:
        return self.state == SessionState.READY
