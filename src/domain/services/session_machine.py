"""Session state machine: the single source of truth for auth, onboarding and tracking.

    SIGNED_OUT -> AUTHENTICATING -> PROFILE_REQUIRED -> PROFILE_SUBMITTED -> READY
                               \\-----------------------------------------/

Tracking (NOT_TRACKING <-> TRACKING) is a sub-state of READY. A signed-out
notification from the identity provider forces SIGNED_OUT from any state and
discards the in-progress path.

Recoverable failures never escape the public actions; they are kept in
``last_error`` and the machine settles in a well-defined state. Calling an
action in the wrong state raises InvalidTransitionError.
"""

from typing import Optional

import structlog

from core.exceptions import (
    AppException,
    AuthFailureError,
    InvalidTransitionError,
    PositionUnavailableError,
    StoreUnavailableError,
)
from core.subscription import Subscription
from domain.entities.geo import GeoPoint
from domain.entities.profile import NewUser, Profile
from domain.entities.session import MapViewport, SessionState, SessionView, TrackingState
from domain.entities.territory import Moment
from domain.entities.user import User
from domain.services.path_recorder import PathRecorder
from domain.services.profile_service import ProfileService, ProfileUpdate
from domain.services.territory_builder import TerritoryBuilder
from domain.services.territory_service import TerritoryService
from infrastructure.auth.provider import IIdentityProvider
from infrastructure.location.adapter import GeolocationAdapter

logger = structlog.get_logger()


class SessionStateMachine:
    """Orchestrates identity, profile sync and the track-to-territory pipeline."""

    def __init__(
        self,
        identity: IIdentityProvider,
        profiles: ProfileService,
        territories: TerritoryService,
        geolocation: GeolocationAdapter,
        builder: TerritoryBuilder,
        default_viewport: MapViewport,
        recorder: Optional[PathRecorder] = None,
    ) -> None:
        self._identity = identity
        self._profiles = profiles
        self._territories = territories
        self._geolocation = geolocation
        self._builder = builder
        self._default_viewport = default_viewport
        self._recorder = recorder or PathRecorder()

        self._state = SessionState.SIGNED_OUT
        self._tracking = TrackingState.NOT_TRACKING
        self._user: Optional[User] = None
        self._profile: Optional[Profile] = None
        self._last_error: Optional[AppException] = None
        self._user_location: Optional[tuple[float, float]] = None
        self._territory_count = 0
        self._user_location = None

        self._auth_sub: Optional[Subscription] = None
        self._profile_sub: Optional[Subscription] = None
        self._location_sub: Optional[Subscription] = None

    # --- Read-only state ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def tracking(self) -> TrackingState:
        return self._tracking

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def last_error(self) -> Optional[AppException]:
        return self._last_error

    @property
    def recorder(self) -> PathRecorder:
        return self._recorder

    def view(self) -> SessionView:
        """Snapshot every UI flag is derived from."""
        viewport = self._default_viewport
        if self._user_location is not None:
            viewport = MapViewport(
                center=self._user_location,
                zoom=viewport.zoom,
                tile_url=viewport.tile_url,
            )
        return SessionView(
            state=self._state,
            tracking=self._tracking,
            display_initial=self._profile.initial if self._profile else "?",
            session_distance_m=self._recorder.distance_meters(),
            territory_count=self._territory_count,
            viewport=viewport,
            last_error=self._last_error,
        )

    # --- Lifecycle ---

    async def start(self) -> None:
        """Register the process-lifetime auth subscription."""
        if self._auth_sub is None:
            self._auth_sub = self._identity.on_auth_state_changed(self._on_auth_state_changed)
        current = self._identity.current_user
        if current is not None:
            await self._on_auth_state_changed(current)

    async def close(self) -> None:
        """Tear down every subscription."""
        self._reset_session()
        if self._auth_sub is not None:
            self._auth_sub.cancel()
            self._auth_sub = None

    # --- Authentication and onboarding ---

    async def login(self, token: Optional[str] = None) -> None:
        """Sign in; the provider's notification drives the rest of the flow."""
        self._require(SessionState.SIGNED_OUT, action="log in")
        self._last_error = None
        self._state = SessionState.AUTHENTICATING
        try:
            await self._identity.sign_in(token)
        except AuthFailureError as e:
            self._fail(e)
            if self._state == SessionState.AUTHENTICATING:
                self._state = SessionState.SIGNED_OUT

    async def submit_profile(self, display_name: str, handle: str, bio: str = "") -> None:
        """Create the profile; READY follows once the store confirms the write."""
        self._require(SessionState.PROFILE_REQUIRED, action="submit a profile")
        user = self._signed_in_user("submit a profile")
        self._last_error = None
        self._state = SessionState.PROFILE_SUBMITTED
        try:
            await self._profiles.create(user.id, display_name, handle, bio)
        except AppException as e:
            if not e.recoverable:
                raise
            self._fail(e)
            if self._state == SessionState.PROFILE_SUBMITTED:
                self._state = SessionState.PROFILE_REQUIRED

    async def refresh_profile(self) -> None:
        """Retry the profile subscription after a store failure."""
        self._require(SessionState.AUTHENTICATING, action="refresh the profile")
        self._signed_in_user("refresh the profile")
        self._last_error = None
        await self._subscribe_profile()

    async def sign_out(self) -> None:
        """Sign out at the provider; local state is reset either way."""
        await self._identity.sign_out()
        if self._state != SessionState.SIGNED_OUT:
            self._force_sign_out()

    # --- Tracking ---

    async def start_tracking(self) -> bool:
        """Start recording a path. Returns False if the sensor is unavailable."""
        self._require(SessionState.READY, action="start tracking")
        if self._tracking == TrackingState.TRACKING:
            raise InvalidTransitionError("start tracking", "already tracking")

        self._last_error = None
        self._recorder.start()
        try:
            self._location_sub = self._geolocation.subscribe(
                self._on_position, self._on_position_error
            )
        except PositionUnavailableError as e:
            self._recorder.discard()
            self._fail(e)
            return False

        self._tracking = TrackingState.TRACKING
        logger.info("tracking_started")
        return True

    async def stop_tracking(self) -> Optional[Moment]:
        """Stop recording and claim the enclosed territory.

        Returns:
            The rewarded Moment, or None if the run could not be claimed.
        """
        self._require(SessionState.READY, action="stop tracking")
        if self._tracking != TrackingState.TRACKING:
            raise InvalidTransitionError("stop tracking", "not tracking")
        user = self._signed_in_user("stop tracking")

        self._cancel_location()
        self._tracking = TrackingState.NOT_TRACKING

        try:
            path = self._recorder.stop()
            territory, moment = self._builder.build(path, user.id)
            await self._territories.record(territory, moment)
            self._territory_count += 1
            await self._profiles.apply_reward(user.id, moment.xp_awarded, moment.id)
        except AppException as e:
            if not e.recoverable:
                raise
            self._fail(e)
            return None

        logger.info("tracking_stopped", moment_id=str(moment.id), xp=moment.xp_awarded)
        return moment

    async def toggle_tracking(self) -> None:
        """Single start/stop control on the map screen."""
        if self._tracking == TrackingState.TRACKING:
            await self.stop_tracking()
        else:
            await self.start_tracking()

    # --- Event handlers ---

    async def _on_auth_state_changed(self, user: Optional[User]) -> None:
        if user is None:
            if self._state != SessionState.SIGNED_OUT:
                self._force_sign_out()
            return

        if self._user is not None:
            if self._user.id == user.id and self._state != SessionState.AUTHENTICATING:
                # Re-established subscription for the same user
                return
            if self._user.id != user.id:
                self._force_sign_out()

        self._user = user
        self._state = SessionState.AUTHENTICATING
        structlog.contextvars.bind_contextvars(uid=str(user.id))
        await self._subscribe_profile()

    async def _subscribe_profile(self) -> None:
        user = self._signed_in_user("subscribe to the profile")
        if self._profile_sub is not None:
            self._profile_sub.cancel()
            self._profile_sub = None
        try:
            self._profile_sub = await self._profiles.subscribe(user.id, self._on_profile)
        except StoreUnavailableError as e:
            self._fail(e)

    async def _on_profile(self, update: ProfileUpdate) -> None:
        if self._user is None or update.uid != self._user.id:
            return

        if isinstance(update, NewUser):
            if self._state == SessionState.AUTHENTICATING:
                self._state = SessionState.PROFILE_REQUIRED
                logger.info("profile_required")
            return

        self._profile = update
        if self._state in (
            SessionState.AUTHENTICATING,
            SessionState.PROFILE_REQUIRED,
            SessionState.PROFILE_SUBMITTED,
        ):
            self._state = SessionState.READY
            self._tracking = TrackingState.NOT_TRACKING
            logger.info("session_ready", level=update.level, xp=update.xp)
            await self._refresh_territory_count()

    async def _refresh_territory_count(self) -> None:
        try:
            self._territory_count = await self._territories.count_territories()
        except StoreUnavailableError as e:
            self._fail(e)

    async def _on_position(self, point: GeoPoint) -> None:
        self._user_location = (point.lat, point.lon)
        if self._tracking == TrackingState.TRACKING:
            self._recorder.append(point)

    async def _on_position_error(self, error: PositionUnavailableError) -> None:
        if self._tracking != TrackingState.TRACKING:
            return
        self._cancel_location()
        self._recorder.discard()
        self._tracking = TrackingState.NOT_TRACKING
        self._fail(error)

    # --- Internals ---

    def _require(self, state: SessionState, action: str) -> None:
        if self._state != state:
            raise InvalidTransitionError(action, self._state.value)

    def _signed_in_user(self, action: str) -> User:
        if self._user is None:
            raise InvalidTransitionError(action, "not signed in")
        return self._user

    def _fail(self, error: AppException) -> None:
        self._last_error = error
        logger.warning(
            "session_action_failed",
            state=self._state.value,
            error_code=error.error_code.value,
            message=error.message,
        )

    def _cancel_location(self) -> None:
        if self._location_sub is not None:
            self._location_sub.cancel()
            self._location_sub = None

    def _reset_session(self) -> None:
        self._cancel_location()
        self._recorder.discard()
        if self._profile_sub is not None:
            self._profile_sub.cancel()
            self._profile_sub = None
        self._user = None
        self._profile = None
        self._territory_count = 0
        self._user_location = None
        self._state = SessionState.SIGNED_OUT
        self._tracking = TrackingState.NOT_TRACKING

    def _force_sign_out(self) -> None:
        discarded = self._recorder.point_count if self._recorder.is_recording else 0
        self._reset_session()
        logger.info("session_signed_out", discarded_points=discarded)
        structlog.contextvars.unbind_contextvars("uid")
