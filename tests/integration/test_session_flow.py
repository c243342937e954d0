"""End-to-end session flows over the real store, identity provider and sensor."""

from uuid import uuid4

import pytest

from core.exceptions import (
    DegenerateTerritoryError,
    HandleConflictError,
    InvalidTransitionError,
    PathTooShortError,
    PositionUnavailableError,
    ProfileValidationError,
)
from domain.entities.session import SessionState, TrackingState
from domain.services.leveling import compute_level
from infrastructure.location.sensor import HostPositionSensor
from main import RunRealmApp
from tests.helpers import square_loop


async def onboard(app: RunRealmApp, handle: str = "Ada Lovelace") -> None:
    await app.session.login()
    await app.session.submit_profile("Ada Lovelace", handle, "Runs at dawn")


async def run_loop(app: RunRealmApp, sensor: HostPositionSensor, side_m: float):
    assert await app.session.start_tracking()
    for fix in square_loop(side_m, lat0=51.5, lon0=-0.1):
        await sensor.report(fix.lat, fix.lon, fix.timestamp)
    return await app.session.stop_tracking()


class TestOnboarding:
    async def test_fresh_app_is_signed_out(self, app: RunRealmApp):
        view = app.session.view()

        assert view.state == SessionState.SIGNED_OUT
        assert view.onboarding_step == 0
        assert view.display_initial == "?"
        assert view.viewport.center == app.settings.default_coordinates

    async def test_new_user_is_asked_for_a_profile(self, app: RunRealmApp):
        await app.session.login()

        assert app.session.state == SessionState.PROFILE_REQUIRED
        assert app.session.view().onboarding_step == 1

    async def test_submitted_profile_reaches_ready(self, app: RunRealmApp):
        await onboard(app)

        view = app.session.view()
        assert view.state == SessionState.READY
        assert view.show_map
        assert view.display_initial == "A"
        assert app.session.profile.handle == "adalovelace"
        assert app.session.profile.level == 1
        assert app.session.profile.xp == 0

    async def test_invalid_profile_stays_on_form(self, app: RunRealmApp):
        await app.session.login()

        await app.session.submit_profile("Ada", "   ")

        assert app.session.state == SessionState.PROFILE_REQUIRED
        assert isinstance(app.session.last_error, ProfileValidationError)

    async def test_taken_handle_is_rejected(self, app: RunRealmApp):
        await onboard(app, handle="ada")
        await app.session.sign_out()
        await app.session.login()

        await app.session.submit_profile("Another Ada", "ADA")

        assert app.session.state == SessionState.PROFILE_REQUIRED
        assert isinstance(app.session.last_error, HandleConflictError)

    async def test_returning_user_skips_onboarding(self, app: RunRealmApp):
        await onboard(app)
        token = app.identity.current_token
        await app.session.sign_out()

        await app.session.login(token)

        assert app.session.state == SessionState.READY
        assert app.session.profile.handle == "adalovelace"

    async def test_bad_token_returns_to_signed_out(self, app: RunRealmApp):
        await app.session.login("not-a-jwt")

        assert app.session.state == SessionState.SIGNED_OUT
        assert app.session.last_error is not None

    async def test_actions_in_wrong_state_raise(self, app: RunRealmApp):
        with pytest.raises(InvalidTransitionError):
            await app.session.start_tracking()
        with pytest.raises(InvalidTransitionError):
            await app.session.submit_profile("Ada", "ada")


class TestTracking:
    async def test_loop_claims_territory_and_awards_xp(
        self, app: RunRealmApp, sensor: HostPositionSensor
    ):
        await onboard(app)
        user_id = app.session.user.id

        moment = await run_loop(app, sensor, side_m=100)

        assert moment is not None
        assert app.session.tracking == TrackingState.NOT_TRACKING
        assert not sensor.is_watching
        assert 125 <= moment.xp_awarded <= 135
        assert moment.duration_s == 45

        profile = app.session.profile
        assert profile.xp == moment.xp_awarded
        assert profile.level == compute_level(moment.xp_awarded).level
        assert app.session.view().territory_count == 1

        territories = await app.territories.list_territories(user_id)
        assert len(territories) == 1
        assert territories[0].area_m2 == pytest.approx(10_000, rel=1e-3)
        assert [m.id for m in await app.territories.list_moments(user_id)] == [moment.id]

    async def test_tracking_updates_distance_and_viewport(
        self, app: RunRealmApp, sensor: HostPositionSensor
    ):
        await onboard(app)
        await app.session.start_tracking()

        fixes = square_loop(100, lat0=51.5, lon0=-0.1)
        for fix in fixes[:2]:
            await sensor.report(fix.lat, fix.lon, fix.timestamp)

        view = app.session.view()
        assert view.is_tracking
        assert view.session_distance_m == pytest.approx(100, rel=1e-2)
        assert view.viewport.center == (fixes[1].lat, fixes[1].lon)

    async def test_reward_is_applied_once_per_moment(
        self, app: RunRealmApp, sensor: HostPositionSensor
    ):
        await onboard(app)
        moment = await run_loop(app, sensor, side_m=100)

        again = await app.profiles.apply_reward(app.session.user.id, moment.xp_awarded, moment.id)

        assert again.xp == moment.xp_awarded
        assert app.session.profile.xp == moment.xp_awarded

    async def test_xp_accumulates_across_runs(
        self, app: RunRealmApp, sensor: HostPositionSensor
    ):
        await onboard(app)

        first = await run_loop(app, sensor, side_m=100)
        second = await run_loop(app, sensor, side_m=200)

        assert app.session.profile.xp == first.xp_awarded + second.xp_awarded
        assert app.session.view().territory_count == 2

    async def test_too_few_points(self, app: RunRealmApp, sensor: HostPositionSensor):
        await onboard(app)
        await app.session.start_tracking()
        fix = square_loop(100)[0]
        await sensor.report(fix.lat, fix.lon, fix.timestamp)

        assert await app.session.stop_tracking() is None

        assert isinstance(app.session.last_error, PathTooShortError)
        assert app.session.state == SessionState.READY
        assert app.session.tracking == TrackingState.NOT_TRACKING
        assert app.session.profile.xp == 0

    async def test_tiny_loop_is_not_claimed(self, app: RunRealmApp, sensor: HostPositionSensor):
        await onboard(app)

        assert await run_loop(app, sensor, side_m=5) is None

        assert isinstance(app.session.last_error, DegenerateTerritoryError)
        assert await app.territories.count_territories() == 0
        assert app.session.profile.xp == 0

    async def test_denied_sensor_does_not_start(self, app: RunRealmApp, sensor: HostPositionSensor):
        await onboard(app)
        sensor.permission_granted = False

        assert await app.session.start_tracking() is False

        assert app.session.tracking == TrackingState.NOT_TRACKING
        assert not app.session.recorder.is_recording
        assert isinstance(app.session.last_error, PositionUnavailableError)

    async def test_sensor_failure_mid_run_discards_path(
        self, app: RunRealmApp, sensor: HostPositionSensor
    ):
        await onboard(app)
        await app.session.start_tracking()
        fix = square_loop(100)[0]
        await sensor.report(fix.lat, fix.lon, fix.timestamp)

        await sensor.fail("Position fix timed out")

        assert app.session.tracking == TrackingState.NOT_TRACKING
        assert not app.session.recorder.is_recording
        assert not sensor.is_watching
        assert isinstance(app.session.last_error, PositionUnavailableError)

    async def test_toggle(self, app: RunRealmApp, sensor: HostPositionSensor):
        await onboard(app)

        await app.session.toggle_tracking()
        assert app.session.tracking == TrackingState.TRACKING

        await app.session.toggle_tracking()
        assert app.session.tracking == TrackingState.NOT_TRACKING


class TestSignOut:
    async def test_sign_out_while_tracking_discards_run(
        self, app: RunRealmApp, sensor: HostPositionSensor
    ):
        await onboard(app)
        await app.session.start_tracking()
        for fix in square_loop(100)[:3]:
            await sensor.report(fix.lat, fix.lon, fix.timestamp)

        await app.session.sign_out()

        view = app.session.view()
        assert view.state == SessionState.SIGNED_OUT
        assert view.tracking == TrackingState.NOT_TRACKING
        assert view.session_distance_m == 0
        assert view.viewport.center == app.settings.default_coordinates
        assert not sensor.is_watching
        assert app.session.user is None
        assert await app.territories.count_territories() == 0

    async def test_provider_sign_out_forces_signed_out(self, app: RunRealmApp):
        await onboard(app)

        await app.identity.sign_out()

        assert app.session.state == SessionState.SIGNED_OUT
        assert app.session.profile is None

    async def test_profile_updates_stop_after_sign_out(
        self, app: RunRealmApp, sensor: HostPositionSensor
    ):
        await onboard(app)
        user_id = app.session.user.id
        await run_loop(app, sensor, side_m=100)
        await app.session.sign_out()

        await app.profiles.apply_reward(user_id, 500, uuid4())

        assert app.session.profile is None
        assert app.session.state == SessionState.SIGNED_OUT
