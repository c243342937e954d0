"""Unit tests for JWTIdentityProvider."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from jose import jwt as jose_jwt

from core.exceptions import AuthFailureError
from domain.entities.user import User
from infrastructure.auth.jwt_provider import JWTIdentityProvider

SECRET = "test-secret-key"
ISSUER = "run-realm-test"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_token(payload: dict, secret: str = SECRET) -> str:
    """Create an HS256-signed JWT with a given payload."""
    return jose_jwt.encode(payload, secret, algorithm="HS256")


def _expires_in(minutes: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


# ---------------------------------------------------------------------------
# Tests: sign-in
# ---------------------------------------------------------------------------


class TestSignIn:
    async def test_anonymous_sign_in_mints_user_and_token(self, identity: JWTIdentityProvider):
        user = await identity.sign_in()

        assert user.is_anonymous
        assert identity.current_user == user
        assert identity.current_token is not None
        assert identity.validate_token(identity.current_token) == user

    async def test_anonymous_sign_ins_get_distinct_users(self, identity: JWTIdentityProvider):
        first = await identity.sign_in()
        second = await identity.sign_in()

        assert first.id != second.id

    async def test_token_sign_in(self, identity: JWTIdentityProvider):
        uid = uuid4()
        token = _make_token({"sub": str(uid), "iss": ISSUER, "exp": _expires_in(5)})

        user = await identity.sign_in(token)

        assert user == User(id=uid, is_anonymous=False)

    async def test_invalid_token_leaves_state_untouched(self, identity: JWTIdentityProvider):
        handler = AsyncMock()
        identity.on_auth_state_changed(handler)

        with pytest.raises(AuthFailureError):
            await identity.sign_in("not-a-jwt")

        assert identity.current_user is None
        handler.assert_not_awaited()

    async def test_notifies_handlers_in_order(self, identity: JWTIdentityProvider):
        calls: list[str] = []

        async def first(user):
            calls.append("first")

        async def second(user):
            calls.append("second")

        identity.on_auth_state_changed(first)
        identity.on_auth_state_changed(second)

        await identity.sign_in()

        assert calls == ["first", "second"]


# ---------------------------------------------------------------------------
# Tests: sign-out and subscriptions
# ---------------------------------------------------------------------------


class TestSignOut:
    async def test_emits_none(self, identity: JWTIdentityProvider):
        await identity.sign_in()
        handler = AsyncMock()
        identity.on_auth_state_changed(handler)

        await identity.sign_out()

        handler.assert_awaited_once_with(None)
        assert identity.current_user is None
        assert identity.current_token is None

    async def test_noop_when_signed_out(self, identity: JWTIdentityProvider):
        handler = AsyncMock()
        identity.on_auth_state_changed(handler)

        await identity.sign_out()

        handler.assert_not_awaited()

    async def test_cancelled_handler_not_called(self, identity: JWTIdentityProvider):
        handler = AsyncMock()
        subscription = identity.on_auth_state_changed(handler)

        subscription.cancel()
        subscription.cancel()
        await identity.sign_in()

        handler.assert_not_awaited()


# ---------------------------------------------------------------------------
# Tests: token validation
# ---------------------------------------------------------------------------


class TestValidateToken:
    def test_round_trip(self, identity: JWTIdentityProvider):
        user = User(id=uuid4(), is_anonymous=True)

        assert identity.validate_token(identity.create_token(user)) == user

    def test_expired(self, identity: JWTIdentityProvider):
        token = _make_token({"sub": str(uuid4()), "iss": ISSUER, "exp": _expires_in(-5)})

        with pytest.raises(AuthFailureError):
            identity.validate_token(token)

    def test_wrong_secret(self, identity: JWTIdentityProvider):
        token = _make_token(
            {"sub": str(uuid4()), "iss": ISSUER, "exp": _expires_in(5)}, secret="other"
        )

        with pytest.raises(AuthFailureError):
            identity.validate_token(token)

    def test_wrong_issuer(self, identity: JWTIdentityProvider):
        token = _make_token({"sub": str(uuid4()), "iss": "someone-else", "exp": _expires_in(5)})

        with pytest.raises(AuthFailureError):
            identity.validate_token(token)

    def test_missing_subject(self, identity: JWTIdentityProvider):
        token = _make_token({"iss": ISSUER, "exp": _expires_in(5)})

        with pytest.raises(AuthFailureError):
            identity.validate_token(token)

    def test_subject_not_a_uuid(self, identity: JWTIdentityProvider):
        token = _make_token({"sub": "ada", "iss": ISSUER, "exp": _expires_in(5)})

        with pytest.raises(AuthFailureError):
            identity.validate_token(token)
