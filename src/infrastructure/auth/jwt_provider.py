"""JWT identity provider implementation.

Anonymous sign-in mints a fresh user and a token for it; token sign-in
verifies a JWT issued for this app. Token payload structure:
    {
        "sub": "user-uuid",
        "iss": "run-realm-v1",
        "anonymous": true,
        "exp": 1234567890
    }
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

import structlog
from jose import JWTError, jwt

from core.exceptions import AuthFailureError
from core.subscription import Handler, HandlerRegistry, Subscription
from domain.entities.user import User

logger = structlog.get_logger()


class JWTIdentityProvider:
    """JWT-based identity provider.

    Auth state handlers are awaited in registration order on every
    transition, before ``sign_in``/``sign_out`` return.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60 * 24 * 30,
    ) -> None:
        self._secret_key = secret_key
        self._issuer = issuer
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._current_user: Optional[User] = None
        self._current_token: Optional[str] = None
        self._handlers: HandlerRegistry[Optional[User]] = HandlerRegistry()

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    @property
    def current_token(self) -> Optional[str]:
        return self._current_token

    async def sign_in(self, token: Optional[str] = None) -> User:
        """
        Sign in with a token, or anonymously when no token is given.

        Args:
            token: JWT issued for this app

        Returns:
            The signed-in User

        Raises:
            AuthFailureError: the token is invalid, expired, or lacks a subject
        """
        if token is None:
            user = User(id=uuid4(), is_anonymous=True)
            token = self.create_token(user)
        else:
            user = self.validate_token(token)

        self._current_user = user
        self._current_token = token
        logger.info("signed_in", uid=str(user.id), anonymous=user.is_anonymous)
        await self._handlers.emit(user)
        return user

    async def sign_out(self) -> None:
        """Sign out and notify handlers; a no-op when nobody is signed in."""
        if self._current_user is None:
            return
        logger.info("signed_out", uid=str(self._current_user.id))
        self._current_user = None
        self._current_token = None
        await self._handlers.emit(None)

    def on_auth_state_changed(self, handler: Handler[Optional[User]]) -> Subscription:
        return self._handlers.add(handler)

    def validate_token(self, token: str) -> User:
        """
        Validate a JWT and extract the user.

        Args:
            token: The JWT to validate

        Returns:
            User carried by the token

        Raises:
            AuthFailureError: signature, expiry, issuer or subject is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"verify_aud": False},
            )
        except JWTError as e:
            logger.warning("token_rejected", error=str(e))
            raise AuthFailureError("Invalid or expired token") from e

        subject = payload.get("sub")
        try:
            user_id = UUID(subject) if subject else None
        except ValueError:
            user_id = None
        if user_id is None:
            raise AuthFailureError("Token has no valid subject")

        return User(id=user_id, is_anonymous=bool(payload.get("anonymous", False)))

    def create_token(self, user: User) -> str:
        """
        Create a JWT for a user.

        Args:
            user: The user to create a token for

        Returns:
            The generated JWT string
        """
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._expire_minutes)

        payload: dict = {
            "sub": str(user.id),
            "iss": self._issuer,
            "anonymous": user.is_anonymous,
            "exp": expire,
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
