"""Identity provider protocol."""

from typing import Optional, Protocol

from core.subscription import Handler, Subscription
from domain.entities.user import User


class IIdentityProvider(Protocol):
    """Protocol for identity providers."""

    @property
    def current_user(self) -> Optional[User]:
        """The signed-in user, or None."""
        ...

    async def sign_in(self, token: Optional[str] = None) -> User:
        """
        Sign a user in.

        Args:
            token: Credential issued by the provider; None signs in anonymously

        Returns:
            The signed-in User

        Raises:
            AuthFailureError: the provider rejected or cancelled the login
        """
        ...

    async def sign_out(self) -> None:
        """Sign the current user out."""
        ...

    def on_auth_state_changed(self, handler: Handler[Optional[User]]) -> Subscription:
        """
        Register for signed-in / signed-out transitions.

        Args:
            handler: Awaited with the new User, or None on sign-out

        Returns:
            Subscription releasing the handler
        """
        ...
