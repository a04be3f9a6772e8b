"""Explicit session state for the signed-in user.

There is no module-level auth singleton. The presentation layer creates a
SessionState, subscribes to it, and passes ``session.current_user`` into
every relationship manager call.
"""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from dnd_companion.core.exceptions import PermissionDeniedError
from dnd_companion.core.logging import get_logger


logger = get_logger(__name__)


class AuthUser(BaseModel):
    """Identity of a signed-in user.

    Attributes:
        uid: Stable account identifier.
        display_name: Name shown to other users, if set.
        email: Account email, if known.
    """

    model_config = ConfigDict(frozen=True)

    uid: str = Field(min_length=1)
    display_name: str | None = None
    email: str | None = None


AuthListener = Callable[[AuthUser | None], None]


class SessionState:
    """Holds the current user and notifies listeners on change.

    Example:
        >>> session = SessionState()
        >>> unsubscribe = session.subscribe(lambda user: print(user))
        >>> session.sign_in(AuthUser(uid="u1"))
        uid='u1' display_name=None email=None
        >>> unsubscribe()
    """

    def __init__(self, user: AuthUser | None = None) -> None:
        self._user = user
        self._listeners: list[AuthListener] = []

    @property
    def current_user(self) -> AuthUser | None:
        """The signed-in user, or None when anonymous."""
        return self._user

    @property
    def is_authenticated(self) -> bool:
        """True when a user is signed in."""
        return self._user is not None

    def sign_in(self, user: AuthUser) -> None:
        """Set the current user and notify listeners."""
        self._user = user
        logger.info("User signed in", user_id=user.uid)
        self._notify()

    def sign_out(self) -> None:
        """Clear the current user and notify listeners."""
        previous = self._user
        self._user = None
        if previous is not None:
            logger.info("User signed out", user_id=previous.uid)
        self._notify()

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener for auth state changes.

        Args:
            listener: Called with the new user (or None) after every change.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def require_user(self) -> AuthUser:
        """Return the current user.

        Raises:
            PermissionDeniedError: If nobody is signed in.
        """
        if self._user is None:
            raise PermissionDeniedError("You must be signed in to do that")
        return self._user

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._user)
            except Exception as exc:
                logger.error("Auth listener failed", error=str(exc), exc_info=True)


__all__ = [
    "AuthUser",
    "AuthListener",
    "SessionState",
]
