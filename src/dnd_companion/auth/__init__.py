"""Identity and session state."""

from dnd_companion.auth.session import AuthListener, AuthUser, SessionState

__all__ = [
    "AuthUser",
    "AuthListener",
    "SessionState",
]
