"""
Clock and session collaborators.

Business logic never reads the system clock or the auth session directly.
The application shell asks these objects once per operation and passes
the answers down as plain arguments.
"""

from datetime import datetime, timedelta
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in local naive datetimes."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """A clock that only moves when told to. Used in tests."""

    def __init__(self, current: datetime):
        self._current = current

    def now(self) -> datetime:
        return self._current

    def advance(self, delta: timedelta) -> None:
        self._current += delta

    def set(self, current: datetime) -> None:
        self._current = current


class SessionProvider(Protocol):
    def current_user_id(self) -> Optional[str]: ...


class StaticSession:
    """Session with a fixed (or absent) signed-in user."""

    def __init__(self, user_id: Optional[str] = None):
        self._user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        self._user_id = user_id

    def sign_out(self) -> None:
        self._user_id = None


class NotAuthenticatedError(Exception):
    """No signed-in user; there is nothing to scope the work to."""
    pass


def require_user(session: SessionProvider) -> str:
    """Current user id, or NotAuthenticatedError when nobody is signed in."""
    user_id = session.current_user_id()
    if not user_id:
        raise NotAuthenticatedError("No authenticated user")
    return user_id
