"""In-process session store with sliding expiry."""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from registers.domain.entities import Role, Session
from registers.domain.exceptions import SessionExpiredError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """Holds authenticated sessions keyed by their opaque cookie token.

    A session is valid only while ``now - last_activity < window``. Each
    successful ``validate`` slides the window, so any authenticated request
    keeps the session alive. Expired sessions are discarded on lookup, and
    every new login sweeps out the ones abandoned without a logout.
    """

    def __init__(
        self,
        window: timedelta = timedelta(minutes=30),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._window = window
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    @property
    def window(self) -> timedelta:
        return self._window

    def create(self, user_id: int, username: str, role: Role) -> Session:
        """Open a new session for a user whose credentials were just verified."""
        now = self._clock()
        self.purge_expired()
        session = Session(
            token=secrets.token_urlsafe(32),
            user_id=user_id,
            username=username,
            role=role,
            window=self._window,
            created_at=now,
            last_activity=now,
        )
        self._sessions[session.token] = session
        logger.info("Session opened for '%s' (role=%s)", username, role.value)
        return session

    def validate(self, token: str | None) -> Session:
        """Return the live session for *token* and slide its window."""
        session = self._lookup(token)
        session.touch(self._clock())
        return session

    def touch(self, token: str | None) -> Session:
        """Explicitly extend the window without any other request content."""
        return self.validate(token)

    def peek(self, token: str | None) -> Session | None:
        """Return the live session without sliding the window, or None."""
        try:
            return self._lookup(token)
        except SessionExpiredError:
            return None

    def destroy(self, token: str | None) -> bool:
        """Remove a session. Returns True if one existed."""
        if not token:
            return False
        session = self._sessions.pop(token, None)
        if session is not None:
            logger.info("Session closed for '%s'", session.username)
        return session is not None

    def purge_expired(self) -> int:
        """Drop every session past its window. Returns how many were removed."""
        now = self._clock()
        expired = [t for t, s in self._sessions.items() if not s.is_active(now)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.info("Purged %d expired session(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def _lookup(self, token: str | None) -> Session:
        if not token:
            raise SessionExpiredError()
        session = self._sessions.get(token)
        if session is None:
            raise SessionExpiredError()
        if not session.is_active(self._clock()):
            del self._sessions[token]
            logger.info("Session for '%s' expired", session.username)
            raise SessionExpiredError()
        return session
