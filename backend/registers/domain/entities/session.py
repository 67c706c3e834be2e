"""Domain entities for roles and authenticated sessions."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum


class Role(str, Enum):
    """Closed set of account roles."""

    ADMIN = "admin"
    VIEWER = "viewer"
    GAMER = "gamer"


@dataclass
class Session:
    """One authenticated browser session with a sliding expiry window.

    The role is fixed when the session is created; a role change requires a
    fresh login.
    """

    token: str
    user_id: int
    username: str
    role: Role
    window: timedelta = timedelta(minutes=30)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_activity: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_active(self, now: datetime) -> bool:
        return now - self.last_activity < self.window

    def touch(self, now: datetime) -> None:
        """Slide the window forward to *now*."""
        self.last_activity = now

    @property
    def expires_at(self) -> datetime:
        return self.last_activity + self.window
