"""Client-side idle tracking, independent of the realtime channel."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import Enum


class IdleState(str, Enum):
    ACTIVE = "active"
    WARNING = "warning"
    EXPIRED = "expired"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdleTimer:
    """Tracks time since the last user activity.

    ``poll`` reports WARNING once ``warn_after`` has passed without activity
    and EXPIRED after ``expire_after``. A stopped timer always reports ACTIVE.
    """

    def __init__(
        self,
        warn_after: timedelta = timedelta(minutes=25),
        expire_after: timedelta = timedelta(minutes=30),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if warn_after >= expire_after:
            raise ValueError("warn_after must be shorter than expire_after")
        self._warn_after = warn_after
        self._expire_after = expire_after
        self._clock = clock
        self._last_activity = clock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True
        self.record_activity()

    def stop(self) -> None:
        self._running = False

    def record_activity(self) -> None:
        self._last_activity = self._clock()

    def idle_for(self) -> timedelta:
        return self._clock() - self._last_activity

    def poll(self) -> IdleState:
        if not self._running:
            return IdleState.ACTIVE
        idle = self.idle_for()
        if idle >= self._expire_after:
            return IdleState.EXPIRED
        if idle >= self._warn_after:
            return IdleState.WARNING
        return IdleState.ACTIVE
