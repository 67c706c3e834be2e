"""Domain entity — a committed register mutation, ready for broadcast."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from registers.domain.entities.room import RegisterType, Room


class ChangeAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    """Immutable description of one completed mutation.

    Only built after the underlying write has been committed. Never persisted.
    """

    register_type: RegisterType
    action: ChangeAction
    data: dict[str, Any]
    financial_year: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def room(self) -> Room:
        return Room(self.register_type, self.financial_year)

    def to_payload(self) -> dict[str, Any]:
        """The ``data-change`` body pushed to subscribed channels."""
        return {
            "type": self.register_type.value,
            "action": self.action.value,
            "data": dict(self.data),
            "timestamp": self.timestamp.isoformat(),
        }
