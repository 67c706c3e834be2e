"""Domain entities for register types, financial years and broadcast rooms."""

import re
from dataclasses import dataclass
from enum import Enum

from registers.domain.exceptions import InvalidFinancialYearError, InvalidRoomError

_FINANCIAL_YEAR = re.compile(r"^(\d{4})-(\d{4})$")
_ROOM_ID = re.compile(r"^(?P<register_type>[a-z-]+)-(?P<financial_year>\d{4}-\d{4})$")


class RegisterType(str, Enum):
    """The tracked registers. Values are the wire names used in rooms and events."""

    SUPPLY = "supply"
    DEMAND = "demand"
    BILL = "bill"
    SANCTION_GEN_PROJECT = "sanction-gen-project"
    SANCTION_MISC = "sanction-misc"
    SANCTION_TRAINING = "sanction-training"

    @property
    def path(self) -> str:
        """URL segment under /api for this register's endpoints."""
        if self in (RegisterType.SUPPLY, RegisterType.DEMAND, RegisterType.BILL):
            return f"{self.value}-orders"
        return self.value


def validate_financial_year(value: str) -> str:
    """Return *value* unchanged if it reads YYYY-YYYY+1, else raise."""
    match = _FINANCIAL_YEAR.match(value or "")
    if match is None or int(match.group(2)) != int(match.group(1)) + 1:
        raise InvalidFinancialYearError(value)
    return value


@dataclass(frozen=True)
class Room:
    """Broadcast scope keyed by (register type, financial year).

    A room has no state of its own; membership lives in the RoomRegistry.
    """

    register_type: RegisterType
    financial_year: str

    def __post_init__(self) -> None:
        validate_financial_year(self.financial_year)

    @property
    def room_id(self) -> str:
        return f"{self.register_type.value}-{self.financial_year}"

    @classmethod
    def parse(cls, room_id: str) -> "Room":
        """Parse a wire identifier such as ``sanction-misc-2024-2025``."""
        match = _ROOM_ID.match(room_id or "")
        if match is None:
            raise InvalidRoomError(room_id)
        try:
            register_type = RegisterType(match.group("register_type"))
            return cls(register_type, match.group("financial_year"))
        except (ValueError, InvalidFinancialYearError) as exc:
            raise InvalidRoomError(room_id) from exc

    def __str__(self) -> str:
        return self.room_id
