from .room import RegisterType, Room, validate_financial_year
from .session import Role, Session
from .user import User
from .register_entry import RegisterEntry
from .change_event import ChangeAction, ChangeEvent

__all__ = [
    "RegisterType",
    "Room",
    "validate_financial_year",
    "Role",
    "Session",
    "User",
    "RegisterEntry",
    "ChangeAction",
    "ChangeEvent",
]
