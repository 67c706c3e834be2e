from .user import UserModel
from .register_entry import RegisterEntryModel

__all__ = [
    "UserModel",
    "RegisterEntryModel",
]
