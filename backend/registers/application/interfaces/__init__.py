from .password_hasher import PasswordHasher
from .register_repository import RegisterRepository
from .user_repository import UserRepository

__all__ = [
    "PasswordHasher",
    "RegisterRepository",
    "UserRepository",
]
