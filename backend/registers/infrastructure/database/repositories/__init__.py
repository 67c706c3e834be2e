from .register_repository import SQLAlchemyRegisterRepository
from .user_repository import SQLAlchemyUserRepository

__all__ = [
    "SQLAlchemyRegisterRepository",
    "SQLAlchemyUserRepository",
]
