"""Abstract repository interface (port) for User persistence."""

from abc import ABC, abstractmethod

from registers.domain.entities import User


class UserRepository(ABC):
    """Port for account persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_by_username(self, username: str) -> User | None:
        ...

    @abstractmethod
    async def create(self, user: User) -> User:
        ...

    @abstractmethod
    async def update(self, user: User) -> User:
        """Persist password hash and role changes."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        ...
