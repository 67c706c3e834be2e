"""Abstract interface (port) for one-way secret hashing."""

from abc import ABC, abstractmethod


class PasswordHasher(ABC):
    """Salted one-way hashing for passwords and security answers."""

    @abstractmethod
    def hash(self, secret: str) -> str:
        ...

    @abstractmethod
    def verify(self, secret: str, hashed: str) -> bool:
        ...
