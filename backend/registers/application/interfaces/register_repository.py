"""Abstract repository interface (port) for register entry persistence."""

from abc import ABC, abstractmethod

from registers.domain.entities import RegisterEntry, RegisterType


class RegisterRepository(ABC):
    """Port for register storage — implemented in the infrastructure layer.

    Write methods stage changes; nothing is durable until ``commit`` returns.
    Implementations raise StoreFailureError when the backing store fails.
    """

    @abstractmethod
    async def get_by_id(self, register_type: RegisterType, entry_id: int) -> RegisterEntry | None:
        """Retrieve one entry of the given register."""
        ...

    @abstractmethod
    async def list_for_year(
        self, register_type: RegisterType, financial_year: str
    ) -> list[RegisterEntry]:
        """All entries of a register for one financial year, ordered by serial number."""
        ...

    @abstractmethod
    async def max_serial(self, register_type: RegisterType, financial_year: str) -> int:
        """Highest serial number in use, or 0 for an empty year."""
        ...

    @abstractmethod
    async def create(self, entry: RegisterEntry) -> RegisterEntry:
        ...

    @abstractmethod
    async def update(self, entry: RegisterEntry) -> RegisterEntry:
        ...

    @abstractmethod
    async def delete(self, register_type: RegisterType, entry_id: int) -> bool:
        """Delete an entry. Returns True if deleted, False if not found."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Make staged writes durable."""
        ...
