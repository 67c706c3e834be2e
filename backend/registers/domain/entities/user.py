"""Domain entity — an application account."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from registers.domain.entities.session import Role


@dataclass
class User:
    """Account holding bcrypt hashes of its password and security answer."""

    username: str
    password_hash: str
    security_answer_hash: str
    role: Role = Role.VIEWER
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def change_password_hash(self, password_hash: str) -> None:
        self.password_hash = password_hash
        self.updated_at = datetime.now(timezone.utc)
