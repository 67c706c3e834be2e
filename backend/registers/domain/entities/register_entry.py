"""Domain entity — one row of a procurement register."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from registers.domain.entities.room import RegisterType, Room


@dataclass
class RegisterEntry:
    """A register row scoped by register type and financial year.

    The register-specific columns (firm name, nomenclature, dates, ...) are
    kept as an opaque field document; only the serial number and financial
    year take part in ordering and room resolution.
    """

    register_type: RegisterType
    financial_year: str
    fields: dict[str, Any] = field(default_factory=dict)
    serial_no: int | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def room(self) -> Room:
        return Room(self.register_type, self.financial_year)

    def update(
        self,
        fields: dict[str, Any] | None = None,
        serial_no: int | None = None,
        financial_year: str | None = None,
    ) -> None:
        """Update mutable fields and refresh the updated_at timestamp."""
        if fields is not None:
            self.fields = fields
        if serial_no is not None:
            self.serial_no = serial_no
        if financial_year is not None:
            self.financial_year = financial_year
        self.updated_at = datetime.now(timezone.utc)

    def to_payload(self) -> dict[str, Any]:
        """Canonical flat representation, as served by the read endpoints."""
        return {
            **self.fields,
            "id": self.id,
            "serial_no": self.serial_no,
            "financial_year": self.financial_year,
        }
