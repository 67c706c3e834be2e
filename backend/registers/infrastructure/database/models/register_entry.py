"""SQLAlchemy ORM model for register entries of every register type."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from registers.infrastructure.database.base import Base


class RegisterEntryModel(Base):
    """ORM model — maps to the 'register_entries' table.

    One table serves all registers; rows are scoped by register_type and
    financial_year, and the register-specific columns live in ``fields``.
    """

    __tablename__ = "register_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    register_type: Mapped[str] = mapped_column(String(40), nullable=False)
    financial_year: Mapped[str] = mapped_column(String(9), nullable=False)
    serial_no: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fields: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_register_entries_scope", "register_type", "financial_year", "serial_no"),
    )

    def __repr__(self) -> str:
        return (
            f"<RegisterEntryModel(id={self.id}, "
            f"type='{self.register_type}', year='{self.financial_year}')>"
        )
