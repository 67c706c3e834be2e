"""Pydantic DTOs (Data Transfer Objects) for register entries.

Register rows are sent flat, as the browser forms post them: the known keys
(``serial_no``, ``financial_year``) sit next to the register-specific columns,
which are collected into ``fields``.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from registers.domain.entities import validate_financial_year

_RESERVED = frozenset({"id", "serial_no", "financial_year"})


def _validated_year(value: str | None) -> str | None:
    # InvalidFinancialYearError is a ValueError, which pydantic reports as a 422
    if value is None:
        return None
    return validate_financial_year(value)


class _FlatEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    @property
    def fields(self) -> dict[str, Any]:
        """Register-specific columns posted alongside the known keys."""
        return {k: v for k, v in (self.model_extra or {}).items() if k not in _RESERVED}


class RegisterEntryCreate(_FlatEntry):
    """Schema for creating a register entry."""

    financial_year: str = Field(..., examples=["2024-2025"])
    serial_no: int | None = Field(None, ge=0)

    @field_validator("financial_year")
    @classmethod
    def _check_year(cls, value: str) -> str:
        return _validated_year(value)


class RegisterEntryUpdate(_FlatEntry):
    """Schema for replacing a register entry's columns."""

    financial_year: str | None = None
    serial_no: int | None = Field(None, ge=0)

    @field_validator("financial_year")
    @classmethod
    def _check_year(cls, value: str | None) -> str | None:
        return _validated_year(value)


class MoveRequest(BaseModel):
    """Schema for moving an entry one position up or down."""

    direction: Literal["up", "down"]
    financial_year: str

    @field_validator("financial_year")
    @classmethod
    def _check_year(cls, value: str) -> str:
        return _validated_year(value)


class MaxSerialResponse(BaseModel):
    maxSerialNo: int
