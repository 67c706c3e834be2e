"""Concrete repository implementation for register entries backed by SQLAlchemy."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from registers.application.interfaces import RegisterRepository
from registers.domain.entities import RegisterEntry, RegisterType
from registers.domain.exceptions import StoreFailureError
from registers.infrastructure.database.models import RegisterEntryModel

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into the domain's StoreFailureError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Register store failure during %s", operation)
        raise StoreFailureError(operation, exc) from exc


class SQLAlchemyRegisterRepository(RegisterRepository):
    """Implements the RegisterRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: RegisterEntryModel) -> RegisterEntry:
        """Map ORM model → domain entity."""
        return RegisterEntry(
            id=model.id,
            register_type=RegisterType(model.register_type),
            financial_year=model.financial_year,
            serial_no=model.serial_no,
            fields=dict(model.fields or {}),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: RegisterEntry) -> RegisterEntryModel:
        """Map domain entity → ORM model (for creation)."""
        return RegisterEntryModel(
            register_type=entity.register_type.value,
            financial_year=entity.financial_year,
            serial_no=entity.serial_no,
            fields=entity.fields,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def _get_model(
        self, register_type: RegisterType, entry_id: int
    ) -> RegisterEntryModel | None:
        model = await self._session.get(RegisterEntryModel, entry_id)
        if model is None or model.register_type != register_type.value:
            return None
        return model

    async def get_by_id(self, register_type: RegisterType, entry_id: int) -> RegisterEntry | None:
        with _store_errors("get"):
            model = await self._get_model(register_type, entry_id)
        return self._to_entity(model) if model else None

    async def list_for_year(
        self, register_type: RegisterType, financial_year: str
    ) -> list[RegisterEntry]:
        stmt = (
            select(RegisterEntryModel)
            .where(RegisterEntryModel.register_type == register_type.value)
            .where(RegisterEntryModel.financial_year == financial_year)
            .order_by(RegisterEntryModel.serial_no, RegisterEntryModel.id)
        )
        with _store_errors("list"):
            result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def max_serial(self, register_type: RegisterType, financial_year: str) -> int:
        stmt = (
            select(func.max(RegisterEntryModel.serial_no))
            .where(RegisterEntryModel.register_type == register_type.value)
            .where(RegisterEntryModel.financial_year == financial_year)
        )
        with _store_errors("max_serial"):
            result = await self._session.execute(stmt)
        return result.scalar_one_or_none() or 0

    async def create(self, entry: RegisterEntry) -> RegisterEntry:
        model = self._to_model(entry)
        with _store_errors("create"):
            self._session.add(model)
            await self._session.flush()
        return self._to_entity(model)

    async def update(self, entry: RegisterEntry) -> RegisterEntry:
        with _store_errors("update"):
            model = await self._get_model(entry.register_type, entry.id)
            if model is None:
                raise ValueError(f"RegisterEntry {entry.id} not found in database")
            model.financial_year = entry.financial_year
            model.serial_no = entry.serial_no
            model.fields = dict(entry.fields)
            model.updated_at = entry.updated_at
            await self._session.flush()
        return self._to_entity(model)

    async def delete(self, register_type: RegisterType, entry_id: int) -> bool:
        with _store_errors("delete"):
            model = await self._get_model(register_type, entry_id)
            if model is None:
                return False
            await self._session.delete(model)
            await self._session.flush()
        return True

    async def commit(self) -> None:
        with _store_errors("commit"):
            await self._session.commit()
