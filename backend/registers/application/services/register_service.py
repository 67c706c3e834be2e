"""Application service (use case) for register entries — the Mutation Service.

Every entry point runs the authorization gate before touching the store, and
every successful write publishes its Change Event only after the repository
commit has returned.
"""

import logging
from typing import Any, Literal

from registers.application.interfaces import RegisterRepository
from registers.application.schemas.register_entry import RegisterEntryCreate, RegisterEntryUpdate
from registers.application.services.authorization import Operation, authorize
from registers.application.services.event_broadcaster import EventBroadcaster
from registers.domain.entities import (
    ChangeAction,
    ChangeEvent,
    RegisterEntry,
    RegisterType,
    Session,
    validate_financial_year,
)
from registers.domain.exceptions import EntityNotFoundError, InvalidMoveError

logger = logging.getLogger(__name__)

DEFAULT_SORT = "serial_no"


def _sort_key(value: Any) -> tuple:
    """Numbers first, then text, then blanks."""
    if value is None or value == "":
        return (2, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value).lower())


class RegisterService:
    """Orchestrates register reads and writes. Depends on the repository port (DI)."""

    def __init__(self, repository: RegisterRepository, broadcaster: EventBroadcaster):
        self._repository = repository
        self._broadcaster = broadcaster

    # ── Reads ────────────────────────────────────────────────────────

    async def list_entries(
        self,
        actor: Session,
        register_type: RegisterType,
        financial_year: str,
        sort: str | None = None,
    ) -> list[RegisterEntry]:
        authorize(actor.role, Operation.READ)
        validate_financial_year(financial_year)
        entries = await self._repository.list_for_year(register_type, financial_year)
        if sort and sort != DEFAULT_SORT:
            entries.sort(key=lambda e: _sort_key(e.fields.get(sort)))
        return entries

    async def get_entry(
        self, actor: Session, register_type: RegisterType, entry_id: int
    ) -> RegisterEntry:
        authorize(actor.role, Operation.READ)
        return await self._require(register_type, entry_id)

    async def max_serial(
        self, actor: Session, register_type: RegisterType, financial_year: str
    ) -> int:
        authorize(actor.role, Operation.READ)
        validate_financial_year(financial_year)
        return await self._repository.max_serial(register_type, financial_year)

    # ── Writes ───────────────────────────────────────────────────────

    async def create_entry(
        self, actor: Session, register_type: RegisterType, data: RegisterEntryCreate
    ) -> RegisterEntry:
        authorize(actor.role, Operation.CREATE)
        entry = RegisterEntry(
            register_type=register_type,
            financial_year=data.financial_year,
            serial_no=data.serial_no,
            fields=data.fields,
        )
        entry = await self._repository.create(entry)
        await self._repository.commit()

        self._emit(entry, ChangeAction.CREATE, entry.to_payload())
        return entry

    async def update_entry(
        self,
        actor: Session,
        register_type: RegisterType,
        entry_id: int,
        data: RegisterEntryUpdate,
    ) -> RegisterEntry:
        """Replace an entry's field document (PUT semantics)."""
        authorize(actor.role, Operation.UPDATE)
        entry = await self._require(register_type, entry_id)
        entry.update(
            fields=data.fields,
            serial_no=data.serial_no,
            financial_year=data.financial_year,
        )
        entry = await self._repository.update(entry)
        await self._repository.commit()

        self._emit(entry, ChangeAction.UPDATE, entry.to_payload())
        return entry

    async def delete_entry(
        self, actor: Session, register_type: RegisterType, entry_id: int
    ) -> None:
        authorize(actor.role, Operation.DELETE)
        # Read first: the year of the deleted row picks the room.
        entry = await self._require(register_type, entry_id)
        deleted = await self._repository.delete(register_type, entry_id)
        if not deleted:
            raise EntityNotFoundError(register_type.value, entry_id)
        await self._repository.commit()

        self._emit(entry, ChangeAction.DELETE, {"id": entry_id})

    async def move_entry(
        self,
        actor: Session,
        register_type: RegisterType,
        entry_id: int,
        direction: Literal["up", "down"],
        financial_year: str,
    ) -> tuple[RegisterEntry, RegisterEntry]:
        """Swap an entry's serial number with its neighbour in the same year.

        Publishes one ``update`` event per swapped entry.
        """
        authorize(actor.role, Operation.REORDER)
        validate_financial_year(financial_year)
        rows = await self._repository.list_for_year(register_type, financial_year)

        index = next((i for i, row in enumerate(rows) if row.id == entry_id), -1)
        if (
            index == -1
            or (direction == "up" and index == 0)
            or (direction == "down" and index == len(rows) - 1)
        ):
            raise InvalidMoveError(entry_id, direction)

        current = rows[index]
        neighbour = rows[index - 1] if direction == "up" else rows[index + 1]
        current_serial, neighbour_serial = current.serial_no, neighbour.serial_no
        current.update(serial_no=neighbour_serial)
        neighbour.update(serial_no=current_serial)

        current = await self._repository.update(current)
        neighbour = await self._repository.update(neighbour)
        await self._repository.commit()

        self._emit(current, ChangeAction.UPDATE, current.to_payload())
        self._emit(neighbour, ChangeAction.UPDATE, neighbour.to_payload())
        return current, neighbour

    # ── Helpers ──────────────────────────────────────────────────────

    async def _require(self, register_type: RegisterType, entry_id: int) -> RegisterEntry:
        entry = await self._repository.get_by_id(register_type, entry_id)
        if entry is None:
            raise EntityNotFoundError(register_type.value, entry_id)
        return entry

    def _emit(self, entry: RegisterEntry, action: ChangeAction, data: dict[str, Any]) -> None:
        event = ChangeEvent(
            register_type=entry.register_type,
            action=action,
            data=data,
            financial_year=entry.financial_year,
        )
        self._broadcaster.publish(event.room, event)
