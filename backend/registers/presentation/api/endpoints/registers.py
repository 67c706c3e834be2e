"""Register CRUD endpoints.

The six registers share one route shape, so their routers are built by
``build_register_router`` and differ only in prefix and register type.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from registers.application.schemas import (
    MaxSerialResponse,
    MoveRequest,
    RegisterEntryCreate,
    RegisterEntryUpdate,
)
from registers.application.services import RegisterService
from registers.domain.entities import RegisterType, Session
from registers.domain.exceptions import EntityNotFoundError, InvalidMoveError
from registers.infrastructure.dependencies import get_current_session, get_register_service


def build_register_router(register_type: RegisterType) -> APIRouter:
    """Build the CRUD router for one register, mounted at ``/<type path>``."""
    router = APIRouter(prefix=f"/{register_type.path}", tags=["Registers"])

    @router.get("", response_model=list[dict[str, Any]])
    async def list_entries(
        year: str = Query(..., examples=["2024-2025"]),
        sort: str | None = None,
        session: Session = Depends(get_current_session),
        service: RegisterService = Depends(get_register_service),
    ) -> list[dict[str, Any]]:
        """Entries of one financial year, ordered by serial number or by *sort*."""
        entries = await service.list_entries(session, register_type, year, sort=sort)
        return [e.to_payload() for e in entries]

    @router.get("/max-serial", response_model=MaxSerialResponse)
    async def max_serial(
        year: str = Query(...),
        session: Session = Depends(get_current_session),
        service: RegisterService = Depends(get_register_service),
    ) -> MaxSerialResponse:
        value = await service.max_serial(session, register_type, year)
        return MaxSerialResponse(maxSerialNo=value)

    @router.get("/{entry_id}", response_model=dict[str, Any])
    async def get_entry(
        entry_id: int,
        session: Session = Depends(get_current_session),
        service: RegisterService = Depends(get_register_service),
    ) -> dict[str, Any]:
        try:
            entry = await service.get_entry(session, register_type, entry_id)
        except EntityNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        return entry.to_payload()

    @router.post("", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
    async def create_entry(
        data: RegisterEntryCreate,
        session: Session = Depends(get_current_session),
        service: RegisterService = Depends(get_register_service),
    ) -> dict[str, Any]:
        entry = await service.create_entry(session, register_type, data)
        return entry.to_payload()

    @router.put("/{entry_id}", response_model=dict[str, Any])
    async def update_entry(
        entry_id: int,
        data: RegisterEntryUpdate,
        session: Session = Depends(get_current_session),
        service: RegisterService = Depends(get_register_service),
    ) -> dict[str, Any]:
        try:
            entry = await service.update_entry(session, register_type, entry_id, data)
        except EntityNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        return entry.to_payload()

    @router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entry(
        entry_id: int,
        session: Session = Depends(get_current_session),
        service: RegisterService = Depends(get_register_service),
    ) -> None:
        try:
            await service.delete_entry(session, register_type, entry_id)
        except EntityNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    @router.post("/move/{entry_id}", response_model=list[dict[str, Any]])
    async def move_entry(
        entry_id: int,
        data: MoveRequest,
        session: Session = Depends(get_current_session),
        service: RegisterService = Depends(get_register_service),
    ) -> list[dict[str, Any]]:
        """Swap an entry with its neighbour; returns both rows after the swap."""
        try:
            moved = await service.move_entry(
                session, register_type, entry_id, data.direction, data.financial_year
            )
        except InvalidMoveError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return [e.to_payload() for e in moved]

    return router
