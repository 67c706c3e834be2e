"""Unit tests for the RegisterService (authorization gate + change events)."""

import pytest

from registers.application.interfaces import RegisterRepository
from registers.application.schemas import RegisterEntryCreate, RegisterEntryUpdate
from registers.application.services import RegisterService
from registers.domain.entities import (
    ChangeEvent,
    RegisterEntry,
    RegisterType,
    Role,
    Room,
    Session,
)
from registers.domain.exceptions import (
    EntityNotFoundError,
    InvalidFinancialYearError,
    InvalidMoveError,
    PermissionDeniedError,
    StoreFailureError,
)

YEAR = "2024-2025"


class FakeRegisterRepository(RegisterRepository):
    """In-memory fake repository that counts every call made to it."""

    def __init__(self, fail_commit: bool = False):
        self._entries: dict[int, RegisterEntry] = {}
        self._next_id = 1
        self.fail_commit = fail_commit
        self.calls = 0
        self.commits = 0

    async def get_by_id(self, register_type, entry_id):
        self.calls += 1
        entry = self._entries.get(entry_id)
        if entry is None or entry.register_type != register_type:
            return None
        return entry

    async def list_for_year(self, register_type, financial_year):
        self.calls += 1
        rows = [
            e
            for e in self._entries.values()
            if e.register_type == register_type and e.financial_year == financial_year
        ]
        return sorted(rows, key=lambda e: (e.serial_no or 0, e.id))

    async def max_serial(self, register_type, financial_year):
        rows = await self.list_for_year(register_type, financial_year)
        return max((e.serial_no or 0 for e in rows), default=0)

    async def create(self, entry):
        self.calls += 1
        entry.id = self._next_id
        self._next_id += 1
        self._entries[entry.id] = entry
        return entry

    async def update(self, entry):
        self.calls += 1
        self._entries[entry.id] = entry
        return entry

    async def delete(self, register_type, entry_id):
        self.calls += 1
        return self._entries.pop(entry_id, None) is not None

    async def commit(self):
        self.calls += 1
        if self.fail_commit:
            raise StoreFailureError("commit", RuntimeError("disk full"))
        self.commits += 1


class RecordingBroadcaster:
    """Stands in for EventBroadcaster and records what was published."""

    def __init__(self):
        self.published: list[tuple[Room, ChangeEvent]] = []

    def publish(self, room, event):
        self.published.append((room, event))
        return 1


def _session(role: Role) -> Session:
    return Session(token=f"t-{role.value}", user_id=1, username=role.value, role=role)


ADMIN = _session(Role.ADMIN)
VIEWER = _session(Role.VIEWER)
GAMER = _session(Role.GAMER)


@pytest.fixture
def repository() -> FakeRegisterRepository:
    return FakeRegisterRepository()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def service(repository, broadcaster) -> RegisterService:
    return RegisterService(repository, broadcaster)


def _create(serial_no: int, year: str = YEAR, **fields) -> RegisterEntryCreate:
    return RegisterEntryCreate(financial_year=year, serial_no=serial_no, **fields)


@pytest.mark.asyncio
async def test_create_publishes_one_event_to_the_entry_room(service, broadcaster):
    entry = await service.create_entry(
        ADMIN, RegisterType.SUPPLY, _create(1, supply_order_no="SO/1", firm_name="Acme")
    )

    assert entry.id == 1
    assert entry.fields == {"supply_order_no": "SO/1", "firm_name": "Acme"}
    assert len(broadcaster.published) == 1
    room, event = broadcaster.published[0]
    assert room == Room(RegisterType.SUPPLY, YEAR)
    payload = event.to_payload()
    assert payload["type"] == "supply"
    assert payload["action"] == "create"
    assert payload["data"]["id"] == 1
    assert payload["data"]["firm_name"] == "Acme"


@pytest.mark.asyncio
async def test_every_register_type_broadcasts(service, broadcaster):
    for register_type in RegisterType:
        await service.create_entry(ADMIN, register_type, _create(1))
    types = [event.register_type for _, event in broadcaster.published]
    assert types == list(RegisterType)


@pytest.mark.asyncio
@pytest.mark.parametrize("actor", [VIEWER, GAMER])
async def test_denied_mutations_never_touch_the_store(actor, service, repository, broadcaster):
    with pytest.raises(PermissionDeniedError):
        await service.create_entry(actor, RegisterType.SUPPLY, _create(1))
    with pytest.raises(PermissionDeniedError):
        await service.update_entry(actor, RegisterType.SUPPLY, 1, RegisterEntryUpdate())
    with pytest.raises(PermissionDeniedError):
        await service.delete_entry(actor, RegisterType.SUPPLY, 1)
    with pytest.raises(PermissionDeniedError):
        await service.move_entry(actor, RegisterType.SUPPLY, 1, "up", YEAR)

    assert repository.calls == 0
    assert broadcaster.published == []


@pytest.mark.asyncio
async def test_viewer_can_read(service):
    await service.create_entry(ADMIN, RegisterType.BILL, _create(1))
    entries = await service.list_entries(VIEWER, RegisterType.BILL, YEAR)
    assert [e.serial_no for e in entries] == [1]


@pytest.mark.asyncio
async def test_gamer_cannot_read(service, repository):
    with pytest.raises(PermissionDeniedError):
        await service.list_entries(GAMER, RegisterType.BILL, YEAR)
    assert repository.calls == 0


@pytest.mark.asyncio
async def test_failed_commit_publishes_nothing(broadcaster):
    service = RegisterService(FakeRegisterRepository(fail_commit=True), broadcaster)
    with pytest.raises(StoreFailureError):
        await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(1))
    assert broadcaster.published == []


@pytest.mark.asyncio
async def test_update_replaces_fields_and_publishes_update(service, broadcaster):
    created = await service.create_entry(ADMIN, RegisterType.DEMAND, _create(1, remarks="old", qty=3))
    updated = await service.update_entry(
        ADMIN, RegisterType.DEMAND, created.id, RegisterEntryUpdate(remarks="new")
    )

    assert updated.fields == {"remarks": "new"}
    assert updated.serial_no == 1
    _, event = broadcaster.published[-1]
    assert event.action.value == "update"
    assert event.data["remarks"] == "new"


@pytest.mark.asyncio
async def test_update_moving_year_publishes_to_new_year_room(service, broadcaster):
    created = await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(1))
    await service.update_entry(
        ADMIN,
        RegisterType.SUPPLY,
        created.id,
        RegisterEntryUpdate(financial_year="2025-2026"),
    )
    room, _ = broadcaster.published[-1]
    assert room == Room(RegisterType.SUPPLY, "2025-2026")


@pytest.mark.asyncio
async def test_update_missing_entry(service, broadcaster):
    with pytest.raises(EntityNotFoundError):
        await service.update_entry(ADMIN, RegisterType.SUPPLY, 99, RegisterEntryUpdate())
    assert broadcaster.published == []


@pytest.mark.asyncio
async def test_delete_publishes_id_only(service, broadcaster):
    created = await service.create_entry(ADMIN, RegisterType.SANCTION_MISC, _create(4))
    await service.delete_entry(ADMIN, RegisterType.SANCTION_MISC, created.id)

    room, event = broadcaster.published[-1]
    assert room == Room(RegisterType.SANCTION_MISC, YEAR)
    assert event.action.value == "delete"
    assert event.data == {"id": created.id}
    with pytest.raises(EntityNotFoundError):
        await service.get_entry(ADMIN, RegisterType.SANCTION_MISC, created.id)


@pytest.mark.asyncio
async def test_entry_of_another_register_is_not_found(service):
    created = await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(1))
    with pytest.raises(EntityNotFoundError):
        await service.get_entry(ADMIN, RegisterType.DEMAND, created.id)


@pytest.mark.asyncio
async def test_move_swaps_serials_and_publishes_two_updates(service, broadcaster):
    first = await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(1))
    second = await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(2))
    broadcaster.published.clear()

    moved, neighbour = await service.move_entry(ADMIN, RegisterType.SUPPLY, second.id, "up", YEAR)

    assert (moved.id, moved.serial_no) == (second.id, 1)
    assert (neighbour.id, neighbour.serial_no) == (first.id, 2)
    assert [event.action.value for _, event in broadcaster.published] == ["update", "update"]
    assert {event.data["id"] for _, event in broadcaster.published} == {first.id, second.id}
    entries = await service.list_entries(ADMIN, RegisterType.SUPPLY, YEAR)
    assert [e.id for e in entries] == [second.id, first.id]


@pytest.mark.asyncio
async def test_move_past_the_edge_is_rejected(service, broadcaster):
    first = await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(1))
    broadcaster.published.clear()
    with pytest.raises(InvalidMoveError):
        await service.move_entry(ADMIN, RegisterType.SUPPLY, first.id, "up", YEAR)
    with pytest.raises(InvalidMoveError):
        await service.move_entry(ADMIN, RegisterType.SUPPLY, first.id, "down", YEAR)
    assert broadcaster.published == []


@pytest.mark.asyncio
async def test_list_sorted_by_field(service):
    await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(1, firm_name="zeta"))
    await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(2, firm_name="Alpha"))
    await service.create_entry(ADMIN, RegisterType.SUPPLY, _create(3))

    entries = await service.list_entries(ADMIN, RegisterType.SUPPLY, YEAR, sort="firm_name")
    assert [e.serial_no for e in entries] == [2, 1, 3]


@pytest.mark.asyncio
async def test_max_serial(service):
    assert await service.max_serial(VIEWER, RegisterType.BILL, YEAR) == 0
    await service.create_entry(ADMIN, RegisterType.BILL, _create(5))
    await service.create_entry(ADMIN, RegisterType.BILL, _create(2))
    assert await service.max_serial(VIEWER, RegisterType.BILL, YEAR) == 5


@pytest.mark.asyncio
async def test_list_rejects_malformed_year(service):
    with pytest.raises(InvalidFinancialYearError):
        await service.list_entries(ADMIN, RegisterType.BILL, "2024")
