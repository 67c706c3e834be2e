"""Unit tests for the client SyncAgent."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from websockets.exceptions import ConnectionClosed

from registers.client import ConnectionState, IdleState, IdleTimer, SyncAgent
from registers.domain.entities import RegisterType
from registers.domain.exceptions import RegisterApiError

BASE_URL = "http://testserver"
NOW_MS = 1_700_000_000_000


# ── Helpers ──


class FakeServer:
    """MockTransport handler imitating the registers API."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str]] = []
        self.list_calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        if path == "/api/login":
            body = json.loads(request.content)
            if body["password"] != "admin123":
                return httpx.Response(401, json={"detail": "Invalid credentials"})
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "message": "Login successful",
                    "user": {"username": body["username"], "role": "admin"},
                },
                headers={"set-cookie": "registers_session=tok123; Path=/; HttpOnly"},
            )
        if path in ("/api/logout", "/api/extend-session"):
            return httpx.Response(200, json={"success": True, "message": "ok"})
        self.list_calls += 1
        return httpx.Response(
            200, json=[{"id": self.list_calls, "financial_year": request.url.params["year"]}]
        )

    @property
    def list_paths(self) -> list[str]:
        return [p for m, p in self.requests if m == "GET"]


class FakeChannel:
    """In-memory realtime channel that acknowledges room frames like the server."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.closed = False
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()

    async def send(self, message: str) -> None:
        frame = json.loads(message)
        self.sent.append(frame)
        ack = "room-joined" if frame["event"] == "join-room" else "room-left"
        self._inbox.put_nowait(json.dumps({"event": ack, "room": frame["room"]}))

    async def recv(self) -> str:
        item = await self._inbox.get()
        if item is None:
            raise ConnectionClosed(None, None)
        return item

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(None)

    def push(self, frame: dict) -> None:
        self._inbox.put_nowait(json.dumps(frame))

    def drop(self) -> None:
        self._inbox.put_nowait(None)


class FakeConnector:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.channels: list[FakeChannel] = []
        self.fail = False

    async def __call__(self, url: str, headers: dict) -> FakeChannel:
        self.calls.append((url, headers))
        if self.fail:
            raise OSError("connection refused")
        channel = FakeChannel()
        self.channels.append(channel)
        return channel


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 4, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


async def wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


# ── Fixtures ──


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def warnings() -> list[str]:
    return []


@pytest_asyncio.fixture
async def agent(server, connector, clock, warnings):
    http = httpx.AsyncClient(transport=httpx.MockTransport(server.handler))
    agent = SyncAgent(
        BASE_URL,
        http_client=http,
        connector=connector,
        idle_timer=IdleTimer(clock=clock),
        on_idle_warning=lambda: warnings.append("warn"),
        clock_ms=lambda: NOW_MS,
    )
    yield agent
    await agent.aclose()
    await http.aclose()


async def _login(agent: SyncAgent, server: FakeServer) -> None:
    await agent.login("admin", "admin123", RegisterType.SUPPLY, "2024-2025")
    await wait_until(lambda: agent.state is ConnectionState.JOINED and server.list_calls == 1)


# ── Tests ──


@pytest.mark.asyncio
async def test_login_opens_channel_joins_room_and_loads(agent, server, connector):
    user = await agent.login("admin", "admin123", RegisterType.SUPPLY, "2024-2025")
    assert user == {"username": "admin", "role": "admin"}

    url, headers = connector.calls[0]
    assert url == f"ws://testserver/ws?session_id=session-admin-{NOW_MS}"
    assert headers == {"Cookie": "registers_session=tok123"}
    assert connector.channels[0].sent == [{"event": "join-room", "room": "supply-2024-2025"}]

    await wait_until(lambda: agent.state is ConnectionState.JOINED and server.list_calls == 1)
    assert server.list_paths == ["/api/supply-orders"]
    assert agent.entries == [{"id": 1, "financial_year": "2024-2025"}]


@pytest.mark.asyncio
async def test_matching_data_change_triggers_full_reload(agent, server, connector):
    await _login(agent, server)
    channel = connector.channels[0]

    channel.push({"event": "data-change", "data": {"type": "demand", "action": "create"}})
    channel.push({"event": "data-change", "data": {"type": "supply", "action": "update"}})
    await wait_until(lambda: server.list_calls == 2)

    await asyncio.sleep(0.05)
    assert server.list_calls == 2
    assert agent.entries == [{"id": 2, "financial_year": "2024-2025"}]


@pytest.mark.asyncio
async def test_unknown_frames_are_ignored(agent, server, connector):
    await _login(agent, server)
    await agent.handle_message("not json")
    await agent.handle_message(json.dumps({"event": "something-else"}))
    await agent.handle_message(json.dumps({"event": "room-joined", "room": "bill-2024-2025"}))
    assert server.list_calls == 1


@pytest.mark.asyncio
async def test_switch_view_leaves_before_joining(agent, server, connector):
    await _login(agent, server)
    channel = connector.channels[0]

    await agent.switch_view(RegisterType.DEMAND, "2025-2026")

    assert channel.sent[-2:] == [
        {"event": "leave-room", "room": "supply-2024-2025"},
        {"event": "join-room", "room": "demand-2025-2026"},
    ]
    await wait_until(lambda: server.list_calls == 2)
    assert server.list_paths[-1] == "/api/demand-orders"
    assert agent.state is ConnectionState.JOINED


@pytest.mark.asyncio
async def test_channel_loss_does_not_reconnect(agent, server, connector):
    await _login(agent, server)
    first = connector.channels[0]

    first.drop()
    await wait_until(lambda: agent.state is ConnectionState.DISCONNECTED)

    # Navigation while disconnected only refreshes the view over HTTP
    await agent.switch_view(RegisterType.BILL, "2025-2026")
    assert server.list_paths[-1] == "/api/bill-orders"
    assert len(connector.channels) == 1
    assert first.sent == [{"event": "join-room", "room": "supply-2024-2025"}]

    # Explicit reconnect rejoins the displayed room and reconciles
    calls_before = server.list_calls
    assert await agent.connect() is True
    second = connector.channels[1]
    assert second.sent == [{"event": "join-room", "room": "bill-2025-2026"}]
    await wait_until(lambda: server.list_calls == calls_before + 1)
    assert agent.state is ConnectionState.JOINED


@pytest.mark.asyncio
async def test_login_without_channel_still_loads(agent, server, connector):
    connector.fail = True
    await agent.login("admin", "admin123", RegisterType.SUPPLY, "2024-2025")
    assert agent.state is ConnectionState.DISCONNECTED
    assert server.list_calls == 1


@pytest.mark.asyncio
async def test_login_with_bad_credentials(agent, connector):
    with pytest.raises(RegisterApiError) as exc_info:
        await agent.login("admin", "nope", RegisterType.SUPPLY, "2024-2025")
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid credentials"
    assert connector.calls == []


@pytest.mark.asyncio
async def test_idle_warning_then_forced_logout(agent, server, connector, clock, warnings):
    await _login(agent, server)

    clock.advance(minutes=25)
    assert await agent.check_idle() is IdleState.WARNING
    assert await agent.check_idle() is IdleState.WARNING
    assert warnings == ["warn"]

    await agent.extend_session()
    assert ("POST", "/api/extend-session") in server.requests
    assert await agent.check_idle() is IdleState.ACTIVE

    clock.advance(minutes=30)
    assert await agent.check_idle() is IdleState.EXPIRED
    assert ("POST", "/api/logout") in server.requests
    assert connector.channels[0].closed is True
    assert agent.state is ConnectionState.DISCONNECTED
    assert agent.user is None


@pytest.mark.asyncio
async def test_logout_closes_channel(agent, server, connector):
    await _login(agent, server)
    await agent.logout()
    assert connector.channels[0].closed is True
    assert server.requests[-1] == ("POST", "/api/logout")
    assert agent.state is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_idle_watch_warns_then_logs_out_without_host_polling(server, connector, clock):
    warned: list[str] = []
    http = httpx.AsyncClient(transport=httpx.MockTransport(server.handler))
    agent = SyncAgent(
        BASE_URL,
        http_client=http,
        connector=connector,
        idle_timer=IdleTimer(clock=clock),
        on_idle_warning=lambda: warned.append("warn"),
        clock_ms=lambda: NOW_MS,
        idle_poll_interval=0.01,
    )
    try:
        await _login(agent, server)

        clock.advance(minutes=26)
        await wait_until(lambda: warned == ["warn"])
        assert agent.user is not None

        clock.advance(minutes=5)
        await wait_until(lambda: agent.user is None)
        assert ("POST", "/api/logout") in server.requests
        assert connector.channels[0].closed is True
        assert agent.state is ConnectionState.DISCONNECTED
        assert agent.idle.running is False
    finally:
        await agent.aclose()
        await http.aclose()
