"""Client Sync Agent — keeps one tab's register view in step with the server.

The agent logs in over HTTP, holds one realtime channel, and is a member of
exactly one room: the (register type, financial year) currently displayed.
Every relevant ``data-change`` triggers a full re-fetch of the view over HTTP;
events are never applied incrementally.

Connection states::

    DISCONNECTED -> CONNECTING -> CONNECTED -> JOINED
         ^______________________________________|   (channel lost)

There is no automatic reconnect. After a channel loss ``connect()`` must be
called again; it re-joins the displayed room and the ``room-joined``
acknowledgement triggers a full reload, reconciling anything missed.

While logged in, a background task polls the idle timer: the host is warned
once the warning threshold passes and the agent logs itself out on expiry.
"""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Protocol
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx
import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from registers.client.idle_timer import IdleState, IdleTimer
from registers.domain.entities import RegisterType, Room
from registers.domain.exceptions import RegisterApiError

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    JOINED = "joined"


class RealtimeChannel(Protocol):
    """The slice of a websockets client connection the agent relies on."""

    async def send(self, message: str) -> None: ...

    async def recv(self) -> str: ...

    async def close(self) -> None: ...


ChannelConnector = Callable[[str, dict[str, str]], Awaitable[RealtimeChannel]]
RefreshCallback = Callable[[Room, list[dict[str, Any]]], None]


async def websocket_connector(url: str, headers: dict[str, str]) -> RealtimeChannel:
    """Open a realtime channel with the ``websockets`` client."""
    return await websockets.connect(url, additional_headers=headers)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class SyncAgent:
    """Per-tab synchronization agent.

    Args:
        base_url: Server root, e.g. ``http://localhost:5000``.
        http_client: Optional shared ``httpx.AsyncClient`` (keeps the session cookie).
        connector: Coroutine opening the realtime channel; defaults to ``websockets``.
        idle_timer: Optional IdleTimer (inject one with a fake clock in tests).
        on_refresh: Called with the view and its entries after every reload.
        on_idle_warning: Called once when the idle warning threshold is crossed.
        idle_poll_interval: Seconds between idle checks while logged in.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        connector: ChannelConnector | None = None,
        idle_timer: IdleTimer | None = None,
        on_refresh: RefreshCallback | None = None,
        on_idle_warning: Callable[[], None] | None = None,
        clock_ms: Callable[[], int] = _epoch_ms,
        idle_poll_interval: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None
        self._connector = connector or websocket_connector
        self._on_refresh = on_refresh
        self._on_idle_warning = on_idle_warning
        self._clock_ms = clock_ms
        self._idle_poll_interval = idle_poll_interval
        self.idle = idle_timer or IdleTimer()

        self.state = ConnectionState.DISCONNECTED
        self.user: dict[str, Any] | None = None
        self.view: Room | None = None
        self.entries: list[dict[str, Any]] = []

        self._username: str | None = None
        self._channel: RealtimeChannel | None = None
        self._listener: asyncio.Task | None = None
        self._idle_watch: asyncio.Task | None = None
        self._warned = False

    # ── Session ──────────────────────────────────────────────────────

    async def login(
        self,
        username: str,
        password: str,
        register_type: RegisterType,
        financial_year: str,
    ) -> dict[str, Any]:
        """Authenticate, open the channel and show the given view."""
        data = await self._request(
            "POST", "/api/login", json={"username": username, "password": password}
        )
        self.user = data["user"]
        self._username = username
        self.view = Room(register_type, financial_year)
        self.idle.start()
        self._warned = False
        self._start_idle_watch()

        if not await self.connect():
            await self.reload()
        return self.user

    async def extend_session(self) -> None:
        await self._request("POST", "/api/extend-session")
        self.record_activity()

    def record_activity(self) -> None:
        self.idle.record_activity()
        self._warned = False

    async def check_idle(self) -> IdleState:
        """Poll the idle timer; warns once, then logs out on expiry."""
        state = self.idle.poll()
        if state is IdleState.EXPIRED:
            logger.info("Idle limit reached, logging out '%s'", self._username)
            await self.logout()
        elif state is IdleState.WARNING and not self._warned:
            self._warned = True
            if self._on_idle_warning is not None:
                self._on_idle_warning()
        return state

    async def logout(self) -> None:
        """Stop the idle timer, close the channel and end the server session."""
        self.idle.stop()
        self._stop_idle_watch()
        await self.disconnect()
        try:
            await self._request("POST", "/api/logout")
        finally:
            self.user = None
            self._username = None
            self.entries = []

    # ── Channel ──────────────────────────────────────────────────────

    async def connect(self) -> bool:
        """Open the realtime channel and join the displayed room.

        Returns False, leaving the agent DISCONNECTED, if the channel could
        not be opened.
        """
        if self._channel is not None:
            return True
        if self._username is None:
            raise RuntimeError("login() must succeed before connect()")

        self.state = ConnectionState.CONNECTING
        try:
            channel = await self._connector(self._channel_url(), self._handshake_headers())
        except (OSError, WebSocketException) as e:
            logger.warning("Could not open realtime channel: %s", e)
            self.state = ConnectionState.DISCONNECTED
            return False

        self._channel = channel
        self.state = ConnectionState.CONNECTED
        self._listener = asyncio.create_task(self._listen(channel))
        if self.view is not None:
            await self._send("join-room", self.view)
        return True

    async def disconnect(self) -> None:
        channel, self._channel = self._channel, None
        listener, self._listener = self._listener, None
        self.state = ConnectionState.DISCONNECTED
        if channel is not None:
            await channel.close()
        if listener is not None:
            listener.cancel()
            try:
                await listener
            except asyncio.CancelledError:
                pass

    async def aclose(self) -> None:
        self.idle.stop()
        self._stop_idle_watch()
        await self.disconnect()
        if self._owns_http:
            await self._http.aclose()

    # ── View ─────────────────────────────────────────────────────────

    async def switch_view(self, register_type: RegisterType, financial_year: str) -> None:
        """Show another register or year: leave the old room, then join the new one.

        While connected the reload follows the ``room-joined`` acknowledgement,
        so the data is read only once the new membership is in place. While
        disconnected only the displayed view is updated and reloaded.
        """
        self.record_activity()
        previous, self.view = self.view, Room(register_type, financial_year)

        if self._channel is None:
            await self.reload()
            return

        try:
            if previous is not None and previous != self.view:
                await self._send("leave-room", previous)
                self.state = ConnectionState.CONNECTED
            await self._send("join-room", self.view)
        except ConnectionClosed:
            self._channel_lost(self._channel)
            await self.reload()

    async def reload(self) -> list[dict[str, Any]]:
        """Full re-fetch of the displayed view."""
        if self.view is None:
            return []
        view = self.view
        entries = await self._request(
            "GET",
            f"/api/{view.register_type.path}",
            params={"year": view.financial_year},
        )
        self.entries = entries
        if self._on_refresh is not None:
            self._on_refresh(view, entries)
        return entries

    async def handle_message(self, raw: str) -> None:
        """React to one server frame. Unknown frames are ignored."""
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed frame: %r", raw)
            return
        if not isinstance(frame, dict):
            return

        event = frame.get("event")
        if event == "room-joined":
            if self.view is not None and frame.get("room") == self.view.room_id:
                self.state = ConnectionState.JOINED
                await self.reload()
        elif event == "data-change":
            data = frame.get("data") or {}
            if self.view is not None and data.get("type") == self.view.register_type.value:
                logger.debug("%s %s, reloading", data.get("type"), data.get("action"))
                await self.reload()
        elif event == "error":
            logger.warning("Server rejected a frame: %s", frame.get("message"))

    # ── Internals ────────────────────────────────────────────────────

    async def _listen(self, channel: RealtimeChannel) -> None:
        try:
            while True:
                raw = await channel.recv()
                try:
                    await self.handle_message(raw)
                except (RegisterApiError, httpx.HTTPError) as e:
                    logger.warning("Reload after server event failed: %s", e)
        except ConnectionClosed:
            logger.info("Realtime channel closed")
        finally:
            self._channel_lost(channel)

    def _start_idle_watch(self) -> None:
        self._stop_idle_watch()
        self._idle_watch = asyncio.create_task(self._watch_idle())

    def _stop_idle_watch(self) -> None:
        task, self._idle_watch = self._idle_watch, None
        # An idle logout runs inside the watch task itself.
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _watch_idle(self) -> None:
        while self.idle.running:
            await asyncio.sleep(self._idle_poll_interval)
            try:
                state = await self.check_idle()
            except (RegisterApiError, httpx.HTTPError) as e:
                logger.warning("Idle logout did not reach the server: %s", e)
                return
            if state is IdleState.EXPIRED:
                return

    def _channel_lost(self, channel: RealtimeChannel | None) -> None:
        if channel is not None and self._channel is channel:
            self._channel = None
            self._listener = None
            self.state = ConnectionState.DISCONNECTED

    async def _send(self, event: str, room: Room) -> None:
        await self._channel.send(json.dumps({"event": event, "room": room.room_id}))

    def _channel_url(self) -> str:
        parts = urlsplit(self._base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        query = urlencode({"session_id": f"session-{self._username}-{self._clock_ms()}"})
        return urlunsplit((scheme, parts.netloc, "/ws", query, ""))

    def _handshake_headers(self) -> dict[str, str]:
        cookie = "; ".join(f"{c.name}={c.value}" for c in self._http.cookies.jar)
        return {"Cookie": cookie} if cookie else {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, f"{self._base_url}{path}", **kwargs)
        if response.status_code >= 400:
            self._raise_api_error(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _raise_api_error(response: httpx.Response) -> None:
        try:
            data = response.json()
            message = data.get("message") or data.get("detail") or response.text
        except ValueError:
            message = response.text
        raise RegisterApiError(status_code=response.status_code, message=str(message))
