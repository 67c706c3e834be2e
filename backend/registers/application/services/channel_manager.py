"""Channel Manager — in-process registry of live client channels and their outbound queues."""

import asyncio
import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from registers.application.services.room_registry import RoomRegistry
from registers.domain.entities import Role, Room
from registers.infrastructure.logging.colored_logger import RealtimeLogger, RealtimeStage

rlog = RealtimeLogger(__name__)


@dataclass
class Channel:
    """One live connection from a single client tab."""

    queue: asyncio.Queue[tuple[Room | None, dict[str, Any]] | None]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    session_id: str | None = None
    username: str | None = None
    role: Role | None = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    alive: bool = True


class ChannelManager:
    """Manages channel connections. Each channel gets its own asyncio.Queue.

    Delivery enqueues without waiting; a per-channel writer drains the queue
    onto the wire via ``outbound``. Disconnecting a channel removes it from
    every room in the RoomRegistry in the same step.

    Room-scoped messages are re-checked against the registry when dequeued,
    so nothing from a room is written after the channel has left it.
    """

    def __init__(self, registry: RoomRegistry, queue_size: int = 100) -> None:
        self._registry = registry
        self._queue_size = queue_size
        self._channels: dict[str, Channel] = {}

    def connect(
        self,
        session_id: str | None = None,
        username: str | None = None,
        role: Role | None = None,
    ) -> Channel:
        """Register a new channel after its handshake was accepted."""
        channel = Channel(
            queue=asyncio.Queue(maxsize=self._queue_size),
            session_id=session_id,
            username=username,
            role=role,
        )
        self._channels[channel.id] = channel
        rlog.event(RealtimeStage.CONNECT, "Channel connected", channel=channel.id, user=username)
        return channel

    def disconnect(self, channel_id: str) -> None:
        """Forget a channel and drop it from all rooms. Idempotent."""
        channel = self._channels.pop(channel_id, None)
        rooms = self._registry.drop_channel(channel_id)
        if channel is None:
            return
        channel.alive = False
        try:
            channel.queue.put_nowait(None)
        except asyncio.QueueFull:
            pass  # writer is stopped by the alive flag on its next wake-up
        rlog.event(
            RealtimeStage.DISCONNECT,
            "Channel disconnected",
            channel=channel_id,
            rooms=len(rooms),
        )

    def deliver(
        self, channel_id: str, message: dict[str, Any], room: Room | None = None
    ) -> bool:
        """Enqueue one message for a channel. Never suspends.

        Returns False when the channel is gone or could not keep up; a channel
        whose queue is full is disconnected.
        """
        channel = self._channels.get(channel_id)
        if channel is None or not channel.alive:
            return False
        try:
            channel.queue.put_nowait((room, message))
        except asyncio.QueueFull:
            rlog.warning(RealtimeStage.DISCONNECT, "Channel queue full — disconnecting", channel=channel_id)
            self.disconnect(channel_id)
            return False
        return True

    async def outbound(self, channel: Channel) -> AsyncGenerator[dict[str, Any], None]:
        """Yield queued messages for *channel* until it is disconnected."""
        while channel.alive:
            item = await channel.queue.get()
            if item is None or not channel.alive:
                break
            room, message = item
            if room is not None and room not in self._registry.rooms_of(channel.id):
                rlog.detail("Skipped message for a room already left", channel=channel.id, room=room)
                continue
            yield message

    async def shutdown(self) -> None:
        """Disconnect all connected channels."""
        for channel_id in list(self._channels):
            self.disconnect(channel_id)

    @property
    def channel_count(self) -> int:
        return len(self._channels)
