"""Realtime channel endpoint — one WebSocket per client tab.

Clients send ``join-room`` / ``leave-room`` frames and receive ``data-change``
frames for the rooms they are in. Outbound frames go through the channel's
queue, drained by a writer task, so acknowledgements and events reach the
client in the order they were enqueued.
"""

import asyncio
import json
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from registers.application.services import Channel, ChannelManager, RoomRegistry
from registers.application.services.authorization import Operation, permit
from registers.config import get_settings
from registers.domain.entities import Room, Session
from registers.domain.exceptions import ChannelAuthRejectedError, InvalidRoomError
from registers.infrastructure.logging.colored_logger import RealtimeLogger, RealtimeStage

rlog = RealtimeLogger(__name__)

router = APIRouter(tags=["Realtime"])

JOIN_ROOM = "join-room"
LEAVE_ROOM = "leave-room"


def _check_handshake(websocket: WebSocket, session_id: str | None) -> Session | None:
    """Validate the handshake and return the session behind it, if any.

    A live session cookie is picked up whenever one is sent, so the role
    policy applies to room joins. Raises ChannelAuthRejectedError when the
    token is missing, or when ``realtime_require_session`` is set and there
    is no live session.
    """
    if not session_id:
        raise ChannelAuthRejectedError("Missing session_id")

    settings = get_settings()
    token = websocket.cookies.get(settings.session_cookie_name)
    session = websocket.app.state.session_store.peek(token)
    if session is None and settings.realtime_require_session:
        raise ChannelAuthRejectedError("No live session for channel")
    return session


async def _write_outbound(websocket: WebSocket, manager: ChannelManager, channel: Channel) -> None:
    try:
        async for message in manager.outbound(channel):
            await websocket.send_json(message)
        # Dropped by the manager (full queue or shutdown): end the connection too.
        await websocket.close(code=status.WS_1001_GOING_AWAY)
    except (WebSocketDisconnect, RuntimeError) as e:
        rlog.detail("Writer stopped", channel=channel.id, reason=repr(e))


def _handle_frame(
    raw: str,
    channel: Channel,
    manager: ChannelManager,
    registry: RoomRegistry,
) -> None:
    """Apply one client frame. Replies are enqueued, never sent directly."""
    try:
        frame: Any = json.loads(raw)
    except json.JSONDecodeError:
        manager.deliver(channel.id, {"event": "error", "message": "Malformed message"})
        return

    if not isinstance(frame, dict) or frame.get("event") not in (JOIN_ROOM, LEAVE_ROOM):
        manager.deliver(channel.id, {"event": "error", "message": "Unknown event"})
        return

    try:
        room = Room.parse(str(frame.get("room", "")))
    except InvalidRoomError as e:
        rlog.warning(RealtimeStage.REJECT, str(e), channel=channel.id)
        manager.deliver(channel.id, {"event": "error", "message": str(e)})
        return

    if frame["event"] == JOIN_ROOM:
        if channel.role is not None and not permit(channel.role, Operation.READ):
            rlog.warning(RealtimeStage.REJECT, "Join denied", channel=channel.id, role=channel.role.value)
            manager.deliver(channel.id, {"event": "error", "message": "Permission denied"})
            return
        registry.join(channel.id, room)
        rlog.event(RealtimeStage.JOIN, "Channel joined room", channel=channel.id, room=room)
        manager.deliver(channel.id, {"event": "room-joined", "room": room.room_id})
    else:
        registry.leave(channel.id, room)
        rlog.event(RealtimeStage.LEAVE, "Channel left room", channel=channel.id, room=room)
        manager.deliver(channel.id, {"event": "room-left", "room": room.room_id})


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket, session_id: str | None = None) -> None:
    """Serve one realtime channel until the client goes away."""
    try:
        session = _check_handshake(websocket, session_id)
    except ChannelAuthRejectedError as e:
        rlog.warning(RealtimeStage.REJECT, "Handshake rejected", reason=str(e))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager: ChannelManager = websocket.app.state.channel_manager
    registry: RoomRegistry = websocket.app.state.room_registry

    await websocket.accept()
    channel = manager.connect(
        session_id=session_id,
        username=session.username if session else None,
        role=session.role if session else None,
    )
    writer = asyncio.create_task(_write_outbound(websocket, manager, channel))

    try:
        while channel.alive:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                manager.deliver(channel.id, {"event": "error", "message": "Malformed message"})
                continue
            _handle_frame(raw, channel, manager, registry)
    finally:
        manager.disconnect(channel.id)
        writer.cancel()
