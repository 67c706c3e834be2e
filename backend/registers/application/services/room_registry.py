"""Room Registry — process-owned map of broadcast rooms to subscribed channels."""

import logging

from registers.domain.entities import Room

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Tracks which channels are subscribed to which (register, year) rooms.

    Keeps a forward index (room -> channel ids) and a reverse index
    (channel id -> rooms) so a disconnecting channel can be removed from every
    room at once. Every method is synchronous: none of them contain a
    suspension point, so on a single event loop a broadcast always sees either
    the state before or the state after a join, leave or drop.

    Rooms exist only while they have members.
    """

    def __init__(self) -> None:
        self._members: dict[Room, set[str]] = {}
        self._rooms_by_channel: dict[str, set[Room]] = {}

    def join(self, channel_id: str, room: Room) -> bool:
        """Subscribe a channel to a room. Returns False if already a member."""
        members = self._members.setdefault(room, set())
        if channel_id in members:
            return False
        members.add(channel_id)
        self._rooms_by_channel.setdefault(channel_id, set()).add(room)
        logger.debug("Channel %s joined %s (%d members)", channel_id, room, len(members))
        return True

    def leave(self, channel_id: str, room: Room) -> bool:
        """Unsubscribe a channel from a room. Returns False if it was not a member."""
        members = self._members.get(room)
        if members is None or channel_id not in members:
            return False
        members.discard(channel_id)
        if not members:
            del self._members[room]

        rooms = self._rooms_by_channel.get(channel_id)
        if rooms is not None:
            rooms.discard(room)
            if not rooms:
                del self._rooms_by_channel[channel_id]
        logger.debug("Channel %s left %s", channel_id, room)
        return True

    def drop_channel(self, channel_id: str) -> frozenset[Room]:
        """Remove a channel from every room it joined. Returns those rooms."""
        rooms = self._rooms_by_channel.pop(channel_id, set())
        for room in rooms:
            members = self._members.get(room)
            if members is None:
                continue
            members.discard(channel_id)
            if not members:
                del self._members[room]
        if rooms:
            logger.debug("Channel %s dropped from %d room(s)", channel_id, len(rooms))
        return frozenset(rooms)

    def members_of(self, room: Room) -> frozenset[str]:
        """Snapshot of the channels subscribed to *room*."""
        return frozenset(self._members.get(room, ()))

    def rooms_of(self, channel_id: str) -> frozenset[Room]:
        return frozenset(self._rooms_by_channel.get(channel_id, ()))

    @property
    def room_count(self) -> int:
        return len(self._members)
