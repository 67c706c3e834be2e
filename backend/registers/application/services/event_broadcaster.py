"""Event Broadcaster — fans committed Change Events out to a room's channels."""

from registers.application.services.channel_manager import ChannelManager
from registers.application.services.room_registry import RoomRegistry
from registers.domain.entities import ChangeEvent, Room
from registers.infrastructure.logging.colored_logger import RealtimeLogger, RealtimeStage

rlog = RealtimeLogger(__name__)

DATA_CHANGE = "data-change"


class EventBroadcaster:
    """Publishes ``data-change`` messages to every member of a room.

    Delivery is best effort: messages are enqueued on each member channel
    without waiting, with no acknowledgement, retry or replay. The publishing
    client is a member too and receives its own event. Publishing never
    suspends, so within one room delivery order equals publish order.
    """

    def __init__(self, registry: RoomRegistry, channels: ChannelManager) -> None:
        self._registry = registry
        self._channels = channels

    def publish(self, room: Room, event: ChangeEvent) -> int:
        """Push *event* to the members of *room*. Returns how many were enqueued."""
        members = self._registry.members_of(room)
        message = {"event": DATA_CHANGE, "data": event.to_payload()}

        delivered = 0
        for channel_id in members:
            if self._channels.deliver(channel_id, message, room=room):
                delivered += 1

        rlog.event(
            RealtimeStage.PUBLISH,
            f"{event.register_type.value} {event.action.value}",
            room=room.room_id,
            members=len(members),
            delivered=delivered,
        )
        return delivered

