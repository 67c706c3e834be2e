from .authorization import Operation, authorize, permit
from .session_store import SessionStore
from .auth_service import AuthService
from .room_registry import RoomRegistry
from .channel_manager import Channel, ChannelManager
from .event_broadcaster import EventBroadcaster
from .register_service import RegisterService

__all__ = [
    "Operation",
    "authorize",
    "permit",
    "SessionStore",
    "AuthService",
    "RoomRegistry",
    "Channel",
    "ChannelManager",
    "EventBroadcaster",
    "RegisterService",
]
