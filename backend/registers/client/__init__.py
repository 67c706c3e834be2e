from .idle_timer import IdleState, IdleTimer
from .sync_agent import ConnectionState, SyncAgent, websocket_connector

__all__ = [
    "IdleState",
    "IdleTimer",
    "ConnectionState",
    "SyncAgent",
    "websocket_connector",
]
