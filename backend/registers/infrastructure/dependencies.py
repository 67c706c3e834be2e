"""FastAPI dependency injection — wires infrastructure to application layer.

The realtime components (session store, room registry, channel manager,
broadcaster) are owned by the application instance and live on
``app.state``; they are built once in the lifespan and handed out here.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from registers.application.services import (
    AuthService,
    ChannelManager,
    EventBroadcaster,
    RegisterService,
    SessionStore,
)
from registers.config import get_settings
from registers.domain.entities import Session
from registers.infrastructure.database.repositories import (
    SQLAlchemyRegisterRepository,
    SQLAlchemyUserRepository,
)
from registers.infrastructure.database.session import get_db_session
from registers.infrastructure.security.bcrypt_hasher import BcryptHasher


async def get_session_store(conn: HTTPConnection) -> SessionStore:
    return conn.app.state.session_store


async def get_channel_manager(conn: HTTPConnection) -> ChannelManager:
    return conn.app.state.channel_manager


async def get_event_broadcaster(conn: HTTPConnection) -> EventBroadcaster:
    return conn.app.state.broadcaster


async def get_session_token(conn: HTTPConnection) -> str | None:
    """The session cookie of the current request, if any."""
    return conn.cookies.get(get_settings().session_cookie_name)


async def get_current_session(
    token: str | None = Depends(get_session_token),
    store: SessionStore = Depends(get_session_store),
) -> Session:
    """Resolve the caller's live session, sliding its expiry window.

    Raises SessionExpiredError (mapped to 401) when there is none.
    """
    return store.validate(token)


async def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
    store: SessionStore = Depends(get_session_store),
) -> AsyncGenerator[AuthService, None]:
    """Provides an AuthService with the user repository and bcrypt hasher wired up."""
    settings = get_settings()
    yield AuthService(
        users=SQLAlchemyUserRepository(session),
        sessions=store,
        hasher=BcryptHasher(rounds=settings.bcrypt_rounds),
    )


async def get_register_service(
    session: AsyncSession = Depends(get_db_session),
    broadcaster: EventBroadcaster = Depends(get_event_broadcaster),
) -> AsyncGenerator[RegisterService, None]:
    """Provides a RegisterService bound to this request's DB session."""
    yield RegisterService(SQLAlchemyRegisterRepository(session), broadcaster)
