"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from registers.application.services import (
    AuthService,
    ChannelManager,
    EventBroadcaster,
    RoomRegistry,
    SessionStore,
)
from registers.config import get_settings
from registers.domain.entities import Role
from registers.domain.exceptions import (
    InvalidFinancialYearError,
    PermissionDeniedError,
    SessionExpiredError,
    StoreFailureError,
)
from registers.infrastructure.database import Base, engine
from registers.infrastructure.database.repositories import SQLAlchemyUserRepository
from registers.infrastructure.database.session import async_session_factory
from registers.infrastructure.logging.log_config import setup_logging
from registers.infrastructure.security.bcrypt_hasher import BcryptHasher
from registers.presentation.api.realtime import router as realtime_router
from registers.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _seed_default_accounts(store: SessionStore) -> None:
    """Ensure the configured admin, viewer and gamer accounts exist.

    Idempotent — safe to call on every startup. The admin account is reset to
    the admin role if it was changed.
    """
    settings = get_settings()
    async with async_session_factory() as session:
        service = AuthService(
            users=SQLAlchemyUserRepository(session),
            sessions=store,
            hasher=BcryptHasher(rounds=settings.bcrypt_rounds),
        )
        await service.ensure_account(
            settings.admin_username,
            settings.admin_password,
            settings.security_answer,
            Role.ADMIN,
            enforce_role=True,
        )
        await service.ensure_account(
            settings.viewer_username,
            settings.viewer_password,
            settings.security_answer,
            Role.VIEWER,
        )
        await service.ensure_account(
            settings.gamer_username,
            settings.gamer_password,
            settings.security_answer,
            Role.GAMER,
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — create tables, seed accounts, build realtime components."""
    settings = get_settings()
    setup_logging()

    # 1. Create all database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 2. Session store and realtime components, owned by this app instance
    store = SessionStore(window=timedelta(minutes=settings.session_window_minutes))
    registry = RoomRegistry()
    channels = ChannelManager(registry, queue_size=settings.channel_queue_size)
    app.state.session_store = store
    app.state.room_registry = registry
    app.state.channel_manager = channels
    app.state.broadcaster = EventBroadcaster(registry, channels)

    # 3. Seed default accounts
    await _seed_default_accounts(store)
    logger.info("Startup complete (env=%s)", settings.app_env)

    yield

    # Shutdown
    await channels.shutdown()
    await engine.dispose()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _register_exception_handlers(app: FastAPI) -> None:
    """Map cross-cutting domain errors to HTTP responses."""

    @app.exception_handler(SessionExpiredError)
    async def _session_expired(request: Request, exc: SessionExpiredError) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, str(exc))

    @app.exception_handler(PermissionDeniedError)
    async def _permission_denied(request: Request, exc: PermissionDeniedError) -> JSONResponse:
        logger.info("Denied %s for role %s on %s", exc.operation, exc.role, request.url.path)
        return _error(status.HTTP_403_FORBIDDEN, "Permission denied")

    @app.exception_handler(StoreFailureError)
    async def _store_failure(request: Request, exc: StoreFailureError) -> JSONResponse:
        # Details were logged where the failure was caught
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")

    @app.exception_handler(InvalidFinancialYearError)
    async def _invalid_year(request: Request, exc: InvalidFinancialYearError) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware — credentials are needed for the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    # Mount API and realtime routes
    app.include_router(api_router)
    app.include_router(realtime_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "registers.main:app",
        host="0.0.0.0",
        port=5000,
        reload=True,
    )
