from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Procurement Registers API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///./registers.db"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Sessions — sliding window, refreshed by every authenticated request
    session_cookie_name: str = "registers_session"
    session_window_minutes: int = 30
    session_cookie_secure: bool = False

    # Default accounts seeded on startup
    admin_username: str = "admin"
    admin_password: str = "admin123"
    viewer_username: str = "viewer"
    viewer_password: str = "viewer123"
    gamer_username: str = "king"
    gamer_password: str = "queen"
    security_answer: str = "krishna"
    bcrypt_rounds: int = 12

    # Realtime channels
    channel_queue_size: int = 100
    realtime_require_session: bool = False

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine — SQL queries
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_realtime: str = "INFO"         # rooms, channels, broadcasts
    log_level_client: str = "WARNING"        # sync agent, httpx, websockets client

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
