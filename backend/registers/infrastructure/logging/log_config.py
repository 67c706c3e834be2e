"""Per-category log levels for the register server and its sync client.

Each ``log_level_*`` setting drives a group of loggers, so SQL echo or the
websocket client chatter can be turned up on its own. ``setup_logging`` is
idempotent and runs from the FastAPI lifespan.
"""

import logging
import sys

from registers.config import Settings, get_settings

_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_realtime": (
        "registers.application.services.room_registry",
        "registers.application.services.channel_manager",
        "registers.application.services.event_broadcaster",
        "registers.presentation.api.realtime",
    ),
    "log_level_client": (
        "registers.client",
        "httpx",
        "httpcore",
        "websockets.client",
    ),
}

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))
    if not root.handlers:
        # No uvicorn handler under pytest or plain scripts.
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(handler)

    levels = {}
    for field, names in _CATEGORY_MAP.items():
        level = _parse_level(getattr(settings, field, "INFO"))
        levels[field] = logging.getLevelName(level)
        for name in names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s %s",
        settings.log_level,
        " ".join(f"{k.removeprefix('log_level_')}={v}" for k, v in levels.items()),
    )


def _parse_level(raw: str) -> int:
    """Level name to logging constant; unknown names fall back to INFO."""
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO
