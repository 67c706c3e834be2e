"""Colored realtime logger — ANSI-colored console logging for channel lifecycle.

Provides a RealtimeLogger with color-coded output per lifecycle stage, so
connects, room changes and broadcasts can be traced by eye in the terminal.

Color scheme:
    🟢 Green   — Connect
    🔵 Blue    — Join / Leave
    🟣 Magenta — Publish
    ⚪ Gray    — Disconnect
    🔴 Red     — Rejections and errors
"""

import logging
from typing import Any


class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    GRAY = "\033[90m"


class RealtimeStage:
    """Channel lifecycle stages as (label, color, icon)."""

    CONNECT = ("CONNECT", _Colors.GREEN, "🔌")
    JOIN = ("JOIN", _Colors.BLUE, "➕")
    LEAVE = ("LEAVE", _Colors.BLUE, "➖")
    PUBLISH = ("PUBLISH", _Colors.MAGENTA, "📣")
    DISCONNECT = ("DISCONNECT", _Colors.GRAY, "⏏️")
    REJECT = ("REJECT", _Colors.RED, "⛔")


class RealtimeLogger:
    """Color-coded logger for realtime channel events.

    Usage:
        log = RealtimeLogger(__name__)
        log.event(RealtimeStage.JOIN, "Channel joined room", channel="c1", room="supply-2024-2025")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def event(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log one lifecycle event at INFO in its stage color."""
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def warning(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log a rejection or degraded delivery in red."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.DIM}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.warning(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        """Log low-level detail (gray/dimmed) at DEBUG."""
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            formatted += f" {_Colors.DIM}({_format_details(kwargs)}){_Colors.RESET}"
        self._logger.debug(formatted)


def _format_details(details: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in details.items())
