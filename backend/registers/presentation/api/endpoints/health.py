"""Health check endpoint — no session required."""

from fastapi import APIRouter, Depends

from registers.application.services import ChannelManager
from registers.config import get_settings
from registers.infrastructure.dependencies import get_channel_manager

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(channels: ChannelManager = Depends(get_channel_manager)) -> dict:
    """Returns the current application health status and live channel count."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "channels": channels.channel_count,
    }
