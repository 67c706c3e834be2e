"""Top-level API router — aggregates health, auth and per-register routers."""

from fastapi import APIRouter

from registers.domain.entities import RegisterType
from registers.presentation.api.endpoints.auth import router as auth_router
from registers.presentation.api.endpoints.health import router as health_router
from registers.presentation.api.endpoints.registers import build_register_router

router = APIRouter(prefix="/api")
router.include_router(health_router)
router.include_router(auth_router)
for register_type in RegisterType:
    router.include_router(build_register_router(register_type))
