"""API-key authenticated REST surface, mounted under /api/v1."""

from fastapi import APIRouter

from autogestao.api.v1.rest import health, vehicles

router = APIRouter()
router.include_router(health.router)
router.include_router(vehicles.router)
