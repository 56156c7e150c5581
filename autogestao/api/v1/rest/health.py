from fastapi import APIRouter

router = APIRouter(tags=["rest"])


@router.get("/health")
async def health() -> dict:
    """Unauthenticated liveness check."""
    return {"success": True, "status": "ok"}
