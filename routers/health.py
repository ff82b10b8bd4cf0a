"""Simple health check router."""

from fastapi import APIRouter

from core.config import settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Health check")
async def health_check() -> dict[str, str]:
    return {"status": "ok", "version": settings.APP_VERSION}
