from datetime import datetime, timezone

from fastapi import APIRouter

from jobcoach.core.config import settings

router = APIRouter()


@router.get("/health", summary="Health Check", description="Static liveness payload; does not touch the database.")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "version": settings.app_version,
    }
