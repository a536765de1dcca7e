from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from jobcoach.core.config import settings
from jobcoach.core.services import AppServices, get_services
from jobcoach.db import tables

router = APIRouter()
logger = logging.getLogger(__name__)


def _environment_flags() -> dict[str, object]:
    return {
        "supabase_url": bool(settings.supabase_url),
        "supabase_anon_key": bool(settings.supabase_anon_key),
        "supabase_service_role": bool(settings.supabase_service_role_key),
        "openai_key": bool(settings.openai_api_key),
        "stripe_publishable": bool(settings.stripe_publishable_key),
        "stripe_secret": bool(settings.stripe_secret_key),
        "stripe_webhook": bool(settings.stripe_webhook_secret),
        "app_env": settings.environment,
    }


async def _probe_database(services: AppServices) -> str:
    if services.gateway is None:
        return "not configured"
    try:
        await services.gateway.select(tables.PROFILES, columns="id", limit=1)
    except Exception as exc:  # noqa: BLE001 - reported in the payload
        return f"error: {exc}"
    return "connected"


@router.get("/diagnostics", summary="Configuration and connectivity diagnostics")
async def diagnostics(services: AppServices = Depends(get_services)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        return {
            "status": "ok",
            "timestamp": timestamp,
            "environment": settings.environment,
            "environment_variables": _environment_flags(),
            "database": {"supabase": await _probe_database(services)},
            "deployment": {"version": settings.app_version},
        }
    except Exception as exc:  # pragma: no cover - guard rail
        logger.exception("diagnostics_failed")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": str(exc) or "Unknown error", "timestamp": timestamp},
        )
