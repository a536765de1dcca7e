from fastapi import APIRouter, Depends

from jobcoach.api.v1.deps import api_key_auth
from jobcoach.core.services import AppServices, get_services, require

router = APIRouter()


@router.post("/maintenance/run", summary="Run all data-retention routines once")
async def run_maintenance(_: None = Depends(api_key_auth), services: AppServices = Depends(get_services)):
    maintenance = require(services.maintenance, "Database")
    report = await maintenance.run_maintenance_tasks()
    return report.to_dict()


@router.get("/maintenance/db-health", summary="Database health probe")
async def db_health(_: None = Depends(api_key_auth), services: AppServices = Depends(get_services)):
    health_check = require(services.health_check, "Database")
    report = await health_check.check_health()
    return report.to_dict()
