import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from jobcoach.core.config import settings
from jobcoach.core.services import build_services
from jobcoach.maintenance.retention import DatabaseMaintenance

logger = logging.getLogger(__name__)


async def periodic_maintenance(maintenance: DatabaseMaintenance, stop_event: asyncio.Event, interval_s: int) -> None:
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_s)
        except asyncio.TimeoutError:
            pass
        if stop_event.is_set():
            break
        report = await maintenance.run_maintenance_tasks()
        if not report.ok:
            logger.warning("scheduled_maintenance_partial_failure report=%s", report.to_dict())


@asynccontextmanager
async def lifespan(app):
    if getattr(app.state, "services", None) is None:
        app.state.services = await build_services(settings)
    services = app.state.services

    stop_event = asyncio.Event()
    maintenance_task = None
    if settings.maintenance_scheduler_enabled and services.maintenance is not None:
        logger.info("maintenance_scheduler_started interval_s=%s", settings.maintenance_interval_seconds)
        maintenance_task = asyncio.create_task(
            periodic_maintenance(services.maintenance, stop_event, settings.maintenance_interval_seconds)
        )

    yield

    stop_event.set()
    if maintenance_task is not None and not maintenance_task.done():
        maintenance_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await maintenance_task
