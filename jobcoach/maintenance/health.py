from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Literal

from jobcoach.db import tables
from jobcoach.db.gateway import DataGateway

logger = logging.getLogger(__name__)

HealthStatus = Literal["healthy", "degraded", "unhealthy"]

WATCHED_TABLES = (
    tables.PROFILES,
    tables.CV_DOCUMENTS,
    tables.CV_ANALYSES,
    tables.PAYMENT_RECORDS,
)
DEGRADED_THRESHOLD = 0.7


@dataclass(frozen=True)
class HealthReport:
    status: HealthStatus
    checks: dict[str, bool]
    metrics: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "checks": dict(self.checks), "metrics": dict(self.metrics)}


def classify(checks: dict[str, bool]) -> HealthStatus:
    total = len(checks)
    passed = sum(1 for value in checks.values() if value)
    if total and passed == total:
        return "healthy"
    if total and passed >= total * DEGRADED_THRESHOLD:
        return "degraded"
    return "unhealthy"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class DatabaseHealthCheck:
    def __init__(self, gateway: DataGateway, watched_tables: tuple[str, ...] = WATCHED_TABLES):
        self._gateway = gateway
        self._watched_tables = watched_tables

    async def check_health(self) -> HealthReport:
        checks: dict[str, bool] = {}
        metrics: dict[str, float] = {}
        try:
            started = time.perf_counter()
            # Any failure here propagates to the outer handler.
            await self._gateway.select(tables.PROFILES, columns="id", limit=1)
            checks["connection"] = True
            metrics["connection_time_ms"] = _elapsed_ms(started)

            for table in self._watched_tables:
                try:
                    metrics[f"{table}_count"] = await self._gateway.count(table)
                    checks[f"{table}_accessible"] = True
                except Exception as exc:
                    logger.warning("db_health_table_probe_failed table=%s: %s", table, exc)
                    checks[f"{table}_accessible"] = False

            metrics["check_duration_ms"] = _elapsed_ms(started)
            return HealthReport(status=classify(checks), checks=checks, metrics=metrics)
        except Exception as exc:
            logger.warning("db_health_connection_failed: %s", exc)
            return HealthReport(status="unhealthy", checks={"connection": False}, metrics={})
