"""Scheduled data-retention routines.

Every routine catches its own failures and reports them in the returned
``CleanupResult``; callers inspect each sub-result to detect partial failure.
There is no retry and no transaction across the multi-step deletes: rows that
fail to delete are simply picked up by the next scheduled run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from jobcoach.db import tables
from jobcoach.db.gateway import DataGateway, Filter

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _error_message(exc: Exception) -> str:
    return str(exc) or UNKNOWN_ERROR


@dataclass(frozen=True)
class RetentionPolicy:
    guest_session_max_age: timedelta = timedelta(hours=24)
    cv_max_age: timedelta = timedelta(days=30)
    analysis_max_age: timedelta = timedelta(days=90)
    cv_bucket: str = tables.CV_UPLOADS_BUCKET
    analysis_archive_table: str | None = None

    @classmethod
    def from_settings(cls, settings: Any) -> "RetentionPolicy":
        return cls(
            guest_session_max_age=timedelta(hours=max(1, int(settings.guest_session_retention_hours))),
            cv_max_age=timedelta(days=max(1, int(settings.free_cv_retention_days))),
            analysis_max_age=timedelta(days=max(1, int(settings.free_analysis_retention_days))),
            cv_bucket=settings.cv_storage_bucket,
            analysis_archive_table=settings.analysis_archive_table,
        )


@dataclass(frozen=True)
class CleanupResult:
    count: int = 0
    error: str | None = None
    label: str = "deleted"

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {self.label: self.count}
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class MaintenanceReport:
    guest_sessions: CleanupResult
    old_cv_files: CleanupResult
    old_analyses: CleanupResult
    started_at: datetime = field(default_factory=_utc_now)

    @property
    def ok(self) -> bool:
        return self.guest_sessions.ok and self.old_cv_files.ok and self.old_analyses.ok

    def to_dict(self) -> dict[str, Any]:
        return {
            "guest_sessions": self.guest_sessions.to_dict(),
            "old_cv_files": self.old_cv_files.to_dict(),
            "old_analyses": self.old_analyses.to_dict(),
            "started_at": self.started_at.isoformat(),
        }


class DatabaseMaintenance:
    def __init__(
        self,
        gateway: DataGateway,
        policy: RetentionPolicy | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._gateway = gateway
        self._policy = policy or RetentionPolicy()
        self._clock = clock

    @property
    def policy(self) -> RetentionPolicy:
        return self._policy

    def _cutoff(self, max_age: timedelta) -> str:
        return (self._clock() - max_age).isoformat()

    async def _free_user_ids(self) -> list[str]:
        rows = await self._gateway.select(
            tables.PROFILES,
            Filter().eq("subscription_status", "free"),
            columns="id",
        )
        return [row["id"] for row in rows if row.get("id")]

    async def cleanup_guest_sessions(self) -> CleanupResult:
        """Delete ownerless session rows older than the guest retention window."""
        try:
            cutoff = self._cutoff(self._policy.guest_session_max_age)
            deleted = await self._gateway.delete(
                tables.USER_SESSIONS,
                Filter().is_null("user_id").lt("created_at", cutoff),
            )
            return CleanupResult(count=deleted)
        except Exception as exc:
            logger.warning("maintenance_guest_sessions_failed: %s", exc)
            return CleanupResult(count=0, error=_error_message(exc))

    async def cleanup_old_cv_files(self) -> CleanupResult:
        """Delete free-tier CV documents past retention, along with their stored files."""
        try:
            cutoff = self._cutoff(self._policy.cv_max_age)
            free_user_ids = await self._free_user_ids()
            if not free_user_ids:
                return CleanupResult(count=0)

            old_cvs = await self._gateway.select(
                tables.CV_DOCUMENTS,
                Filter().lt("created_at", cutoff).in_("user_id", free_user_ids),
                columns="id, user_id, file_url",
            )
            if not old_cvs:
                return CleanupResult(count=0)

            files_to_delete = [cv["file_url"] for cv in old_cvs if cv.get("file_url")]
            if files_to_delete:
                try:
                    await self._gateway.remove(self._policy.cv_bucket, files_to_delete)
                except Exception as exc:
                    # Rows are still deleted; leftover blobs are an accepted leak.
                    logger.warning(
                        "maintenance_cv_storage_cleanup_failed files=%s: %s",
                        len(files_to_delete),
                        exc,
                    )

            deleted = await self._gateway.delete(
                tables.CV_DOCUMENTS,
                Filter().in_("id", [cv["id"] for cv in old_cvs]),
            )
            return CleanupResult(count=deleted)
        except Exception as exc:
            logger.warning("maintenance_cv_cleanup_failed: %s", exc)
            return CleanupResult(count=0, error=_error_message(exc))

    async def archive_old_analyses(self) -> CleanupResult:
        """Remove free-tier analyses past retention.

        Rows are hard-deleted unless an archive table is configured, in which
        case they are copied there first.
        """
        try:
            cutoff = self._cutoff(self._policy.analysis_max_age)
            free_user_ids = await self._free_user_ids()
            if not free_user_ids:
                return CleanupResult(count=0, label="archived")

            expired = Filter().lt("created_at", cutoff).in_("user_id", free_user_ids)
            archive_table = self._policy.analysis_archive_table
            if archive_table:
                rows = await self._gateway.select(tables.CV_ANALYSES, expired)
                if not rows:
                    return CleanupResult(count=0, label="archived")
                await self._gateway.insert(archive_table, rows)
                expired = Filter().in_("id", [row["id"] for row in rows])

            archived = await self._gateway.delete(tables.CV_ANALYSES, expired)
            return CleanupResult(count=archived, label="archived")
        except Exception as exc:
            logger.warning("maintenance_analysis_archive_failed: %s", exc)
            return CleanupResult(count=0, error=_error_message(exc), label="archived")

    async def run_maintenance_tasks(self) -> MaintenanceReport:
        started_at = self._clock()
        guest_sessions, old_cv_files, old_analyses = await asyncio.gather(
            self.cleanup_guest_sessions(),
            self.cleanup_old_cv_files(),
            self.archive_old_analyses(),
        )
        report = MaintenanceReport(
            guest_sessions=guest_sessions,
            old_cv_files=old_cv_files,
            old_analyses=old_analyses,
            started_at=started_at,
        )
        logger.info(
            "maintenance_run guest_sessions=%s old_cv_files=%s old_analyses=%s",
            guest_sessions.to_dict(),
            old_cv_files.to_dict(),
            old_analyses.to_dict(),
        )
        return report
