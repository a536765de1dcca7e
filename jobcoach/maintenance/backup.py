from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Literal

from jobcoach.db import tables
from jobcoach.db.gateway import DataGateway

logger = logging.getLogger(__name__)

BackupFrequency = Literal["daily", "weekly", "monthly"]
BACKUP_FILE_PREFIX = "backup_"


def _default_exclusions() -> dict[str, tuple[str, ...]]:
    # Billing identifiers and client fingerprints never leave the database.
    return {
        tables.PROFILES: ("stripe_customer_id", "stripe_subscription_id"),
        tables.PAYMENT_RECORDS: ("stripe_payment_intent_id", "metadata"),
        tables.USER_SESSIONS: ("ip_address", "user_agent"),
    }


@dataclass(frozen=True)
class BackupConfig:
    retention_days: int = 30
    frequency: BackupFrequency = "daily"
    include_tables: tuple[str, ...] = tables.ALL_TABLES
    exclude_columns: dict[str, tuple[str, ...]] = field(default_factory=_default_exclusions)


DEFAULT_BACKUP_CONFIG = BackupConfig()


def _strip_columns(rows: list[dict[str, Any]], excluded: tuple[str, ...]) -> list[dict[str, Any]]:
    if not excluded:
        return rows
    return [{key: value for key, value in row.items() if key not in excluded} for row in rows]


async def build_backup_snapshot(gateway: DataGateway, config: BackupConfig = DEFAULT_BACKUP_CONFIG) -> dict[str, Any]:
    snapshot: dict[str, Any] = {
        "created_at": datetime.now(timezone.utc).isoformat(),
        "frequency": config.frequency,
        "tables": {},
        "errors": {},
    }
    for table in config.include_tables:
        try:
            rows = await gateway.select(table)
        except Exception as exc:
            logger.warning("backup_table_failed table=%s: %s", table, exc)
            snapshot["errors"][table] = str(exc) or "Unknown error"
            continue
        snapshot["tables"][table] = _strip_columns(rows, config.exclude_columns.get(table, ()))
    return snapshot


def write_backup(snapshot: dict[str, Any], directory: str | Path) -> Path:
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    payload = json.dumps(snapshot, ensure_ascii=False, indent=2, default=str)
    attempt = 0
    while True:
        suffix = f"_{attempt}" if attempt else ""
        out_path = out_dir / f"{BACKUP_FILE_PREFIX}{stamp}{suffix}.json"
        try:
            with out_path.open("x", encoding="utf-8") as handle:
                handle.write(payload)
        except FileExistsError:
            attempt += 1
            continue
        return out_path


def prune_backups(directory: str | Path, retention_days: int, *, now: datetime | None = None) -> list[Path]:
    out_dir = Path(directory)
    if not out_dir.exists():
        return []
    current = now or datetime.now(timezone.utc)
    cutoff = (current - timedelta(days=max(1, int(retention_days)))).timestamp()
    removed: list[Path] = []
    for path in sorted(out_dir.glob(f"{BACKUP_FILE_PREFIX}*.json")):
        if path.stat().st_mtime < cutoff:
            path.unlink()
            removed.append(path)
    if removed:
        logger.info("backup_prune removed=%s", len(removed))
    return removed
