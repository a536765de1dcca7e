from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobcoach.core.config import settings  # noqa: E402
from jobcoach.db.supabase_gateway import create_supabase_gateway  # noqa: E402
from jobcoach.maintenance.backup import BackupConfig, build_backup_snapshot, prune_backups, write_backup  # noqa: E402
from jobcoach.maintenance.health import DatabaseHealthCheck  # noqa: E402
from jobcoach.maintenance.retention import DatabaseMaintenance, RetentionPolicy  # noqa: E402


async def _gateway():
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set.")
    return await create_supabase_gateway(settings.supabase_url, settings.supabase_service_role_key)


async def _run() -> tuple[dict, int]:
    maintenance = DatabaseMaintenance(await _gateway(), RetentionPolicy.from_settings(settings))
    report = await maintenance.run_maintenance_tasks()
    return report.to_dict(), 0


async def _health() -> tuple[dict, int]:
    report = await DatabaseHealthCheck(await _gateway()).check_health()
    return report.to_dict(), 1 if report.status == "unhealthy" else 0


async def _backup(out_dir: str, retention_days: int) -> tuple[dict, int]:
    config = BackupConfig(retention_days=retention_days)
    snapshot = await build_backup_snapshot(await _gateway(), config)
    path = write_backup(snapshot, out_dir)
    removed = prune_backups(out_dir, config.retention_days)
    summary = {
        "path": str(path),
        "tables": {name: len(rows) for name, rows in snapshot["tables"].items()},
        "errors": snapshot["errors"],
        "pruned": [str(item) for item in removed],
    }
    return summary, 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Data-retention and database maintenance tasks.")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Run guest-session, CV and analysis cleanup once.")
    sub.add_parser("health", help="Probe database connectivity and table access.")
    backup = sub.add_parser("backup", help="Export a JSON snapshot of the application tables.")
    backup.add_argument("--out", default=settings.backup_dir, help="Output directory")
    backup.add_argument(
        "--retention-days",
        type=int,
        default=settings.backup_retention_days,
        help="Delete snapshots older than this many days.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if args.command == "run":
        payload, code = asyncio.run(_run())
    elif args.command == "health":
        payload, code = asyncio.run(_health())
    else:
        payload, code = asyncio.run(_backup(args.out, args.retention_days))

    print(json.dumps(payload, indent=2, default=str))
    sys.exit(code)


if __name__ == "__main__":
    main()
