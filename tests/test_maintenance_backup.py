import json
import os
import sys
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobcoach.db import tables
from jobcoach.maintenance.backup import BackupConfig, build_backup_snapshot, prune_backups, write_backup
from tests.fakes import InMemoryGateway


class BackupSnapshotTests(unittest.IsolatedAsyncioTestCase):
    async def test_snapshot_strips_sensitive_columns(self):
        gateway = InMemoryGateway(
            {
                tables.PROFILES: [
                    {"id": "u1", "email": "a@example.com", "stripe_customer_id": "cus_1", "stripe_subscription_id": "sub_1"}
                ],
                tables.USER_SESSIONS: [
                    {"id": "s1", "session_id": "g", "ip_address": "10.0.0.1", "user_agent": "curl"}
                ],
            }
        )
        snapshot = await build_backup_snapshot(gateway)

        self.assertEqual(snapshot["frequency"], "daily")
        self.assertEqual(snapshot["tables"][tables.PROFILES], [{"id": "u1", "email": "a@example.com"}])
        self.assertEqual(snapshot["tables"][tables.USER_SESSIONS], [{"id": "s1", "session_id": "g"}])
        self.assertEqual(snapshot["tables"][tables.CV_DOCUMENTS], [])
        self.assertEqual(snapshot["errors"], {})

    async def test_failing_table_is_recorded_and_others_still_exported(self):
        gateway = InMemoryGateway({tables.PROFILES: [{"id": "u1"}]}, fail_tables=[tables.PAYMENT_RECORDS])
        config = BackupConfig(include_tables=(tables.PROFILES, tables.PAYMENT_RECORDS), frequency="weekly")

        snapshot = await build_backup_snapshot(gateway, config)

        self.assertEqual(snapshot["frequency"], "weekly")
        self.assertEqual(list(snapshot["tables"]), [tables.PROFILES])
        self.assertEqual(snapshot["errors"], {tables.PAYMENT_RECORDS: "connection refused"})


class BackupFileTests(unittest.TestCase):
    def test_write_then_prune_old_snapshots(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_backup({"tables": {"profiles": [{"id": "u1"}]}}, Path(tmp) / "nested")
            self.assertTrue(path.name.startswith("backup_"))
            self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["tables"]["profiles"][0]["id"], "u1")

            stale = path.parent / "backup_20200101T000000Z.json"
            stale.write_text("{}", encoding="utf-8")
            old = (datetime.now(timezone.utc) - timedelta(days=45)).timestamp()
            os.utime(stale, (old, old))
            unrelated = path.parent / "notes.json"
            unrelated.write_text("{}", encoding="utf-8")
            os.utime(unrelated, (old, old))

            removed = prune_backups(path.parent, retention_days=30)

            self.assertEqual(removed, [stale])
            self.assertTrue(path.exists())
            self.assertTrue(unrelated.exists())

    def test_backups_in_the_same_instant_do_not_overwrite(self):
        frozen = datetime(2026, 10, 19, 3, 0, 0, 123456, tzinfo=timezone.utc)
        with tempfile.TemporaryDirectory() as tmp, patch("jobcoach.maintenance.backup.datetime") as clock:
            clock.now.return_value = frozen
            first = write_backup({"tables": {"profiles": [{"id": "u1"}]}}, tmp)
            second = write_backup({"tables": {"profiles": [{"id": "u2"}]}}, tmp)

            self.assertEqual(first.name, "backup_20261019T030000123456Z.json")
            self.assertEqual(second.name, "backup_20261019T030000123456Z_1.json")
            self.assertEqual(json.loads(first.read_text(encoding="utf-8"))["tables"]["profiles"][0]["id"], "u1")
            self.assertEqual(json.loads(second.read_text(encoding="utf-8"))["tables"]["profiles"][0]["id"], "u2")

    def test_prune_missing_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(prune_backups(Path(tmp) / "absent", retention_days=7), [])


if __name__ == "__main__":
    unittest.main()
