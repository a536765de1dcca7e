import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobcoach.db import tables
from jobcoach.maintenance.health import DatabaseHealthCheck, classify
from tests.fakes import InMemoryGateway


def _seeded(**kwargs) -> InMemoryGateway:
    return InMemoryGateway(
        {
            tables.PROFILES: [{"id": "u1"}, {"id": "u2"}],
            tables.CV_DOCUMENTS: [{"id": "cv1"}],
            tables.CV_ANALYSES: [],
            tables.PAYMENT_RECORDS: [{"id": "pay1"}, {"id": "pay2"}, {"id": "pay3"}],
        },
        **kwargs,
    )


class ClassifyTests(unittest.TestCase):
    def test_all_passing_is_healthy(self):
        self.assertEqual(classify({"a": True, "b": True}), "healthy")

    def test_seventy_percent_boundary_is_degraded(self):
        checks = {str(index): index < 7 for index in range(10)}
        self.assertEqual(classify(checks), "degraded")

    def test_below_seventy_percent_is_unhealthy(self):
        checks = {str(index): index < 6 for index in range(10)}
        self.assertEqual(classify(checks), "unhealthy")

    def test_no_checks_is_unhealthy(self):
        self.assertEqual(classify({}), "unhealthy")


class DatabaseHealthCheckTests(unittest.IsolatedAsyncioTestCase):
    async def test_reachable_store_is_healthy_with_counts(self):
        report = await DatabaseHealthCheck(_seeded()).check_health()

        self.assertEqual(report.status, "healthy")
        self.assertTrue(report.checks["connection"])
        for table in (tables.PROFILES, tables.CV_DOCUMENTS, tables.CV_ANALYSES, tables.PAYMENT_RECORDS):
            self.assertTrue(report.checks[f"{table}_accessible"])
        self.assertEqual(report.metrics["profiles_count"], 2)
        self.assertEqual(report.metrics["cv_analyses_count"], 0)
        self.assertEqual(report.metrics["payment_records_count"], 3)
        self.assertIn("connection_time_ms", report.metrics)
        self.assertIn("check_duration_ms", report.metrics)

    async def test_one_unreadable_table_is_degraded(self):
        report = await DatabaseHealthCheck(_seeded(fail_tables=[tables.PAYMENT_RECORDS])).check_health()

        self.assertEqual(report.status, "degraded")
        self.assertFalse(report.checks["payment_records_accessible"])
        self.assertNotIn("payment_records_count", report.metrics)

    async def test_two_unreadable_tables_are_unhealthy(self):
        gateway = _seeded(fail_tables=[tables.CV_ANALYSES, tables.PAYMENT_RECORDS])
        report = await DatabaseHealthCheck(gateway).check_health()

        self.assertEqual(report.status, "unhealthy")
        self.assertTrue(report.checks["connection"])

    async def test_connection_failure_is_unhealthy(self):
        report = await DatabaseHealthCheck(InMemoryGateway(fail_all=True)).check_health()

        self.assertEqual(report.status, "unhealthy")
        self.assertEqual(report.checks, {"connection": False})
        self.assertEqual(report.metrics, {})
        self.assertEqual(report.to_dict(), {"status": "unhealthy", "checks": {"connection": False}, "metrics": {}})


if __name__ == "__main__":
    unittest.main()
