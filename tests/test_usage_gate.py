import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobcoach.auth.context import CurrentUser
from jobcoach.db import tables
from jobcoach.integrations.payments import build_pricing
from jobcoach.schemas.entities import Profile
from jobcoach.services.usage import UsageGate, UsageLimitExceeded
from tests.fakes import InMemoryGateway

NOW = datetime(2026, 10, 15, 9, 30, tzinfo=timezone.utc)


def _user(status: str = "free", **limits) -> CurrentUser:
    profile = Profile(id="u1", email="a@example.com", subscription_status=status, usage_limits=limits or {})
    return CurrentUser(id="u1", email="a@example.com", profile=profile)


def _activity(feature: str, created_at: datetime, *, user_id=None, session_id="s1", ip_address=None) -> dict:
    return {
        "user_id": user_id,
        "session_id": session_id,
        "ip_address": ip_address,
        "activity_type": feature,
        "created_at": created_at.isoformat(),
    }


class UsageGateTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.gateway = InMemoryGateway()
        self.gate = UsageGate(self.gateway, build_pricing("price_123"), clock=lambda: NOW)

    async def test_free_user_gets_one_analysis_per_month(self):
        user = _user()
        allowance = await self.gate.ensure_allowed("cv_analysis", user=user, session_id="s1")
        self.assertEqual(allowance.remaining, 1)

        await self.gate.record_activity("cv_analysis", user=user, session_id="s1", activity_data={"match_score": 70})

        with self.assertRaises(UsageLimitExceeded) as ctx:
            await self.gate.ensure_allowed("cv_analysis", user=user, session_id="s1")
        self.assertFalse(ctx.exception.guest)
        self.assertEqual(ctx.exception.limit, 1)

    async def test_last_month_activity_does_not_count(self):
        self.gateway.tables[tables.USER_SESSIONS] = [
            _activity("cv_analysis", NOW - timedelta(days=20), user_id="u1"),
        ]
        allowance = await self.gate.allowance("cv_analysis", user=_user(), session_id="s1")
        self.assertEqual(allowance.used, 0)

    async def test_profile_limits_override_plan_defaults(self):
        user = _user(interview_questions=2)
        self.gateway.tables[tables.USER_SESSIONS] = [
            _activity("interview_questions", NOW - timedelta(days=1), user_id="u1"),
            _activity("interview_questions", NOW - timedelta(hours=1), user_id="u1"),
        ]
        with self.assertRaises(UsageLimitExceeded):
            await self.gate.ensure_allowed("interview_questions", user=user, session_id="s1")

    async def test_premium_is_unlimited(self):
        self.gateway.fail_all = True
        allowance = await self.gate.ensure_allowed("cv_optimization", user=_user("premium"), session_id="s1")
        self.assertIsNone(allowance.remaining)

    async def test_guest_usage_is_counted_per_session(self):
        self.gateway.tables[tables.USER_SESSIONS] = [
            _activity("cv_analysis", NOW - timedelta(hours=3), session_id="guest-a"),
            _activity("cv_analysis", NOW - timedelta(hours=30), session_id="guest-b"),
        ]
        with self.assertRaises(UsageLimitExceeded) as ctx:
            await self.gate.ensure_allowed("cv_analysis", user=None, session_id="guest-a")
        self.assertTrue(ctx.exception.guest)

        allowance = await self.gate.ensure_allowed("cv_analysis", user=None, session_id="guest-b")
        self.assertEqual(allowance.remaining, 1)

    async def test_rotating_guest_session_ids_share_the_ip_allowance(self):
        await self.gate.ensure_allowed("cv_analysis", user=None, session_id="guest-1", ip_address="203.0.113.7")
        await self.gate.record_activity("cv_analysis", user=None, session_id="guest-1", ip_address="203.0.113.7")

        with self.assertRaises(UsageLimitExceeded):
            await self.gate.ensure_allowed("cv_analysis", user=None, session_id="guest-2", ip_address="203.0.113.7")

        allowance = await self.gate.ensure_allowed(
            "cv_analysis", user=None, session_id="guest-3", ip_address="198.51.100.2"
        )
        self.assertEqual(allowance.remaining, 1)

    async def test_guest_ip_window_is_24_hours(self):
        self.gateway.tables[tables.USER_SESSIONS] = [
            _activity("cv_analysis", NOW - timedelta(hours=25), session_id="guest-old", ip_address="203.0.113.7"),
        ]
        allowance = await self.gate.allowance(
            "cv_analysis", user=None, session_id="guest-new", ip_address="203.0.113.7"
        )
        self.assertEqual(allowance.used, 0)

    async def test_guest_without_session_has_no_allowance(self):
        allowance = await self.gate.allowance("cv_analysis", user=None, session_id=None)
        self.assertEqual(allowance.remaining, 0)

    async def test_record_activity_row(self):
        await self.gate.record_activity(
            "interview_questions",
            user=None,
            session_id="guest-a",
            activity_data={"count": 4},
            ip_address="10.0.0.1",
            user_agent="pytest",
        )
        row = self.gateway.tables[tables.USER_SESSIONS][0]
        self.assertIsNone(row["user_id"])
        self.assertEqual(row["activity_type"], "interview_questions")
        self.assertEqual(row["created_at"], NOW.isoformat())
        self.assertEqual(row["ip_address"], "10.0.0.1")


if __name__ == "__main__":
    unittest.main()
