import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobcoach.db import tables
from jobcoach.integrations.payments import UNLIMITED, build_pricing
from jobcoach.services.billing import BillingEvents
from tests.fakes import InMemoryGateway


def _event(event_type: str, obj: dict) -> dict:
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


class BillingEventsTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.gateway = InMemoryGateway(
            {
                tables.PROFILES: [
                    {"id": "u1", "email": "a@example.com", "subscription_status": "free"},
                    {
                        "id": "u2",
                        "email": "b@example.com",
                        "subscription_status": "premium",
                        "stripe_customer_id": "cus_2",
                        "stripe_subscription_id": "sub_2",
                    },
                ]
            }
        )
        self.billing = BillingEvents(self.gateway, build_pricing("price_123"))

    def _profile(self, user_id: str) -> dict:
        return next(row for row in self.gateway.tables[tables.PROFILES] if row["id"] == user_id)

    async def test_checkout_completed_upgrades_and_records_payment(self):
        outcome = await self.billing.apply(
            _event(
                "checkout.session.completed",
                {
                    "id": "cs_1",
                    "customer": "cus_1",
                    "subscription": "sub_1",
                    "payment_intent": "pi_1",
                    "amount_total": 999,
                    "currency": "usd",
                    "metadata": {"user_id": "u1", "price_id": "price_123"},
                },
            )
        )

        self.assertEqual(outcome, "applied")
        profile = self._profile("u1")
        self.assertEqual(profile["subscription_status"], "premium")
        self.assertEqual(profile["stripe_customer_id"], "cus_1")
        self.assertEqual(profile["usage_limits"]["cv_analysis"], UNLIMITED)

        payments = self.gateway.tables[tables.PAYMENT_RECORDS]
        self.assertEqual(len(payments), 1)
        self.assertEqual(payments[0]["amount"], 9.99)
        self.assertEqual(payments[0]["status"], "succeeded")
        self.assertEqual(payments[0]["user_id"], "u1")

    async def test_checkout_uses_client_reference_when_metadata_missing(self):
        await self.billing.apply(
            _event(
                "checkout.session.completed",
                {"id": "cs_2", "client_reference_id": "u1", "amount_total": 999, "metadata": {"price_id": "price_123"}},
            )
        )
        self.assertEqual(self._profile("u1")["subscription_status"], "premium")

    async def test_checkout_for_other_price_is_rejected(self):
        for metadata in ({"user_id": "u1"}, {"user_id": "u1", "price_id": "price_cheap"}):
            outcome = await self.billing.apply(
                _event("checkout.session.completed", {"id": "cs_3", "amount_total": 50, "metadata": metadata})
            )
            self.assertEqual(outcome, "rejected")

        self.assertEqual(self._profile("u1")["subscription_status"], "free")
        self.assertNotIn(tables.PAYMENT_RECORDS, self.gateway.tables)

    async def test_checkout_rejected_when_premium_price_unset(self):
        billing = BillingEvents(self.gateway, build_pricing(None))
        outcome = await billing.apply(
            _event("checkout.session.completed", {"id": "cs_4", "metadata": {"user_id": "u1", "price_id": None}})
        )
        self.assertEqual(outcome, "rejected")
        self.assertEqual(self._profile("u1")["subscription_status"], "free")

    async def test_subscription_deleted_downgrades(self):
        outcome = await self.billing.apply(_event("customer.subscription.deleted", {"id": "sub_2"}))

        self.assertEqual(outcome, "applied")
        profile = self._profile("u2")
        self.assertEqual(profile["subscription_status"], "free")
        self.assertIsNone(profile["stripe_subscription_id"])
        self.assertEqual(profile["usage_limits"], {"cv_analysis": 1, "interview_questions": 5, "cv_optimization": 1})

    async def test_failed_invoice_records_failed_payment(self):
        await self.billing.apply(
            _event("invoice.payment_failed", {"id": "in_1", "customer": "cus_2", "amount_due": 999})
        )

        payments = self.gateway.tables[tables.PAYMENT_RECORDS]
        self.assertEqual([(row["user_id"], row["status"]) for row in payments], [("u2", "failed")])

    async def test_failed_invoice_for_unknown_customer_is_skipped(self):
        await self.billing.apply(_event("invoice.payment_failed", {"id": "in_2", "customer": "cus_missing"}))
        self.assertNotIn(tables.PAYMENT_RECORDS, self.gateway.tables)

    async def test_unhandled_event_is_ignored(self):
        self.assertEqual(await self.billing.apply(_event("customer.created", {"id": "cus_9"})), "ignored")


if __name__ == "__main__":
    unittest.main()
