from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from jobcoach.db import tables
from jobcoach.db.gateway import DataGateway, Filter
from jobcoach.integrations.payments import Plan
from jobcoach.schemas.entities import PaymentRecord, UsageLimits

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _cents_to_amount(value: Any) -> float:
    try:
        return round(int(value or 0) / 100, 2)
    except (TypeError, ValueError):
        return 0.0


class BillingEvents:
    """Applies verified Stripe webhook events to profiles and payment records."""

    def __init__(self, gateway: DataGateway, pricing: dict[str, Plan]):
        self._gateway = gateway
        self._pricing = pricing

    async def apply(self, event: dict[str, Any]) -> str:
        event_type = str(event.get("type") or "")
        obj = (event.get("data") or {}).get("object") or {}
        handler = {
            "checkout.session.completed": self._checkout_completed,
            "customer.subscription.deleted": self._subscription_deleted,
            "invoice.payment_failed": self._payment_failed,
        }.get(event_type)
        if handler is None:
            logger.info("billing_event_ignored type=%s", event_type)
            return "ignored"
        outcome = await handler(obj) or "applied"
        logger.info("billing_event_%s type=%s id=%s", outcome, event_type, event.get("id"))
        return outcome

    async def _set_tier(self, values: dict[str, Any], filter: Filter, tier: str) -> None:
        limits = self._pricing[tier].limits
        values = {
            **values,
            "subscription_status": tier,
            "usage_limits": UsageLimits(**limits).model_dump(),
            "updated_at": _now(),
        }
        await self._gateway.update(tables.PROFILES, values, filter)

    async def _record_payment(self, user_id: str, obj: dict[str, Any], *, status: str, amount_key: str) -> None:
        record = PaymentRecord(
            user_id=user_id,
            stripe_payment_intent_id=obj.get("payment_intent"),
            stripe_subscription_id=obj.get("subscription"),
            stripe_customer_id=obj.get("customer"),
            amount=_cents_to_amount(obj.get(amount_key)),
            currency=str(obj.get("currency") or "usd"),
            status=status,
            payment_type="subscription",
            metadata={"stripe_object_id": obj.get("id")},
        )
        now = _now()
        await self._gateway.insert(
            tables.PAYMENT_RECORDS,
            {**record.model_dump(exclude={"id", "created_at", "updated_at"}), "created_at": now, "updated_at": now},
        )

    async def _checkout_completed(self, obj: dict[str, Any]) -> str | None:
        metadata = obj.get("metadata") or {}
        user_id = metadata.get("user_id") or obj.get("client_reference_id")
        if not user_id:
            logger.warning("billing_checkout_without_user session_id=%s", obj.get("id"))
            return "rejected"
        premium_price_id = self._pricing["premium"].price_id
        if not premium_price_id or metadata.get("price_id") != premium_price_id:
            logger.warning(
                "billing_checkout_price_mismatch session_id=%s price_id=%s", obj.get("id"), metadata.get("price_id")
            )
            return "rejected"
        await self._set_tier(
            {
                "stripe_customer_id": obj.get("customer"),
                "stripe_subscription_id": obj.get("subscription"),
            },
            Filter().eq("id", user_id),
            "premium",
        )
        await self._record_payment(user_id, obj, status="succeeded", amount_key="amount_total")

    async def _subscription_deleted(self, obj: dict[str, Any]) -> None:
        subscription_id = obj.get("id")
        if not subscription_id:
            return
        await self._set_tier(
            {"stripe_subscription_id": None},
            Filter().eq("stripe_subscription_id", subscription_id),
            "free",
        )

    async def _payment_failed(self, obj: dict[str, Any]) -> None:
        customer_id = obj.get("customer")
        if not customer_id:
            return
        rows = await self._gateway.select(
            tables.PROFILES,
            Filter().eq("stripe_customer_id", customer_id),
            columns="id",
            limit=1,
        )
        if not rows:
            logger.warning("billing_failed_payment_unknown_customer customer=%s", customer_id)
            return
        await self._record_payment(rows[0]["id"], obj, status="failed", amount_key="amount_due")
