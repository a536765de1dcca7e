from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import stripe

logger = logging.getLogger(__name__)

UNLIMITED = -1


@dataclass(frozen=True)
class Plan:
    name: str
    price: float
    price_id: str | None
    features: tuple[str, ...]
    limits: dict[str, int]

    def limit_for(self, feature: str) -> int:
        return self.limits.get(feature, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "price_id": self.price_id,
            "features": list(self.features),
            "limits": dict(self.limits),
        }


def build_pricing(premium_price_id: str | None) -> dict[str, Plan]:
    return {
        "free": Plan(
            name="Free",
            price=0,
            price_id=None,
            features=(
                "1 CV analysis per month",
                "Basic interview questions",
                "Limited CV optimization suggestions",
            ),
            limits={"cv_analysis": 1, "interview_questions": 5, "cv_optimization": 1},
        ),
        "premium": Plan(
            name="Premium",
            price=9.99,
            price_id=premium_price_id,
            features=(
                "Unlimited CV analyses",
                "Advanced interview questions",
                "Full CV optimization suite",
                "Export to PDF/Word",
                "Priority support",
            ),
            limits={"cv_analysis": UNLIMITED, "interview_questions": UNLIMITED, "cv_optimization": UNLIMITED},
        ),
    }


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


class WebhookError(ValueError):
    pass


def _as_dict(obj: Any) -> dict[str, Any]:
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripePayments:
    """Thin wrapper over the Stripe API that reports failures as result values."""

    def __init__(self, secret_key: str, webhook_secret: str | None = None):
        if not secret_key:
            raise RuntimeError("STRIPE_SECRET_KEY is missing")
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret

    async def create_checkout_session(
        self,
        *,
        price_id: str,
        user_id: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
    ) -> PaymentResult:
        params: dict[str, Any] = {
            "mode": "subscription",
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "metadata": {"user_id": user_id, "price_id": price_id},
            "client_reference_id": user_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "allow_promotion_codes": True,
        }
        if customer_email:
            params["customer_email"] = customer_email
        try:
            session = await asyncio.to_thread(stripe.checkout.Session.create, api_key=self._secret_key, **params)
        except Exception as exc:  # noqa: BLE001 - translated into the result value
            logger.error("stripe_checkout_session_failed user_id=%s: %s", user_id, exc)
            return PaymentResult(success=False, error=str(exc) or "Failed to create checkout session")
        return PaymentResult(success=True, data={"session_id": session.get("id"), "url": session.get("url")})

    async def get_subscription(self, subscription_id: str) -> PaymentResult:
        try:
            subscription = await asyncio.to_thread(
                stripe.Subscription.retrieve,
                subscription_id,
                api_key=self._secret_key,
            )
        except Exception as exc:  # noqa: BLE001 - translated into the result value
            logger.error("stripe_subscription_retrieval_failed subscription_id=%s: %s", subscription_id, exc)
            return PaymentResult(success=False, error=str(exc) or "Failed to retrieve subscription")
        return PaymentResult(success=True, data=_as_dict(subscription))

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        if not self._webhook_secret:
            raise WebhookError("Webhook secret is not configured.")
        if not signature:
            raise WebhookError("Missing Stripe-Signature header.")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            raise WebhookError(f"Invalid webhook: {exc}") from exc
        return _as_dict(event)
