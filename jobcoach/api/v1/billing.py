import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from jobcoach.api.v1.deps import current_user, gateway_failure
from jobcoach.auth.context import CurrentUser
from jobcoach.core.config import settings
from jobcoach.core.services import AppServices, get_services, require
from jobcoach.db.gateway import GatewayError
from jobcoach.integrations.payments import WebhookError
from jobcoach.schemas.api import CheckoutRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/billing/pricing")
async def pricing(services: AppServices = Depends(get_services)):
    return {key: plan.to_dict() for key, plan in services.pricing.items()}


@router.post("/billing/checkout")
async def create_checkout(
    payload: CheckoutRequest,
    user: CurrentUser = Depends(current_user),
    services: AppServices = Depends(get_services),
):
    payments = require(services.payments, "Payments")
    if user.is_premium:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subscription is already active.")
    price_id = services.pricing["premium"].price_id
    if not price_id:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Premium price is not configured.")

    result = await payments.create_checkout_session(
        price_id=price_id,
        user_id=user.id,
        success_url=payload.success_url or settings.checkout_success_url,
        cancel_url=payload.cancel_url or settings.checkout_cancel_url,
        customer_email=user.email,
    )
    if not result.success:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return result.data


@router.get("/billing/subscription")
async def subscription(user: CurrentUser = Depends(current_user), services: AppServices = Depends(get_services)):
    profile = user.profile
    if profile is None or not profile.stripe_subscription_id:
        return {"status": profile.subscription_status if profile else "free", "subscription": None}
    payments = require(services.payments, "Payments")
    result = await payments.get_subscription(profile.stripe_subscription_id)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return {"status": profile.subscription_status, "subscription": result.data}


@router.post("/billing/webhook")
async def webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    services: AppServices = Depends(get_services),
):
    payments = require(services.payments, "Payments")
    billing = require(services.billing, "Database")
    body = await request.body()
    try:
        event = payments.construct_event(body, stripe_signature)
    except WebhookError as exc:
        logger.warning("billing_webhook_rejected: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    try:
        outcome = await billing.apply(event)
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    return {"received": True, "outcome": outcome}
