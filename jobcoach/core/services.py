from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from jobcoach.ai.factory import get_text_generator
from jobcoach.ai.types import TextGenerator
from jobcoach.auth.provider import IdentityProvider
from jobcoach.auth.supabase_provider import SupabaseIdentityProvider
from jobcoach.core.config import Settings
from jobcoach.db.gateway import DataGateway
from jobcoach.db.supabase_gateway import create_supabase_gateway
from jobcoach.integrations.payments import Plan, StripePayments, build_pricing
from jobcoach.maintenance.health import DatabaseHealthCheck
from jobcoach.maintenance.retention import DatabaseMaintenance, RetentionPolicy
from jobcoach.services.billing import BillingEvents
from jobcoach.services.cv_intake import CVIntake
from jobcoach.services.usage import UsageGate

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    pricing: dict[str, Plan]
    gateway: DataGateway | None = None
    identity: IdentityProvider | None = None
    text_generator: TextGenerator | None = None
    payments: StripePayments | None = None
    maintenance: DatabaseMaintenance | None = None
    health_check: DatabaseHealthCheck | None = None
    usage: UsageGate | None = None
    cv_intake: CVIntake | None = None
    billing: BillingEvents | None = None


def wire_services(
    settings: Settings,
    *,
    gateway: DataGateway | None,
    identity: IdentityProvider | None = None,
    text_generator: TextGenerator | None = None,
    payments: StripePayments | None = None,
) -> AppServices:
    pricing = build_pricing(settings.stripe_premium_price_id)
    services = AppServices(
        pricing=pricing,
        gateway=gateway,
        identity=identity,
        text_generator=text_generator,
        payments=payments,
    )
    if gateway is not None:
        services.maintenance = DatabaseMaintenance(gateway, RetentionPolicy.from_settings(settings))
        services.health_check = DatabaseHealthCheck(gateway)
        services.usage = UsageGate(gateway, pricing)
        services.cv_intake = CVIntake(
            gateway,
            bucket=settings.cv_storage_bucket,
            max_upload_bytes=settings.max_upload_bytes,
        )
        services.billing = BillingEvents(gateway, pricing)
    return services


async def build_services(settings: Settings) -> AppServices:
    gateway = None
    identity = None
    if settings.supabase_url and settings.supabase_service_role_key:
        gateway = await create_supabase_gateway(settings.supabase_url, settings.supabase_service_role_key)
        if settings.supabase_anon_key:
            identity = SupabaseIdentityProvider(
                settings.supabase_url,
                settings.supabase_anon_key,
                admin_client=gateway.client,
            )
    else:
        logger.warning("supabase_not_configured; data endpoints are disabled")

    text_generator = get_text_generator()
    if text_generator is None:
        logger.warning("openai_not_configured; analysis endpoints are disabled")

    payments = None
    if settings.stripe_secret_key:
        payments = StripePayments(settings.stripe_secret_key, settings.stripe_webhook_secret)
    else:
        logger.warning("stripe_not_configured; billing endpoints are disabled")

    return wire_services(
        settings,
        gateway=gateway,
        identity=identity,
        text_generator=text_generator,
        payments=payments,
    )


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is starting up.")
    return services


def require(component, name: str):
    if component is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} is not configured.",
        )
    return component
