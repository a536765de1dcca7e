import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from jobcoach.api.v1.deps import current_user, gateway_failure
from jobcoach.auth.context import CurrentUser, IdentityContext
from jobcoach.auth.provider import AuthError
from jobcoach.core.config import settings
from jobcoach.core.rate_limit import rate_limit
from jobcoach.core.security import bearer_token
from jobcoach.core.services import AppServices, get_services, require
from jobcoach.db.gateway import GatewayError
from jobcoach.schemas.api import ResetPasswordRequest, SignInRequest, SignUpRequest

router = APIRouter()
logger = logging.getLogger(__name__)


def _context(services: AppServices) -> IdentityContext:
    return IdentityContext(require(services.identity, "Authentication"), require(services.gateway, "Database"))


@router.post("/auth/sign-up")
@rate_limit(settings.auth_rate_limit)
async def sign_up(request: Request, payload: SignUpRequest, services: AppServices = Depends(get_services)):
    _ = request
    context = _context(services)
    try:
        await context.sign_up(payload.email, payload.password, full_name=payload.full_name)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    return context.snapshot()


@router.post("/auth/sign-in")
@rate_limit(settings.auth_rate_limit)
async def sign_in(request: Request, payload: SignInRequest, services: AppServices = Depends(get_services)):
    _ = request
    context = _context(services)
    try:
        await context.sign_in(payload.email, payload.password)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except GatewayError as exc:
        raise gateway_failure(exc) from exc
    return context.snapshot()


@router.post("/auth/sign-out")
async def sign_out(
    authorization: str | None = Header(default=None),
    services: AppServices = Depends(get_services),
):
    token = bearer_token(authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid token")
    identity = require(services.identity, "Authentication")
    try:
        await identity.sign_out(token)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return {"status": "signed_out"}


@router.post("/auth/reset-password")
@rate_limit(settings.auth_rate_limit)
async def reset_password(request: Request, payload: ResetPasswordRequest, services: AppServices = Depends(get_services)):
    _ = request
    identity = require(services.identity, "Authentication")
    try:
        await identity.reset_password(payload.email, payload.redirect_to)
    except AuthError as exc:
        # Do not reveal whether the address exists.
        logger.info("auth_reset_password_failed: %s", exc)
    return {"status": "ok", "message": "If the address is registered, a reset link has been sent."}


@router.get("/auth/me")
async def me(user: CurrentUser = Depends(current_user)):
    return {
        "user": {"id": user.id, "email": user.email},
        "profile": user.profile.model_dump(mode="json") if user.profile else None,
    }
