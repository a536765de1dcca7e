from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from jobcoach.auth.context import CurrentUser, resolve_user
from jobcoach.auth.provider import AuthError
from jobcoach.core.security import bearer_token, check_api_key
from jobcoach.core.services import AppServices, get_services, require
from jobcoach.db.gateway import GatewayError


def api_key_auth(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    check_api_key(x_api_key)


async def optional_user(
    authorization: str | None = Header(default=None),
    services: AppServices = Depends(get_services),
) -> CurrentUser | None:
    token = bearer_token(authorization)
    if token is None:
        return None
    identity = require(services.identity, "Authentication")
    gateway = require(services.gateway, "Database")
    try:
        return await resolve_user(identity, gateway, token)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except GatewayError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


async def current_user(user: CurrentUser | None = Depends(optional_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid token")
    return user


def gateway_failure(exc: GatewayError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Database error: {exc}")
