from __future__ import annotations

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from jobcoach.core.config import settings


def client_ip(request: Request) -> str:
    # First hop of X-Forwarded-For when running behind a proxy.
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(key_func=client_ip, enabled=settings.rate_limit_enabled)


def rate_limit(limit: str | None = None):
    if not settings.rate_limit_enabled:
        def decorator(func):
            return func

        return decorator
    return limiter.limit(limit or settings.rate_limit)
