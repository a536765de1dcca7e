import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from jobcoach.api.v1.health import router as health_router
from jobcoach.api.v1.diagnostics import router as diagnostics_router
from jobcoach.api.v1.maintenance import router as maintenance_router
from jobcoach.api.v1.auth import router as auth_router
from jobcoach.api.v1.documents import router as documents_router
from jobcoach.api.v1.analysis import router as analysis_router
from jobcoach.api.v1.billing import router as billing_router
from jobcoach.core.rate_limit import limiter
from jobcoach.core.config import settings
from jobcoach.core.lifespan import lifespan

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.environment, release=settings.app_version)

app = FastAPI(title="JobCoach API", version=settings.app_version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(diagnostics_router, prefix="/v1", tags=["Health"])
app.include_router(maintenance_router, prefix="/v1", tags=["Maintenance"])
app.include_router(auth_router, prefix="/v1", tags=["Auth"])
app.include_router(documents_router, prefix="/v1", tags=["Documents"])
app.include_router(analysis_router, prefix="/v1", tags=["Analysis"])
app.include_router(billing_router, prefix="/v1", tags=["Billing"])
