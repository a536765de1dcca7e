from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    environment: str
    app_version: str
    api_key: str | None
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    auth_rate_limit: str
    rate_limit_enabled: bool
    cors_allowed_origins: tuple[str, ...]
    cors_allow_credentials: bool
    supabase_url: str | None
    supabase_anon_key: str | None
    supabase_service_role_key: str | None
    cv_storage_bucket: str
    max_upload_bytes: int
    openai_api_key: str | None
    ai_provider: str
    ai_model: str
    ai_temperature: float
    ai_timeout_s: float
    ai_max_retries: int
    stripe_publishable_key: str | None
    stripe_secret_key: str | None
    stripe_webhook_secret: str | None
    stripe_premium_price_id: str | None
    checkout_success_url: str
    checkout_cancel_url: str
    guest_session_retention_hours: int
    free_cv_retention_days: int
    free_analysis_retention_days: int
    analysis_archive_table: str | None
    maintenance_scheduler_enabled: bool
    maintenance_interval_seconds: int
    backup_dir: str
    backup_retention_days: int


settings = Settings(
    environment=_get_env("APP_ENV", "development") or "development",
    app_version=_get_env("APP_VERSION", "1.0.0") or "1.0.0",
    api_key=_get_env("API_KEY"),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    auth_rate_limit=_get_env("AUTH_RATE_LIMIT", "10/minute") or "10/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
    ),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
    supabase_url=_get_env("SUPABASE_URL"),
    supabase_anon_key=_get_env("SUPABASE_ANON_KEY"),
    supabase_service_role_key=_get_env("SUPABASE_SERVICE_ROLE_KEY"),
    cv_storage_bucket=_get_env("CV_STORAGE_BUCKET", "cv-uploads") or "cv-uploads",
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
    openai_api_key=_get_env("OPENAI_API_KEY"),
    ai_provider=(_get_env("AI_PROVIDER", "openai") or "openai").strip().lower(),
    ai_model=_get_env("AI_MODEL", "gpt-3.5-turbo") or "gpt-3.5-turbo",
    ai_temperature=_get_env_float("AI_TEMPERATURE", 0.3),
    ai_timeout_s=_get_env_float("OPENAI_TIMEOUT_S", 30.0),
    ai_max_retries=_get_env_int("OPENAI_MAX_RETRIES", 2),
    stripe_publishable_key=_get_env("STRIPE_PUBLISHABLE_KEY"),
    stripe_secret_key=_get_env("STRIPE_SECRET_KEY"),
    stripe_webhook_secret=_get_env("STRIPE_WEBHOOK_SECRET"),
    stripe_premium_price_id=_get_env("STRIPE_PREMIUM_PRICE_ID"),
    checkout_success_url=_get_env("CHECKOUT_SUCCESS_URL", "http://localhost:3000/dashboard?checkout=success")
    or "http://localhost:3000/dashboard?checkout=success",
    checkout_cancel_url=_get_env("CHECKOUT_CANCEL_URL", "http://localhost:3000/pricing?checkout=cancelled")
    or "http://localhost:3000/pricing?checkout=cancelled",
    guest_session_retention_hours=_get_env_int("GUEST_SESSION_RETENTION_HOURS", 24),
    free_cv_retention_days=_get_env_int("FREE_CV_RETENTION_DAYS", 30),
    free_analysis_retention_days=_get_env_int("FREE_ANALYSIS_RETENTION_DAYS", 90),
    analysis_archive_table=_get_env("ANALYSIS_ARCHIVE_TABLE"),
    maintenance_scheduler_enabled=_get_env_bool("MAINTENANCE_SCHEDULER_ENABLED", False),
    maintenance_interval_seconds=_get_env_int("MAINTENANCE_INTERVAL_SECONDS", 24 * 3600),
    backup_dir=_get_env("BACKUP_DIR", "data/backups") or "data/backups",
    backup_retention_days=_get_env_int("BACKUP_RETENTION_DAYS", 30),
)

if settings.maintenance_interval_seconds < 60:
    raise RuntimeError("MAINTENANCE_INTERVAL_SECONDS must be at least 60.")
