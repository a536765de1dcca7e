from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Literal

from jobcoach.auth.context import CurrentUser
from jobcoach.db import tables
from jobcoach.db.gateway import DataGateway, Filter
from jobcoach.integrations.payments import UNLIMITED, Plan
from jobcoach.schemas.entities import ActivityType, UserSession

logger = logging.getLogger(__name__)

Feature = Literal["cv_analysis", "interview_questions", "cv_optimization"]
GUEST_WINDOW = timedelta(hours=24)


class UsageLimitExceeded(Exception):
    def __init__(self, feature: str, limit: int, *, guest: bool):
        self.feature = feature
        self.limit = limit
        self.guest = guest
        who = "Guest sessions" if guest else "Free plans"
        super().__init__(f"{who} are limited to {limit} {feature.replace('_', ' ')} request(s). Upgrade to Premium for unlimited access.")


@dataclass(frozen=True)
class Allowance:
    feature: str
    used: int
    limit: int

    @property
    def remaining(self) -> int | None:
        if self.limit == UNLIMITED:
            return None
        return max(0, self.limit - self.used)


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UsageGate:
    """Tier-based allowance checks backed by ``user_sessions`` activity rows.

    Signed-in users are counted per calendar month. Guests are counted over
    the last 24 hours, matching the guest-row retention, both per session id
    and per client IP; the larger count applies.
    """

    def __init__(
        self,
        gateway: DataGateway,
        pricing: dict[str, Plan],
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._gateway = gateway
        self._pricing = pricing
        self._clock = clock

    def _plan(self, user: CurrentUser | None) -> Plan:
        if user is not None and user.is_premium:
            return self._pricing["premium"]
        return self._pricing["free"]

    def _limit(self, user: CurrentUser | None, feature: Feature) -> int:
        if user is not None and user.profile is not None and not user.is_premium:
            return getattr(user.profile.usage_limits, feature, self._plan(user).limit_for(feature))
        return self._plan(user).limit_for(feature)

    async def allowance(
        self,
        feature: Feature,
        *,
        user: CurrentUser | None,
        session_id: str | None,
        ip_address: str | None = None,
    ) -> Allowance:
        limit = self._limit(user, feature)
        if limit == UNLIMITED:
            return Allowance(feature=feature, used=0, limit=limit)
        now = self._clock()
        base = Filter().eq("activity_type", feature)
        if user is not None:
            query = base.eq("user_id", user.id).gte("created_at", _month_start(now).isoformat())
            used = await self._gateway.count(tables.USER_SESSIONS, query)
        elif session_id:
            guest = base.is_null("user_id").gte("created_at", (now - GUEST_WINDOW).isoformat())
            used = await self._gateway.count(tables.USER_SESSIONS, guest.eq("session_id", session_id))
            if ip_address:
                by_ip = await self._gateway.count(tables.USER_SESSIONS, guest.eq("ip_address", ip_address))
                used = max(used, by_ip)
        else:
            return Allowance(feature=feature, used=limit, limit=limit)
        return Allowance(feature=feature, used=used, limit=limit)

    async def ensure_allowed(
        self,
        feature: Feature,
        *,
        user: CurrentUser | None,
        session_id: str | None,
        ip_address: str | None = None,
    ) -> Allowance:
        allowance = await self.allowance(feature, user=user, session_id=session_id, ip_address=ip_address)
        if allowance.remaining == 0:
            logger.info(
                "usage_limit_reached feature=%s user_id=%s session_id=%s ip=%s",
                feature,
                user.id if user else None,
                session_id,
                ip_address,
            )
            raise UsageLimitExceeded(feature, allowance.limit, guest=user is None)
        return allowance

    async def record_activity(
        self,
        activity_type: ActivityType,
        *,
        user: CurrentUser | None,
        session_id: str,
        activity_data: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        activity = UserSession(
            user_id=user.id if user else None,
            session_id=session_id,
            activity_type=activity_type,
            activity_data=activity_data,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await self._gateway.insert(
            tables.USER_SESSIONS,
            {**activity.model_dump(exclude={"id", "created_at"}), "created_at": self._clock().isoformat()},
        )
