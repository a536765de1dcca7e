"""Per-session identity state.

An ``IdentityContext`` owns the signed-in user and their profile row for one
client session. It is built with its collaborators injected, updated either by
its own actions or by auth-state events from the provider, and observed through
``subscribe``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from jobcoach.auth.provider import AuthError, AuthEvent, AuthSession, AuthUser, IdentityProvider
from jobcoach.db import tables
from jobcoach.db.gateway import DataGateway, Filter
from jobcoach.schemas.entities import Profile, UsageLimits

logger = logging.getLogger(__name__)

StateListener = Callable[["IdentityContext"], None]


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str | None
    profile: Profile | None

    @property
    def is_premium(self) -> bool:
        return bool(self.profile and self.profile.is_premium)


async def load_profile(gateway: DataGateway, user_id: str) -> Profile | None:
    rows = await gateway.select(tables.PROFILES, Filter().eq("id", user_id), limit=1)
    if not rows:
        return None
    return Profile.model_validate(rows[0])


async def resolve_user(provider: IdentityProvider, gateway: DataGateway, access_token: str) -> CurrentUser:
    user = await provider.get_user(access_token)
    profile = await load_profile(gateway, user.id)
    return CurrentUser(id=user.id, email=user.email, profile=profile)


class IdentityContext:
    def __init__(self, provider: IdentityProvider, gateway: DataGateway):
        self._provider = provider
        self._gateway = gateway
        self._session: AuthSession | None = None
        self._profile: Profile | None = None
        self._loading = False
        self._listeners: list[StateListener] = []
        self._detach: Callable[[], None] | None = None

    @property
    def user(self) -> AuthUser | None:
        return self._session.user if self._session else None

    @property
    def profile(self) -> Profile | None:
        return self._profile

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def start(self) -> None:
        if self._detach is None:
            self._detach = self._provider.on_auth_state_change(self._handle_auth_event)

    def close(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None
        self._listeners.clear()

    def _handle_auth_event(self, event: AuthEvent, session: AuthSession | None) -> None:
        if event == "SIGNED_OUT":
            self._session = None
            self._profile = None
            self._notify()
        elif event in {"SIGNED_IN", "USER_UPDATED"} and session is not None:
            if self.user is None or self.user.id != session.user.id:
                self._profile = None
            self._session = session
            self._notify()

    async def refresh_profile(self) -> Profile | None:
        if self.user is None:
            self._profile = None
            return None
        self._profile = await load_profile(self._gateway, self.user.id)
        self._notify()
        return self._profile

    async def sign_in(self, email: str, password: str) -> AuthSession:
        self._loading = True
        try:
            self._session = await self._provider.sign_in(email, password)
            await self.refresh_profile()
        finally:
            self._loading = False
        logger.info("auth_sign_in user_id=%s", self._session.user.id)
        return self._session

    async def sign_up(self, email: str, password: str, *, full_name: str | None = None) -> AuthSession:
        metadata: dict[str, Any] = {"full_name": full_name} if full_name else {}
        self._loading = True
        try:
            session = await self._provider.sign_up(email, password, metadata)
            now = datetime.now(timezone.utc).isoformat()
            rows = await self._gateway.insert(
                tables.PROFILES,
                {
                    "id": session.user.id,
                    "email": session.user.email or email,
                    "full_name": full_name,
                    "subscription_status": "free",
                    "usage_limits": UsageLimits().model_dump(),
                    "created_at": now,
                    "updated_at": now,
                },
            )
            self._session = session
            self._profile = Profile.model_validate(rows[0]) if rows else None
            self._notify()
        finally:
            self._loading = False
        logger.info("auth_sign_up user_id=%s confirmed=%s", session.user.id, bool(session.access_token))
        return session

    async def sign_out(self) -> None:
        token = self.access_token
        if not token:
            raise AuthError("No active session.")
        await self._provider.sign_out(token)
        self._session = None
        self._profile = None
        self._notify()

    async def reset_password(self, email: str, redirect_to: str | None = None) -> None:
        await self._provider.reset_password(email, redirect_to)

    def snapshot(self) -> dict[str, Any]:
        return {
            "user": {"id": self.user.id, "email": self.user.email} if self.user else None,
            "profile": self._profile.model_dump(mode="json") if self._profile else None,
            "access_token": self.access_token,
            "refresh_token": self._session.refresh_token if self._session else None,
            "expires_at": self._session.expires_at if self._session else None,
        }
