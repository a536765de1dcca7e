from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from supabase import AsyncClient

from jobcoach.auth.provider import AuthError, AuthEventHub, AuthListener, AuthSession, AuthUser
from jobcoach.db.supabase_gateway import create_supabase_client

logger = logging.getLogger(__name__)


def _message(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or "Authentication failed"


def _to_user(user: Any) -> AuthUser:
    return AuthUser(
        id=str(user.id),
        email=getattr(user, "email", None),
        metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


def _to_session(response: Any) -> AuthSession:
    user = getattr(response, "user", None)
    if user is None:
        raise AuthError("Authentication response did not include a user.")
    session = getattr(response, "session", None)
    return AuthSession(
        user=_to_user(user),
        access_token=getattr(session, "access_token", None),
        refresh_token=getattr(session, "refresh_token", None),
        expires_at=getattr(session, "expires_at", None),
    )


class SupabaseIdentityProvider:
    """Supabase Auth adapter.

    User-facing calls share one lazily created anon-key client. It never
    persists or refreshes sessions, and every session is read from the call's
    own response. Token revocation goes through the admin API of the
    service-role client.
    """

    def __init__(self, url: str, anon_key: str, admin_client: AsyncClient | None = None):
        self._url = url
        self._anon_key = anon_key
        self._admin_client = admin_client
        self._anon_client: AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self._events = AuthEventHub()

    async def _client(self) -> AsyncClient:
        if self._anon_client is None:
            async with self._client_lock:
                if self._anon_client is None:
                    self._anon_client = await create_supabase_client(self._url, self._anon_key)
        return self._anon_client

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        return self._events.subscribe(listener)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        client = await self._client()
        try:
            response = await client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            raise AuthError(_message(exc)) from exc
        session = _to_session(response)
        self._events.emit("SIGNED_IN", session)
        return session

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any] | None = None) -> AuthSession:
        client = await self._client()
        try:
            response = await client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": metadata or {}}}
            )
        except Exception as exc:
            raise AuthError(_message(exc)) from exc
        session = _to_session(response)
        if session.access_token:
            self._events.emit("SIGNED_IN", session)
        return session

    async def sign_out(self, access_token: str) -> None:
        if self._admin_client is None:
            raise AuthError("Sign-out requires the service role client.")
        try:
            await self._admin_client.auth.admin.sign_out(access_token)
        except Exception as exc:
            raise AuthError(_message(exc)) from exc
        self._events.emit("SIGNED_OUT", None)

    async def reset_password(self, email: str, redirect_to: str | None = None) -> None:
        client = await self._client()
        options = {"redirect_to": redirect_to} if redirect_to else {}
        try:
            await client.auth.reset_password_for_email(email, options)
        except Exception as exc:
            raise AuthError(_message(exc)) from exc
        self._events.emit("PASSWORD_RECOVERY", None)

    async def get_user(self, access_token: str) -> AuthUser:
        client = self._admin_client or await self._client()
        try:
            response = await client.auth.get_user(access_token)
        except Exception as exc:
            raise AuthError(_message(exc)) from exc
        if response is None or response.user is None:
            raise AuthError("Invalid or expired token")
        return _to_user(response.user)
