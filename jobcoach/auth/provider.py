from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Protocol

AuthEvent = Literal["SIGNED_IN", "SIGNED_OUT", "USER_UPDATED", "PASSWORD_RECOVERY"]


class AuthError(RuntimeError):
    pass


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthSession:
    user: AuthUser
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None


AuthListener = Callable[[AuthEvent, "AuthSession | None"], None]


class IdentityProvider(Protocol):
    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any] | None = None) -> AuthSession: ...

    async def sign_out(self, access_token: str) -> None: ...

    async def reset_password(self, email: str, redirect_to: str | None = None) -> None: ...

    async def get_user(self, access_token: str) -> AuthUser: ...

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]: ...


class AuthEventHub:
    """Fan-out of auth-state events to registered listeners."""

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: AuthEvent, session: AuthSession | None) -> None:
        for listener in list(self._listeners):
            listener(event, session)
