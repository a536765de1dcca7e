"""In-memory stand-ins for the Supabase gateway, Supabase Auth and OpenAI."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Sequence

from jobcoach.ai.types import CompletionResult
from jobcoach.auth.provider import AuthError, AuthEventHub, AuthSession, AuthUser
from jobcoach.db.gateway import Condition, Filter, GatewayError


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return value
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return value


def _matches(row: dict[str, Any], condition: Condition) -> bool:
    value = row.get(condition.column)
    if condition.op == "eq":
        return value == condition.value
    if condition.op == "is_null":
        return value is None
    if condition.op == "in":
        return value in condition.value
    if value is None:
        return False
    if condition.op == "lt":
        return _comparable(value) < _comparable(condition.value)
    if condition.op == "gte":
        return _comparable(value) >= _comparable(condition.value)
    raise ValueError(condition.op)


class InMemoryGateway:
    def __init__(
        self,
        data: dict[str, list[dict[str, Any]]] | None = None,
        *,
        fail_all: bool = False,
        fail_tables: Sequence[str] = (),
        fail_remove: bool = False,
        error_message: str = "connection refused",
    ):
        self.tables: dict[str, list[dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (data or {}).items()
        }
        self.fail_all = fail_all
        self.fail_tables = set(fail_tables)
        self.fail_remove = fail_remove
        self.error_message = error_message
        self.uploads: dict[tuple[str, str], bytes] = {}
        self.removed: list[tuple[str, list[str]]] = []

    def _guard(self, table: str) -> None:
        if self.fail_all or table in self.fail_tables:
            raise GatewayError(self.error_message)

    def _rows(self, table: str, filter: Filter | None) -> list[dict[str, Any]]:
        rows = self.tables.get(table, [])
        if not filter:
            return list(rows)
        return [row for row in rows if all(_matches(row, c) for c in filter.conditions)]

    async def select(self, table, filter=None, *, columns="*", limit=None):
        self._guard(table)
        rows = self._rows(table, filter)
        if limit is not None:
            rows = rows[:limit]
        if columns.strip() != "*":
            wanted = [name.strip() for name in columns.split(",")]
            rows = [{name: row.get(name) for name in wanted} for row in rows]
        return [dict(row) for row in rows]

    async def count(self, table, filter=None):
        self._guard(table)
        return len(self._rows(table, filter))

    async def insert(self, table, rows):
        self._guard(table)
        payload = [rows] if isinstance(rows, dict) else list(rows)
        stored = []
        for row in payload:
            record = dict(row)
            record.setdefault("id", uuid.uuid4().hex)
            record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            self.tables.setdefault(table, []).append(record)
            stored.append(dict(record))
        return stored

    async def update(self, table, values, filter):
        self._guard(table)
        updated = []
        for row in self._rows(table, filter):
            row.update(values)
            updated.append(dict(row))
        return updated

    async def delete(self, table, filter):
        self._guard(table)
        doomed = {id(row) for row in self._rows(table, filter)}
        before = len(self.tables.get(table, []))
        self.tables[table] = [row for row in self.tables.get(table, []) if id(row) not in doomed]
        return before - len(self.tables[table])

    async def upload(self, bucket, path, content, content_type):
        if self.fail_all:
            raise GatewayError(self.error_message)
        self.uploads[(bucket, path)] = content
        return path

    async def remove(self, bucket, paths):
        if self.fail_all or self.fail_remove:
            raise GatewayError("storage unavailable")
        self.removed.append((bucket, list(paths)))
        for path in paths:
            self.uploads.pop((bucket, path), None)


class FakeIdentityProvider:
    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, AuthUser]] = {}
        self.tokens: dict[str, AuthUser] = {}
        self.revoked: list[str] = []
        self.reset_requests: list[str] = []
        self._events = AuthEventHub()

    def on_auth_state_change(self, listener):
        return self._events.subscribe(listener)

    def _issue(self, user: AuthUser) -> AuthSession:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = user
        return AuthSession(user=user, access_token=token, refresh_token=f"refresh-{token}", expires_at=4102444800)

    async def sign_up(self, email, password, metadata=None):
        if email in self.accounts:
            raise AuthError("User already registered")
        user = AuthUser(id=uuid.uuid4().hex, email=email, metadata=dict(metadata or {}))
        self.accounts[email] = (password, user)
        session = self._issue(user)
        self._events.emit("SIGNED_IN", session)
        return session

    async def sign_in(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials")
        session = self._issue(account[1])
        self._events.emit("SIGNED_IN", session)
        return session

    async def sign_out(self, access_token):
        if self.tokens.pop(access_token, None) is None:
            raise AuthError("Invalid or expired token")
        self.revoked.append(access_token)
        self._events.emit("SIGNED_OUT", None)

    async def reset_password(self, email, redirect_to=None):
        self.reset_requests.append(email)

    async def get_user(self, access_token):
        user = self.tokens.get(access_token)
        if user is None:
            raise AuthError("Invalid or expired token")
        return user


class FakeTextGenerator:
    def __init__(self, payload: Any = None, *, error: str | None = None):
        self.payload = payload
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def complete(self, system_prompt, user_content, max_tokens=1500, *, json_mode=False):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_content": user_content,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        if self.error is not None:
            return CompletionResult(success=False, error=self.error)
        content = self.payload if isinstance(self.payload, str) else json.dumps(self.payload)
        return CompletionResult(success=True, content=content, usage={"total_tokens": 42})


ANALYSIS_PAYLOAD = {
    "matchScore": 78,
    "keywordMatch": {"matched": ["Python", "SQL"], "missing": ["Kubernetes"]},
    "strengths": ["Strong backend experience"],
    "improvements": ["Quantify impact of migrations"],
    "atsCompatibility": {"score": 85, "issues": ["Tables in header"]},
}

INTERVIEW_PAYLOAD = {
    "behavioral": ["Tell me about a conflict you resolved."],
    "technical": ["How would you design an idempotent payment API?"],
    "situational": ["What if a deploy breaks checkout at 2am?"],
    "roleSpecific": ["How do you profile a slow Postgres query?"],
}

OPTIMIZATION_PAYLOAD = {
    "suggestions": [
        {
            "section": "Experience",
            "original": "Worked on APIs",
            "improved": "Built Python APIs serving 1.2M users",
            "reason": "Adds scope and a metric",
        }
    ],
    "keywordEnhancements": ["distributed systems"],
    "structuralChanges": ["Move skills above education"],
}
