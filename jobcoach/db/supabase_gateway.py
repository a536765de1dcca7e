from __future__ import annotations

import logging
from typing import Any, Sequence

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from jobcoach.db.gateway import Filter, GatewayError, Row

logger = logging.getLogger(__name__)


def _error_message(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


def _apply_filter(query: Any, filter: Filter | None) -> Any:
    if not filter:
        return query
    for condition in filter.conditions:
        if condition.op == "eq":
            query = query.eq(condition.column, condition.value)
        elif condition.op == "lt":
            query = query.lt(condition.column, condition.value)
        elif condition.op == "gte":
            query = query.gte(condition.column, condition.value)
        elif condition.op == "in":
            query = query.in_(condition.column, list(condition.value))
        elif condition.op == "is_null":
            query = query.is_(condition.column, "null")
        else:
            raise ValueError(f"Unsupported filter operator '{condition.op}'")
    return query


class SupabaseGateway:
    """DataGateway backed by the async Supabase client (PostgREST + Storage)."""

    def __init__(self, client: AsyncClient):
        self._client = client

    @property
    def client(self) -> AsyncClient:
        return self._client

    async def select(
        self,
        table: str,
        filter: Filter | None = None,
        *,
        columns: str = "*",
        limit: int | None = None,
    ) -> list[Row]:
        query = _apply_filter(self._client.table(table).select(columns), filter)
        if limit is not None:
            query = query.limit(limit)
        try:
            response = await query.execute()
        except Exception as exc:
            raise GatewayError(_error_message(exc)) from exc
        return list(response.data or [])

    async def count(self, table: str, filter: Filter | None = None) -> int:
        query = _apply_filter(self._client.table(table).select("*", count="exact", head=True), filter)
        try:
            response = await query.execute()
        except Exception as exc:
            raise GatewayError(_error_message(exc)) from exc
        return int(response.count or 0)

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        payload = [rows] if isinstance(rows, dict) else list(rows)
        try:
            response = await self._client.table(table).insert(payload).execute()
        except Exception as exc:
            raise GatewayError(_error_message(exc)) from exc
        return list(response.data or [])

    async def update(self, table: str, values: Row, filter: Filter) -> list[Row]:
        if not filter:
            raise GatewayError(f"Refusing unfiltered update on '{table}'")
        query = _apply_filter(self._client.table(table).update(values), filter)
        try:
            response = await query.execute()
        except Exception as exc:
            raise GatewayError(_error_message(exc)) from exc
        return list(response.data or [])

    async def delete(self, table: str, filter: Filter) -> int:
        if not filter:
            raise GatewayError(f"Refusing unfiltered delete on '{table}'")
        query = _apply_filter(self._client.table(table).delete(count="exact"), filter)
        try:
            response = await query.execute()
        except Exception as exc:
            raise GatewayError(_error_message(exc)) from exc
        if response.count is not None:
            return int(response.count)
        return len(response.data or [])

    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        try:
            await self._client.storage.from_(bucket).upload(
                path,
                content,
                {"content-type": content_type, "upsert": "false"},
            )
        except Exception as exc:
            raise GatewayError(_error_message(exc)) from exc
        return path

    async def remove(self, bucket: str, paths: Sequence[str]) -> None:
        if not paths:
            return
        try:
            await self._client.storage.from_(bucket).remove(list(paths))
        except Exception as exc:
            raise GatewayError(_error_message(exc)) from exc


async def create_supabase_client(url: str, key: str) -> AsyncClient:
    options = AsyncClientOptions(persist_session=False, auto_refresh_token=False)
    return await acreate_client(url, key, options=options)


async def create_supabase_gateway(url: str, key: str) -> SupabaseGateway:
    client = await create_supabase_client(url, key)
    logger.info("supabase_gateway_ready url=%s", url)
    return SupabaseGateway(client)
