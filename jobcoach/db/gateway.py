from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal, Protocol, Sequence

Operator = Literal["eq", "lt", "gte", "in", "is_null"]
Row = dict[str, Any]


class GatewayError(RuntimeError):
    """Raised for any failure reported by the backing data store or file storage."""


@dataclass(frozen=True)
class Condition:
    column: str
    op: Operator
    value: Any = None


@dataclass(frozen=True)
class Filter:
    """Immutable set of AND-ed column conditions.

    Each builder method returns a new filter, so a base filter can be shared
    between queries without leaking conditions.
    """

    conditions: tuple[Condition, ...] = ()

    def _with(self, condition: Condition) -> "Filter":
        return Filter(self.conditions + (condition,))

    def eq(self, column: str, value: Any) -> "Filter":
        return self._with(Condition(column, "eq", value))

    def lt(self, column: str, value: Any) -> "Filter":
        return self._with(Condition(column, "lt", value))

    def gte(self, column: str, value: Any) -> "Filter":
        return self._with(Condition(column, "gte", value))

    def in_(self, column: str, values: Iterable[Any]) -> "Filter":
        return self._with(Condition(column, "in", tuple(values)))

    def is_null(self, column: str) -> "Filter":
        return self._with(Condition(column, "is_null"))

    def __bool__(self) -> bool:
        return bool(self.conditions)


class DataGateway(Protocol):
    async def select(
        self,
        table: str,
        filter: Filter | None = None,
        *,
        columns: str = "*",
        limit: int | None = None,
    ) -> list[Row]: ...

    async def count(self, table: str, filter: Filter | None = None) -> int: ...

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]: ...

    async def update(self, table: str, values: Row, filter: Filter) -> list[Row]: ...

    async def delete(self, table: str, filter: Filter) -> int: ...

    async def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str: ...

    async def remove(self, bucket: str, paths: Sequence[str]) -> None: ...
