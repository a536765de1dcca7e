from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, Sequence

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class CompletionResult:
    success: bool
    content: str = ""
    usage: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


class TextGenerator(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        max_tokens: int = 1500,
        *,
        json_mode: bool = False,
    ) -> CompletionResult: ...


def to_payload(messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages]
