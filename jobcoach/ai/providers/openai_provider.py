from __future__ import annotations

import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from jobcoach.ai.types import ChatMessage, CompletionResult, to_payload

logger = logging.getLogger(__name__)


def _usage_dict(usage: Any) -> dict[str, Any]:
    if usage is None:
        return {}
    if hasattr(usage, "model_dump"):
        return usage.model_dump()
    return dict(usage)


class OpenAITextGenerator:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 2,
        temperature: float = 0.3,
        client: Optional[AsyncOpenAI] = None,
    ):
        self._model = model
        self._temperature = temperature
        if client is not None:
            self._client = client
            return
        key = (api_key or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=base_url,
            timeout=timeout_s,
            max_retries=max_retries,
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        max_tokens: int = 1500,
        *,
        json_mode: bool = False,
    ) -> CompletionResult:
        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=user_content),
        ]
        create_kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": to_payload(messages),
            "max_tokens": max_tokens,
            "temperature": self._temperature,
        }
        if json_mode:
            create_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**create_kwargs)
        except Exception as exc:  # noqa: BLE001 - translated into the result value
            logger.warning("openai_request_failed model=%s prompt_len=%s: %s", self._model, len(user_content), exc)
            return CompletionResult(success=False, error=str(exc) or "Unknown error occurred")

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        return CompletionResult(success=True, content=content, usage=_usage_dict(response.usage))
