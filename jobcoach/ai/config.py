from dataclasses import dataclass

from jobcoach.core.config import settings


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    temperature: float
    timeout_s: float
    max_retries: int
    api_key: str | None


def load_ai_config() -> AIConfig:
    return AIConfig(
        provider=settings.ai_provider,
        model=settings.ai_model.strip(),
        temperature=settings.ai_temperature,
        timeout_s=settings.ai_timeout_s,
        max_retries=settings.ai_max_retries,
        api_key=(settings.openai_api_key or "").strip() or None,
    )
