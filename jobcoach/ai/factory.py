from jobcoach.ai.config import AIConfig, load_ai_config
from jobcoach.ai.types import TextGenerator

from jobcoach.ai.providers.openai_provider import OpenAITextGenerator


def get_text_generator(cfg: AIConfig | None = None) -> TextGenerator | None:
    cfg = cfg or load_ai_config()
    if not cfg.api_key:
        return None

    if cfg.provider == "openai":
        return OpenAITextGenerator(
            model=cfg.model,
            api_key=cfg.api_key,
            timeout_s=cfg.timeout_s,
            max_retries=cfg.max_retries,
            temperature=cfg.temperature,
        )

    raise ValueError(f"Unsupported AI provider '{cfg.provider}'")
