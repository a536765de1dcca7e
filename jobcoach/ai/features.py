from __future__ import annotations

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from jobcoach.ai import prompts
from jobcoach.ai.types import TextGenerator
from jobcoach.schemas.ai import CVAnalysisResult, CVOptimizationSuggestions, InterviewQuestions
from jobcoach.utils.text import truncate_text

logger = logging.getLogger(__name__)

MAX_SECTION_CHARS = 12000

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class AIResponseError(RuntimeError):
    def __init__(self, message: str, *, code: str = "llm_unavailable"):
        super().__init__(message)
        self.code = code


def _section(title: str, body: str | None) -> str:
    text = truncate_text((body or "").strip(), MAX_SECTION_CHARS)
    return f"{title}:\n{text}" if text else ""


def _user_content(*sections: str) -> str:
    return "\n\n".join(section for section in sections if section)


async def _generate(
    generator: TextGenerator,
    *,
    feature: str,
    user_content: str,
    model: type[PayloadT],
    max_tokens: int,
) -> PayloadT:
    result = await generator.complete(prompts.PROMPTS[feature], user_content, max_tokens, json_mode=True)
    if not result.success:
        raise AIResponseError(result.error or "Unknown error occurred", code="llm_unavailable")
    if not result.content.strip():
        raise AIResponseError("The AI service returned an empty response.", code="empty_response")
    try:
        return model.model_validate(json.loads(result.content))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("ai_payload_invalid feature=%s content_len=%s: %s", feature, len(result.content), exc)
        raise AIResponseError("The AI service returned an invalid response. Try again.", code="llm_invalid") from exc


async def analyze_cv(
    generator: TextGenerator,
    cv_text: str,
    job_description: str,
    *,
    requirements: str | None = None,
) -> CVAnalysisResult:
    content = _user_content(
        _section("CV", cv_text),
        _section("Job Description", job_description),
        _section("Requirements", requirements),
    )
    return await _generate(
        generator,
        feature="cv_analysis",
        user_content=content,
        model=CVAnalysisResult,
        max_tokens=1500,
    )


async def generate_interview_questions(
    generator: TextGenerator,
    job_description: str,
    *,
    job_title: str | None = None,
    cv_text: str | None = None,
) -> InterviewQuestions:
    content = _user_content(
        _section("Role", job_title),
        _section("Job Description", job_description),
        _section("Candidate CV", cv_text),
    )
    return await _generate(
        generator,
        feature="interview_questions",
        user_content=content,
        model=InterviewQuestions,
        max_tokens=1200,
    )


async def optimize_cv(
    generator: TextGenerator,
    cv_text: str,
    job_description: str | None = None,
) -> CVOptimizationSuggestions:
    content = _user_content(
        _section("CV", cv_text),
        _section("Job Description", job_description),
    )
    return await _generate(
        generator,
        feature="cv_optimization",
        user_content=content,
        model=CVOptimizationSuggestions,
        max_tokens=2000,
    )
