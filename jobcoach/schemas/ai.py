from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from jobcoach.utils.text import clamp


def _clamp_score(value: float | int | None) -> int:
    if value is None:
        return 0
    return int(clamp(round(float(value)), 0, 100))


class _AIPayload(BaseModel):
    # The model answers in camelCase; rows and API responses use snake_case.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class KeywordMatch(_AIPayload):
    matched: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)


class ATSCompatibility(_AIPayload):
    score: int = 0
    issues: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value):
        return _clamp_score(value)


class CVAnalysisResult(_AIPayload):
    match_score: int = Field(validation_alias=AliasChoices("match_score", "matchScore"))
    keyword_match: KeywordMatch = Field(
        default_factory=KeywordMatch,
        validation_alias=AliasChoices("keyword_match", "keywordMatch"),
    )
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    ats_compatibility: ATSCompatibility = Field(
        default_factory=ATSCompatibility,
        validation_alias=AliasChoices("ats_compatibility", "atsCompatibility"),
    )

    @field_validator("match_score", mode="before")
    @classmethod
    def _clamp(cls, value):
        return _clamp_score(value)


class InterviewQuestions(_AIPayload):
    behavioral: list[str] = Field(default_factory=list)
    technical: list[str] = Field(default_factory=list)
    situational: list[str] = Field(default_factory=list)
    role_specific: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("role_specific", "roleSpecific"),
    )

    def total(self) -> int:
        return len(self.behavioral) + len(self.technical) + len(self.situational) + len(self.role_specific)


class OptimizationSuggestion(_AIPayload):
    section: str
    original: str = ""
    improved: str
    reason: str = ""


class CVOptimizationSuggestions(_AIPayload):
    suggestions: list[OptimizationSuggestion] = Field(default_factory=list)
    keyword_enhancements: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("keyword_enhancements", "keywordEnhancements"),
    )
    structural_changes: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("structural_changes", "structuralChanges"),
    )
