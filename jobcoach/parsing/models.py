from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

SourceType = Literal["pdf", "docx", "txt"]


class TextSection(BaseModel):
    """A paragraph (DOCX) or page (PDF) of extracted CV text."""

    text: str
    page: int | None = None


class ExtractedCV(BaseModel):
    fingerprint: str
    source_type: SourceType
    text: str
    sections: list[TextSection] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @field_validator("source_type", mode="before")
    @classmethod
    def _normalize_source_type(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def page_count(self) -> int:
        pages = {section.page for section in self.sections if section.page is not None}
        return len(pages)

    def failure_reason(self) -> str:
        return "; ".join(self.warnings) or "No text could be extracted."
