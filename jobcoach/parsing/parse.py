from __future__ import annotations

import hashlib
from io import BytesIO
from pathlib import PurePath
from typing import Callable

from docx import Document
from pypdf import PdfReader

from .models import ExtractedCV, SourceType, TextSection

SUPPORTED_EXTENSIONS = (".txt", ".pdf", ".docx")

Extraction = tuple[str, list[TextSection], list[str]]


class UnsupportedDocumentError(ValueError):
    pass


def _fingerprint(text: str, content: bytes) -> str:
    seed = text.encode("utf-8", errors="ignore") if text.strip() else content
    return hashlib.sha256(seed).hexdigest()[:16]


def _from_txt(content: bytes) -> Extraction:
    return content.decode("utf-8", errors="replace"), [], []


def _from_pdf(content: bytes) -> Extraction:
    try:
        reader = PdfReader(BytesIO(content))
        sections = []
        for number, page in enumerate(reader.pages, start=1):
            text = (page.extract_text() or "").strip()
            if text:
                sections.append(TextSection(page=number, text=text))
    except Exception as exc:
        return "", [], [f"PDF parsing failed: {exc}"]
    if not sections:
        return "", [], ["No extractable text found in PDF."]
    return "\n".join(section.text for section in sections), sections, []


def _from_docx(content: bytes) -> Extraction:
    try:
        document = Document(BytesIO(content))
        sections = [TextSection(text=p.text.strip()) for p in document.paragraphs if p.text and p.text.strip()]
    except Exception as exc:
        return "", [], [f"DOCX parsing failed: {exc}"]
    if not sections:
        return "", [], ["No extractable text found in DOCX."]
    return "\n".join(section.text for section in sections), sections, []


_EXTRACTORS: dict[str, tuple[SourceType, Callable[[bytes], Extraction]]] = {
    ".txt": ("txt", _from_txt),
    ".pdf": ("pdf", _from_pdf),
    ".docx": ("docx", _from_docx),
}


def parse_document(filename: str, content: bytes) -> ExtractedCV:
    """Extract plain text from an uploaded CV.

    Corrupt or image-only files do not raise; they come back with empty
    text and a warning. Only an unknown extension is an error.
    """
    extension = PurePath(filename or "").suffix.lower()
    if extension not in _EXTRACTORS:
        raise UnsupportedDocumentError(
            f"Unsupported file type '{extension or filename}'. Supported types: .txt, .pdf, .docx"
        )
    source_type, extract = _EXTRACTORS[extension]
    text, sections, warnings = extract(content)
    return ExtractedCV(
        fingerprint=_fingerprint(text, content),
        source_type=source_type,
        text=text,
        sections=sections,
        warnings=warnings,
    )
