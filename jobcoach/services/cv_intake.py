from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import PurePath

from jobcoach.db import tables
from jobcoach.db.gateway import DataGateway, GatewayError
from jobcoach.parsing.parse import SUPPORTED_EXTENSIONS, UnsupportedDocumentError, parse_document
from jobcoach.schemas.entities import CVDocument
from jobcoach.utils.text import format_file_size, is_within_size, safe_filename, sanitize_text

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
}


class CVIntake:
    def __init__(self, gateway: DataGateway, *, bucket: str, max_upload_bytes: int):
        self._gateway = gateway
        self._bucket = bucket
        self._max_upload_bytes = max_upload_bytes

    def validate(self, filename: str, content: bytes) -> str:
        extension = PurePath(filename or "").suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedDocumentError("Only PDF, DOCX and TXT files are supported.")
        if not is_within_size(len(content), self._max_upload_bytes):
            raise UnsupportedDocumentError(
                f"File must be between 1 byte and {format_file_size(self._max_upload_bytes)}."
            )
        return extension

    async def _discard_upload(self, object_path: str) -> None:
        try:
            await self._gateway.remove(self._bucket, [object_path])
        except GatewayError as exc:
            logger.warning("cv_upload_orphaned bucket=%s path=%s: %s", self._bucket, object_path, exc)

    async def store(self, user_id: str, filename: str, content: bytes, *, title: str | None = None) -> CVDocument:
        extension = self.validate(filename, content)
        parsed = parse_document(filename, content)
        text = sanitize_text(parsed.text).strip()
        if not text:
            raise UnsupportedDocumentError(parsed.failure_reason())

        now = datetime.now(timezone.utc)
        object_path = f"{user_id}/{now.strftime('%Y%m%d_%H%M%S')}_{safe_filename(filename)}"
        await self._gateway.upload(self._bucket, object_path, content, CONTENT_TYPES[extension])

        try:
            rows = await self._gateway.insert(
                tables.CV_DOCUMENTS,
                {
                    "user_id": user_id,
                    "title": (title or PurePath(filename).stem or "CV")[:200],
                    "content": text,
                    "file_url": object_path,
                    "file_type": parsed.source_type,
                    "created_at": now.isoformat(),
                    "updated_at": now.isoformat(),
                },
            )
            if not rows:
                raise GatewayError("CV document insert returned no row.")
        except GatewayError:
            await self._discard_upload(object_path)
            raise
        logger.info(
            "cv_stored user_id=%s type=%s words=%s warnings=%s",
            user_id,
            parsed.source_type,
            parsed.word_count,
            len(parsed.warnings),
        )
        return CVDocument.model_validate(rows[0])
