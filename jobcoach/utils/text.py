from __future__ import annotations

import math
import re

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def sanitize_text(text: str) -> str:
    return _SCRIPT_RE.sub("", text)


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    index = min(int(math.floor(math.log(size, 1024))), len(_SIZE_UNITS) - 1)
    value = round(size / math.pow(1024, index), 2)
    return f"{value:g} {_SIZE_UNITS[index]}"


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def is_within_size(size: int, max_bytes: int = 5 * 1024 * 1024) -> bool:
    return 0 < size <= max_bytes


def safe_filename(filename: str, max_len: int = 120) -> str:
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", (filename or "").strip()).strip("._")
    return (name or "upload")[:max_len]
