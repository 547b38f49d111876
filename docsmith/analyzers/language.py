"""Language detection from explicit hints and file extensions."""

from __future__ import annotations

from pathlib import PurePath
from typing import Dict, Optional, Tuple

SUPPORTED_LANGUAGES: Tuple[str, ...] = ("javascript", "typescript", "python")

EXTENSION_LANGUAGES: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".py": "python",
    ".pyw": "python",
}

_LANGUAGE_ALIASES: Dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "python3": "python",
}


def language_from_file_name(file_name: str) -> Optional[str]:
    """Return the language mapped to the file extension, if any."""
    suffix = PurePath(file_name).suffix.lower()
    return EXTENSION_LANGUAGES.get(suffix)


def normalize_language(language: str) -> str:
    lowered = language.strip().lower()
    return _LANGUAGE_ALIASES.get(lowered, lowered)


def detect_language(file_name: str, hint: Optional[str] = None) -> Optional[str]:
    """Resolve the language for a file: explicit hint first, then the extension table."""
    if hint and hint.strip():
        return normalize_language(hint)
    return language_from_file_name(file_name)


def is_supported(language: Optional[str]) -> bool:
    return language in SUPPORTED_LANGUAGES


__all__ = [
    "EXTENSION_LANGUAGES",
    "SUPPORTED_LANGUAGES",
    "detect_language",
    "is_supported",
    "language_from_file_name",
    "normalize_language",
]
