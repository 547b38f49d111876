"""Structural analyzers and the language dispatch in front of them."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from .base import Analyzer
from .indentation import IndentationAnalyzer
from .language import SUPPORTED_LANGUAGES, detect_language, is_supported
from .tree_sitter import TREE_SITTER_AVAILABLE, TreeSitterAnalyzer
from ..logging import get_logger
from ..models import CodeMetadata

_LOGGER = get_logger("analyzers")

_BUILTIN_FACTORIES: Dict[str, Callable[[], Analyzer]] = {
    "tree_sitter": TreeSitterAnalyzer,
    "indentation": IndentationAnalyzer,
}

_REGISTRY: Dict[str, Analyzer] = {}


def _registry() -> Dict[str, Analyzer]:
    if not _REGISTRY:
        for name, factory in _BUILTIN_FACTORIES.items():
            instance = factory()
            if not isinstance(instance, Analyzer):
                raise TypeError(f"Analyzer factory for '{name}' did not return an Analyzer instance")
            for language in instance.languages:
                _REGISTRY.setdefault(language, instance)
    return _REGISTRY


def analyzer_for(language: str) -> Optional[Analyzer]:
    """Return the analyzer registered for ``language``, if any."""
    return _registry().get(language)


def analyze_code(code: str, file_name: str, language: Optional[str] = None) -> CodeMetadata:
    """Analyze one source file, degrading to bare metadata instead of raising."""
    detected = detect_language(file_name, language)
    if not is_supported(detected):
        _LOGGER.debug("No analyzer for language %r (%s)", detected, file_name)
        return CodeMetadata.degraded(code, file_name, detected or "unknown")

    analyzer = analyzer_for(detected)  # type: ignore[arg-type]
    if analyzer is None:
        return CodeMetadata.degraded(code, file_name, detected)  # type: ignore[arg-type]
    try:
        return analyzer.analyze(code, file_name, detected)  # type: ignore[arg-type]
    except Exception as exc:  # noqa: BLE001 - analysis must never break generation
        _LOGGER.warning("Failed to analyze %s as %s: %s", file_name, detected, exc)
        return CodeMetadata.degraded(code, file_name, detected)  # type: ignore[arg-type]


def generate_code_summary(metadata: CodeMetadata) -> str:
    """Render a short Markdown preview of the extracted structure."""
    lines: List[str] = [
        "## Code Analysis Summary",
        f"**File**: {metadata.file_name}",
        f"**Language**: {metadata.language}",
        "",
    ]

    if metadata.classes:
        lines.append(f"### Classes ({len(metadata.classes)})")
        for cls in metadata.classes:
            extends = f" extends {cls.super_class}" if cls.super_class else ""
            lines.append(f"- **{cls.name}**{extends}")
            if cls.properties:
                lines.append(f"  - Properties: {', '.join(p.name for p in cls.properties)}")
            if cls.methods:
                lines.append(f"  - Methods: {', '.join(m.name for m in cls.methods)}")
        lines.append("")

    if metadata.functions:
        lines.append(f"### Functions ({len(metadata.functions)})")
        for fn in metadata.functions:
            params = ", ".join(f"{p.name}: {p.type}" if p.type else p.name for p in fn.params)
            returns = f" -> {fn.return_type}" if fn.return_type else ""
            lines.append(f"- **{fn.name}**({params}){returns}")
            if fn.comments:
                lines.append(f"  - {fn.comments[0]}")
        lines.append("")

    if metadata.interfaces:
        lines.append(f"### Interfaces ({len(metadata.interfaces)})")
        for iface in metadata.interfaces:
            lines.append(f"- **{iface.name}**")
            if iface.properties:
                lines.append(f"  - Properties: {', '.join(p.name for p in iface.properties)}")
        lines.append("")

    if metadata.imports:
        lines.append(f"### Imports ({len(metadata.imports)})")
        for imp in metadata.imports:
            lines.append(f'- from "{imp.source}": {", ".join(imp.specifiers)}')
        lines.append("")

    return "\n".join(lines)


__all__ = [
    "Analyzer",
    "IndentationAnalyzer",
    "SUPPORTED_LANGUAGES",
    "TREE_SITTER_AVAILABLE",
    "TreeSitterAnalyzer",
    "analyze_code",
    "analyzer_for",
    "detect_language",
    "generate_code_summary",
]
