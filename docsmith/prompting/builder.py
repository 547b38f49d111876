"""Builds system instructions and user payloads for document generation."""

from __future__ import annotations

from typing import Callable, List, Optional

from ..analyzers import analyze_code, generate_code_summary
from ..models import BuiltPrompt, CodeMetadata, DocumentType, GenerateRequest
from .constants import (
    DEFAULT_MAX_CODE_LENGTH,
    DOC_TYPE_NAMES,
    OUTPUT_REQUIREMENTS,
    SYSTEM_PROMPTS,
    TASK_DESCRIPTIONS,
    TRUNCATION_MARKER,
)

AnalyzeFn = Callable[[str, str, Optional[str]], CodeMetadata]

_UNTITLED = "untitled"


def doc_type_name(doc_type: str) -> str:
    """Human readable name for a document kind."""
    return DOC_TYPE_NAMES[doc_type]


class PromptBuilder:
    """Assembles document prompts from source code or free-text descriptions."""

    def __init__(
        self,
        *,
        max_code_length: int = DEFAULT_MAX_CODE_LENGTH,
        analyzer: AnalyzeFn = analyze_code,
    ) -> None:
        if max_code_length <= 0:
            raise ValueError("max_code_length must be positive")
        self.max_code_length = max_code_length
        self._analyze = analyzer

    def build(self, request: GenerateRequest) -> BuiltPrompt:
        system_prompt = SYSTEM_PROMPTS[request.doc_type]

        if request.input_type == "code":
            code = self.truncate_code(request.content)
            metadata = self._analyze(code, request.file_name or _UNTITLED, request.language)
            user_prompt = self._render_user_prompt(
                request.doc_type,
                code=code,
                metadata=metadata,
                additional_context=request.additional_context,
            )
            return BuiltPrompt(system_prompt=system_prompt, user_prompt=user_prompt, metadata=metadata)

        user_prompt = self._render_user_prompt(
            request.doc_type,
            text=request.content,
            additional_context=request.additional_context,
        )
        return BuiltPrompt(system_prompt=system_prompt, user_prompt=user_prompt)

    def build_from_code(
        self,
        code: str,
        file_name: str,
        doc_type: DocumentType,
        additional_context: Optional[str] = None,
        *,
        language: Optional[str] = None,
    ) -> BuiltPrompt:
        return self.build(
            GenerateRequest(
                input_type="code",
                doc_type=doc_type,
                content=code,
                file_name=file_name,
                language=language,
                additional_context=additional_context,
            )
        )

    def build_from_text(
        self,
        text: str,
        doc_type: DocumentType,
        additional_context: Optional[str] = None,
    ) -> BuiltPrompt:
        return self.build(
            GenerateRequest(
                input_type="text",
                doc_type=doc_type,
                content=text,
                additional_context=additional_context,
            )
        )

    def truncate_code(self, code: str) -> str:
        """Cut ``code`` to the configured length at a line boundary when possible."""
        if len(code) <= self.max_code_length:
            return code
        truncated = code[: self.max_code_length]
        last_newline = truncated.rfind("\n")
        if last_newline > 0:
            truncated = truncated[:last_newline]
        return truncated + TRUNCATION_MARKER

    def analyze(self, code: str, file_name: str, language: Optional[str] = None) -> CodeMetadata:
        """Analyze ``code`` exactly as a code request would, truncation included."""
        return self._analyze(self.truncate_code(code), file_name or _UNTITLED, language)

    def get_code_summary(self, code: str, file_name: str, language: Optional[str] = None) -> str:
        """Markdown preview of the structure found in ``code`` after truncation."""
        return generate_code_summary(self.analyze(code, file_name, language))

    def _render_user_prompt(
        self,
        doc_type: str,
        *,
        code: Optional[str] = None,
        text: Optional[str] = None,
        metadata: Optional[CodeMetadata] = None,
        additional_context: Optional[str] = None,
    ) -> str:
        parts: List[str] = [TASK_DESCRIPTIONS[doc_type], ""]

        if code is not None:
            fence_language = metadata.language if metadata and metadata.language != "unknown" else ""
            parts.extend(["## Code", f"```{fence_language}", code, "```", ""])
            if metadata is not None:
                parts.extend(["## Code Structure Analysis", render_metadata_summary(metadata), ""])
        else:
            parts.extend(["## Description", text or "", ""])

        if additional_context:
            parts.extend(["## Additional Context", additional_context, ""])

        parts.extend(["## Output Requirements", OUTPUT_REQUIREMENTS[doc_type]])
        return "\n".join(parts)


def render_metadata_summary(metadata: CodeMetadata) -> str:
    """Compact bullet summary of extracted structure for the user payload."""
    lines = [
        f"- **File name**: {metadata.file_name}",
        f"- **Language**: {metadata.language}",
    ]

    if metadata.classes:
        lines.append(f"- **Classes**: {len(metadata.classes)}")
        for cls in metadata.classes:
            extends = f" (extends {cls.super_class})" if cls.super_class else ""
            lines.append(f"  - `{cls.name}`{extends}")
            if cls.methods:
                lines.append(f"    - Methods: {', '.join(m.name for m in cls.methods)}")

    if metadata.functions:
        lines.append(f"- **Functions**: {len(metadata.functions)}")
        for fn in metadata.functions:
            params = ", ".join(p.name for p in fn.params)
            returns = f" -> {fn.return_type}" if fn.return_type else ""
            lines.append(f"  - `{fn.name}({params})`{returns}")

    if metadata.interfaces:
        lines.append(f"- **Interfaces**: {len(metadata.interfaces)}")
        for iface in metadata.interfaces:
            lines.append(f"  - `{iface.name}`")

    if metadata.imports:
        lines.append(f"- **Imports**: {len(metadata.imports)}")

    return "\n".join(lines)


__all__ = ["PromptBuilder", "doc_type_name", "render_metadata_summary"]
