"""Core data models shared across docsmith components."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Optional, Tuple

DocumentType = Literal["requirements", "design", "api", "test"]
InputType = Literal["code", "text"]
Visibility = Literal["public", "protected", "private"]
ExportKind = Literal["class", "function", "variable", "interface", "type"]
CommentKind = Literal["line", "block", "doc"]

DOCUMENT_TYPES: Tuple[str, ...] = ("requirements", "design", "api", "test")
INPUT_TYPES: Tuple[str, ...] = ("code", "text")


@dataclass(frozen=True)
class ParamInfo:
    """A single function or method parameter."""

    name: str
    type: Optional[str] = None
    is_optional: bool = False
    default_value: Optional[str] = None


@dataclass(frozen=True)
class PropertyInfo:
    """A class field or interface property."""

    name: str
    type: Optional[str] = None
    is_optional: bool = False
    is_readonly: bool = False
    default_value: Optional[str] = None
    comments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MethodInfo:
    """A method declared inside a class body."""

    name: str
    params: Tuple[ParamInfo, ...] = ()
    return_type: Optional[str] = None
    is_async: bool = False
    is_static: bool = False
    visibility: Visibility = "public"
    comments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MethodSignature:
    """A method signature declared by an interface."""

    name: str
    params: Tuple[ParamInfo, ...] = ()
    return_type: Optional[str] = None


@dataclass(frozen=True)
class ClassInfo:
    """A class declaration and its members."""

    name: str
    start_line: int
    end_line: int
    super_class: Optional[str] = None
    implements: Tuple[str, ...] = ()
    properties: Tuple[PropertyInfo, ...] = ()
    methods: Tuple[MethodInfo, ...] = ()
    comments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FunctionInfo:
    """A top-level function or function-valued binding."""

    name: str
    start_line: int
    end_line: int
    params: Tuple[ParamInfo, ...] = ()
    return_type: Optional[str] = None
    is_async: bool = False
    is_exported: bool = False
    comments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class InterfaceInfo:
    """A structural type declaration."""

    name: str
    start_line: int
    end_line: int
    extends: Tuple[str, ...] = ()
    properties: Tuple[PropertyInfo, ...] = ()
    methods: Tuple[MethodSignature, ...] = ()
    comments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportInfo:
    """One import statement."""

    source: str
    specifiers: Tuple[str, ...] = ()
    is_default: bool = False


@dataclass(frozen=True)
class ExportInfo:
    """One exported symbol."""

    name: str
    is_default: bool
    kind: ExportKind


@dataclass(frozen=True)
class CommentInfo:
    """A source comment with its line span."""

    kind: CommentKind
    text: str
    start_line: int
    end_line: int


@dataclass(frozen=True)
class CodeMetadata:
    """Normalized, language-agnostic description of one source file."""

    file_name: str
    language: str
    raw_code: str
    classes: Tuple[ClassInfo, ...] = ()
    functions: Tuple[FunctionInfo, ...] = ()
    interfaces: Tuple[InterfaceInfo, ...] = ()
    imports: Tuple[ImportInfo, ...] = ()
    exports: Tuple[ExportInfo, ...] = ()
    comments: Tuple[CommentInfo, ...] = ()

    @classmethod
    def degraded(cls, code: str, file_name: str, language: str) -> "CodeMetadata":
        """Return metadata with empty structural collections for unparseable input."""
        return cls(file_name=file_name, language=language, raw_code=code)

    @property
    def is_degraded(self) -> bool:
        return not (
            self.classes
            or self.functions
            or self.interfaces
            or self.imports
            or self.exports
            or self.comments
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GenerateRequest:
    """A document generation request coming from a caller."""

    input_type: InputType
    doc_type: DocumentType
    content: str
    file_name: Optional[str] = None
    language: Optional[str] = None
    additional_context: Optional[str] = None

    def __post_init__(self) -> None:
        if self.input_type not in INPUT_TYPES:
            raise ValueError(
                f"Unsupported input type '{self.input_type}'. Expected one of: {', '.join(INPUT_TYPES)}"
            )
        if self.doc_type not in DOCUMENT_TYPES:
            raise ValueError(
                f"Unsupported document type '{self.doc_type}'. Expected one of: {', '.join(DOCUMENT_TYPES)}"
            )


@dataclass(frozen=True)
class BuiltPrompt:
    """System instructions plus user payload ready for an LLM provider."""

    system_prompt: str
    user_prompt: str
    metadata: Optional[CodeMetadata] = None


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class LLMResponse:
    """Final text returned by a provider with optional token counters."""

    content: str
    usage: Optional[TokenUsage] = None


@dataclass
class GenerateResult:
    """A generated document stamped by the orchestrator."""

    id: str
    doc_type: DocumentType
    title: str
    content: str
    created_at: str
    input_type: InputType
    metadata: Optional[CodeMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
