"""Tree-sitter powered analyzer for JavaScript and TypeScript sources."""

from __future__ import annotations

import re
import threading
import time
from pathlib import PurePath
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .base import Analyzer
from ..logging import get_logger
from ..models import (
    ClassInfo,
    CodeMetadata,
    CommentInfo,
    ExportInfo,
    FunctionInfo,
    ImportInfo,
    InterfaceInfo,
    MethodInfo,
    MethodSignature,
    ParamInfo,
    PropertyInfo,
)

try:  # pragma: no cover - optional dependency
    import tree_sitter_typescript
    from tree_sitter import Language, Node, Parser

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    tree_sitter_typescript = None  # type: ignore[assignment]
    Language = Node = Parser = None  # type: ignore[assignment,misc]
    TREE_SITTER_AVAILABLE = False


_LOGGER = get_logger("analyzers.tree_sitter")

DEFAULT_PARSE_TIMEOUT = 2.0
_READ_CHUNK = 4096

_TSX_SUFFIXES = {".jsx", ".tsx"}
_FUNCTION_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}
_CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}
_FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
_BINDING_DECLARATIONS = {"lexical_declaration", "variable_declaration"}
_COMMENT_DECORATION_RE = re.compile(r"^\s*\*+\s?", re.MULTILINE)


def clean_comment(text: str) -> str:
    """Strip leading ``*`` decoration from each line of a block comment."""
    return _COMMENT_DECORATION_RE.sub("", text).strip()


def grammar_for_file(file_name: str) -> str:
    """JSX-capable files use the TSX grammar; everything else the TypeScript one."""
    return "tsx" if PurePath(file_name).suffix.lower() in _TSX_SUFFIXES else "typescript"


class _FileWalker:
    """Collects metadata from one parsed syntax tree."""

    def __init__(self, source: bytes) -> None:
        self.source = source
        self.comments: List[CommentInfo] = []
        self.classes: List[ClassInfo] = []
        self.functions: List[FunctionInfo] = []
        self.interfaces: List[InterfaceInfo] = []
        self.imports: List[ImportInfo] = []
        self.exports: List[ExportInfo] = []
        self._handlers: Dict[str, Callable[[Node], None]] = {
            "import_statement": self._on_import,
            "class_declaration": self._on_class,
            "abstract_class_declaration": self._on_class,
            "class": self._on_class_expression,
            "function_declaration": self._on_function,
            "generator_function_declaration": self._on_function,
            "lexical_declaration": self._on_bindings,
            "variable_declaration": self._on_bindings,
            "interface_declaration": self._on_interface,
            "export_statement": self._on_export,
        }

    # Traversal -----------------------------------------------------------

    @staticmethod
    def _descendants(root: Node) -> Iterator[Node]:
        stack = [root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def walk(self, root: Node) -> None:
        for node in self._descendants(root):
            if node.type == "comment":
                self.comments.append(self._comment(node))
        for node in self._descendants(root):
            handler = self._handlers.get(node.type)
            if handler is not None:
                handler(node)

    # Helpers -------------------------------------------------------------

    def text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    @staticmethod
    def _start_line(node: Node) -> int:
        return node.start_point[0] + 1

    @staticmethod
    def _end_line(node: Node) -> int:
        return node.end_point[0] + 1

    @staticmethod
    def _token_types(node: Node) -> set:
        return {child.type for child in node.children}

    def _comment(self, node: Node) -> CommentInfo:
        raw = self.text(node)
        if raw.startswith("//"):
            kind, text = "line", raw[2:]
        elif raw.startswith("/**"):
            kind, text = "doc", raw[3:-2]
        else:
            kind, text = "block", raw[2:-2]
        return CommentInfo(
            kind=kind,  # type: ignore[arg-type]
            text=clean_comment(text),
            start_line=self._start_line(node),
            end_line=self._end_line(node),
        )

    def _docs_for(self, node: Node) -> Tuple[str, ...]:
        # Best effort: a comment ending one or two lines above the declaration.
        start = self._start_line(node)
        return tuple(
            clean_comment(comment.text)
            for comment in self.comments
            if comment.end_line in (start - 1, start - 2)
        )

    @staticmethod
    def _is_top_level(node: Node) -> bool:
        parent = node.parent
        if parent is None:
            return False
        if parent.type == "program":
            return True
        grandparent = parent.parent
        return parent.type == "export_statement" and grandparent is not None and grandparent.type == "program"

    @staticmethod
    def _is_exported(node: Node) -> bool:
        return node.parent is not None and node.parent.type == "export_statement"

    def _string_value(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        for child in node.named_children:
            if child.type == "string_fragment":
                return self.text(child)
        return self.text(node).strip("'\"`")

    # Types ---------------------------------------------------------------

    def annotation(self, node: Optional[Node]) -> Optional[str]:
        if node is None:
            return None
        if node.type == "type_annotation":
            if not node.named_children:
                return None
            node = node.named_children[0]
        return self.type_string(node)

    def type_string(self, node: Node) -> str:
        kind = node.type
        if kind in ("predefined_type", "type_identifier", "nested_type_identifier", "identifier"):
            return self.text(node)
        if kind == "generic_type":
            rendered = self.text(node.child_by_field_name("name")) or "unknown"
            arguments = node.child_by_field_name("type_arguments")
            if arguments is not None and arguments.named_children:
                inner = ", ".join(self.type_string(arg) for arg in arguments.named_children)
                rendered = f"{rendered}<{inner}>"
            return rendered
        if kind == "array_type" and node.named_children:
            return f"{self.type_string(node.named_children[0])}[]"
        if kind == "union_type":
            return " | ".join(self.type_string(child) for child in node.named_children)
        if kind == "parenthesized_type" and node.named_children:
            return f"({self.type_string(node.named_children[0])})"
        if kind == "function_type":
            parameters = node.child_by_field_name("parameters")
            names = [param.name for param in self.params(parameters)]
            names = [name if name != "unknown" else "arg" for name in names]
            returned = node.child_by_field_name("return_type")
            rendered_return = self.annotation(returned) if returned is not None else "void"
            return f"({', '.join(names)}) => {rendered_return}"
        if kind == "object_type":
            return "object"
        if kind == "literal_type" and node.named_children:
            literal = node.named_children[0].type
            if literal in ("null", "undefined"):
                return literal
        return "unknown"

    # Parameters ----------------------------------------------------------

    def params(self, node: Optional[Node]) -> Tuple[ParamInfo, ...]:
        if node is None:
            return ()
        parsed: List[ParamInfo] = []
        for child in node.named_children:
            if child.type not in ("required_parameter", "optional_parameter"):
                continue
            pattern = child.child_by_field_name("pattern")
            value = child.child_by_field_name("value")
            if pattern is not None and pattern.type in ("identifier", "rest_pattern", "this"):
                name = self.text(pattern)
            else:
                name = "unknown"
            parsed.append(
                ParamInfo(
                    name=name,
                    type=self.annotation(child.child_by_field_name("type")),
                    is_optional=child.type == "optional_parameter" or value is not None,
                    default_value=self.text(value) if value is not None else None,
                )
            )
        return tuple(parsed)

    def _callable_params(self, node: Node) -> Tuple[ParamInfo, ...]:
        single = node.child_by_field_name("parameter")
        if single is not None:
            return (ParamInfo(name=self.text(single)),)
        return self.params(node.child_by_field_name("parameters"))

    # Handlers ------------------------------------------------------------

    def _on_import(self, node: Node) -> None:
        source = node.child_by_field_name("source")
        if source is None:
            return
        specifiers: List[str] = []
        is_default = False
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    specifiers.append(self.text(part))
                    is_default = True
                elif part.type == "namespace_import":
                    local = next((c for c in part.named_children if c.type == "identifier"), None)
                    specifiers.append(f"* as {self.text(local)}")
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type == "import_specifier":
                            specifiers.append(self.text(spec.child_by_field_name("name")))
        self.imports.append(
            ImportInfo(
                source=self._string_value(source),
                specifiers=tuple(specifiers),
                is_default=is_default,
            )
        )

    def _on_class_expression(self, node: Node) -> None:
        if self._is_exported(node):
            self._on_class(node)

    def _on_class(self, node: Node) -> None:
        name_node = node.child_by_field_name("name")
        super_class: Optional[str] = None
        implements: List[str] = []
        for heritage in node.named_children:
            if heritage.type != "class_heritage":
                continue
            for clause in heritage.named_children:
                if clause.type == "extends_clause":
                    value = clause.child_by_field_name("value")
                    super_class = self.text(value) if value is not None else None
                elif clause.type == "implements_clause":
                    implements.extend(self._heritage_name(t) for t in clause.named_children)

        properties: List[PropertyInfo] = []
        methods: List[MethodInfo] = []
        body = node.child_by_field_name("body")
        for member in body.named_children if body is not None else ():
            if member.type == "public_field_definition":
                properties.append(self._field(member))
            elif member.type in ("method_definition", "abstract_method_signature"):
                methods.append(self._method(member))

        outer = node.parent if self._is_exported(node) else node
        self.classes.append(
            ClassInfo(
                name=self.text(name_node) if name_node is not None else "anonymous",
                start_line=self._start_line(node),
                end_line=self._end_line(node),
                super_class=super_class,
                implements=tuple(implements),
                properties=tuple(properties),
                methods=tuple(methods),
                comments=self._docs_for(outer),
            )
        )

    def _heritage_name(self, node: Node) -> str:
        if node.type in ("type_identifier", "identifier", "nested_type_identifier"):
            return self.text(node)
        if node.type == "generic_type":
            return self.text(node.child_by_field_name("name")) or "unknown"
        return "unknown"

    def _field(self, node: Node) -> PropertyInfo:
        tokens = self._token_types(node)
        value = node.child_by_field_name("value")
        return PropertyInfo(
            name=self.text(node.child_by_field_name("name")) or "unknown",
            type=self.annotation(node.child_by_field_name("type")),
            is_optional="?" in tokens,
            is_readonly="readonly" in tokens,
            default_value=self.text(value) if value is not None else None,
            comments=self._docs_for(node),
        )

    def _method(self, node: Node) -> MethodInfo:
        name = self.text(node.child_by_field_name("name"))
        tokens = self._token_types(node)
        modifier = next(
            (self.text(child) for child in node.children if child.type == "accessibility_modifier"),
            None,
        )
        visibility = modifier or ("private" if name.startswith("#") else "public")
        return MethodInfo(
            name=name,
            params=self.params(node.child_by_field_name("parameters")),
            return_type=self.annotation(node.child_by_field_name("return_type")),
            is_async="async" in tokens,
            is_static="static" in tokens,
            visibility=visibility,  # type: ignore[arg-type]
            comments=self._docs_for(node),
        )

    def _on_function(self, node: Node) -> None:
        if not self._is_top_level(node):
            return
        exported = self._is_exported(node)
        self.functions.append(
            FunctionInfo(
                name=self.text(node.child_by_field_name("name")) or "anonymous",
                start_line=self._start_line(node),
                end_line=self._end_line(node),
                params=self.params(node.child_by_field_name("parameters")),
                return_type=self.annotation(node.child_by_field_name("return_type")),
                is_async="async" in self._token_types(node),
                is_exported=exported,
                comments=self._docs_for(node.parent if exported else node),
            )
        )

    def _on_bindings(self, node: Node) -> None:
        if not self._is_top_level(node):
            return
        exported = self._is_exported(node)
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            value = declarator.child_by_field_name("value")
            if value is None or value.type not in _FUNCTION_VALUES:
                continue
            self.functions.append(
                FunctionInfo(
                    name=self.text(declarator.child_by_field_name("name")),
                    start_line=self._start_line(node),
                    end_line=self._end_line(node),
                    params=self._callable_params(value),
                    return_type=self.annotation(value.child_by_field_name("return_type")),
                    is_async="async" in self._token_types(value),
                    is_exported=exported,
                    comments=self._docs_for(node.parent if exported else node),
                )
            )

    def _on_interface(self, node: Node) -> None:
        extends: List[str] = []
        for clause in node.named_children:
            if clause.type == "extends_type_clause":
                extends.extend(self._heritage_name(t) for t in clause.named_children)

        properties: List[PropertyInfo] = []
        methods: List[MethodSignature] = []
        body = node.child_by_field_name("body")
        for member in body.named_children if body is not None else ():
            if member.type == "property_signature":
                tokens = self._token_types(member)
                properties.append(
                    PropertyInfo(
                        name=self.text(member.child_by_field_name("name")),
                        type=self.annotation(member.child_by_field_name("type")),
                        is_optional="?" in tokens,
                        is_readonly="readonly" in tokens,
                        comments=self._docs_for(member),
                    )
                )
            elif member.type == "method_signature":
                methods.append(
                    MethodSignature(
                        name=self.text(member.child_by_field_name("name")),
                        params=self.params(member.child_by_field_name("parameters")),
                        return_type=self.annotation(member.child_by_field_name("return_type")),
                    )
                )

        outer = node.parent if self._is_exported(node) else node
        self.interfaces.append(
            InterfaceInfo(
                name=self.text(node.child_by_field_name("name")),
                start_line=self._start_line(node),
                end_line=self._end_line(node),
                extends=tuple(extends),
                properties=tuple(properties),
                methods=tuple(methods),
                comments=self._docs_for(outer),
            )
        )

    def _on_export(self, node: Node) -> None:
        is_default = "default" in self._token_types(node)
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")

        if declaration is not None:
            self._export_declaration(declaration, is_default)
            return
        if value is not None:
            if value.type == "identifier":
                self.exports.append(ExportInfo(self.text(value), is_default, "variable"))
            elif value.type == "class":
                name = self.text(value.child_by_field_name("name")) or "default"
                self.exports.append(ExportInfo(name, is_default, "class"))
            elif value.type in _FUNCTION_VALUES:
                name = self.text(value.child_by_field_name("name")) or "default"
                self.exports.append(ExportInfo(name, is_default, "function"))
            else:
                self.exports.append(ExportInfo("default", is_default, "variable"))
            return
        for clause in node.named_children:
            if clause.type != "export_clause":
                continue
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                alias = spec.child_by_field_name("alias")
                exported_name = self.text(alias if alias is not None else spec.child_by_field_name("name"))
                self.exports.append(ExportInfo(exported_name, exported_name == "default", "variable"))

    def _export_declaration(self, declaration: Node, is_default: bool) -> None:
        name = self.text(declaration.child_by_field_name("name"))
        kind = declaration.type
        if kind in _CLASS_DECLARATIONS:
            self.exports.append(ExportInfo(name, is_default, "class"))
        elif kind in _FUNCTION_DECLARATIONS:
            self.exports.append(ExportInfo(name, is_default, "function"))
        elif kind == "interface_declaration":
            self.exports.append(ExportInfo(name, is_default, "interface"))
        elif kind in ("type_alias_declaration", "enum_declaration"):
            self.exports.append(ExportInfo(name, is_default, "type"))
        elif kind in _BINDING_DECLARATIONS:
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                value = declarator.child_by_field_name("value")
                binding_kind = "function" if value is not None and value.type in _FUNCTION_VALUES else "variable"
                self.exports.append(
                    ExportInfo(self.text(declarator.child_by_field_name("name")), is_default, binding_kind)
                )


class TreeSitterAnalyzer(Analyzer):
    """Extracts classes, functions, interfaces and module edges using tree-sitter.

    Each parse runs under ``parse_timeout`` seconds. The TSX grammar can stall
    on some malformed input, so an overrun TSX parse falls back to the
    TypeScript grammar; a second overrun yields degraded metadata.
    """

    languages = ("javascript", "typescript")

    def __init__(self, enabled: Optional[bool] = None, parse_timeout: float = DEFAULT_PARSE_TIMEOUT) -> None:
        self._enabled = TREE_SITTER_AVAILABLE if enabled is None else enabled
        self._parse_timeout = parse_timeout
        self._parsers: Dict[str, Parser] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def analyze(self, code: str, file_name: str, language: str = "typescript") -> CodeMetadata:
        if not self._enabled:
            _LOGGER.warning("tree-sitter is not installed; returning bare metadata for %s", file_name)
            return CodeMetadata.degraded(code, file_name, language)

        source_bytes = code.encode("utf-8")
        grammar = grammar_for_file(file_name)
        tree = self._parse(source_bytes, grammar)
        if tree is None and grammar == "tsx":
            _LOGGER.warning(
                "TSX parse of %s exceeded %.1fs; falling back to the TypeScript grammar",
                file_name,
                self._parse_timeout,
            )
            tree = self._parse(source_bytes, "typescript")
        if tree is None:
            _LOGGER.warning("Parse of %s exceeded %.1fs; returning bare metadata", file_name, self._parse_timeout)
            return CodeMetadata.degraded(code, file_name, language)
        if tree.root_node.has_error:
            _LOGGER.debug("Syntax errors in %s; extracting what parsed cleanly", file_name)

        walker = _FileWalker(source_bytes)
        walker.walk(tree.root_node)
        return CodeMetadata(
            file_name=file_name,
            language=language,
            raw_code=code,
            classes=tuple(walker.classes),
            functions=tuple(walker.functions),
            interfaces=tuple(walker.interfaces),
            imports=tuple(walker.imports),
            exports=tuple(walker.exports),
            comments=tuple(walker.comments),
        )

    def _parse(self, source: bytes, grammar: str):  # type: ignore[no-untyped-def]
        """Parse ``source`` or return ``None`` when the deadline passes."""
        deadline = time.monotonic() + self._parse_timeout

        # progress_callback is only honoured for callback sources, not bytes.
        def read(offset: int, _point) -> bytes:  # type: ignore[no-untyped-def]
            return source[offset : offset + _READ_CHUNK]

        def overran(_offset: int, _has_error: bool) -> bool:
            return time.monotonic() > deadline

        with self._lock:
            parser = self._get_parser(grammar)
            try:
                return parser.parse(read, progress_callback=overran)
            except ValueError:
                # A cancelled parse resumes on the next call unless reset.
                parser.reset()
                return None

    def _get_parser(self, grammar: str) -> Parser:
        parser = self._parsers.get(grammar)
        if parser is not None:
            return parser
        if grammar == "tsx":
            language = Language(tree_sitter_typescript.language_tsx())
        else:
            language = Language(tree_sitter_typescript.language_typescript())
        parser = Parser(language)
        self._parsers[grammar] = parser
        return parser


__all__ = ["DEFAULT_PARSE_TIMEOUT", "TREE_SITTER_AVAILABLE", "TreeSitterAnalyzer", "clean_comment", "grammar_for_file"]
