"""Indentation-aware structural analyzer for Python sources.

Python has no braces to anchor a syntax walk on partially valid input, so this
analyzer works line by line: regular expressions locate headers and an
indentation scan bounds each block.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Optional, Sequence, Set, Tuple

from .base import Analyzer
from ..models import (
    ClassInfo,
    CodeMetadata,
    CommentInfo,
    FunctionInfo,
    ImportInfo,
    MethodInfo,
    ParamInfo,
    PropertyInfo,
)

_IMPORT_RE = re.compile(r"^import\s+(.+)$", re.MULTILINE)
_FROM_IMPORT_RE = re.compile(r"^from\s+(\S+)\s+import\s+(.+)$", re.MULTILINE)
_ALIAS_RE = re.compile(r"^(\S+)\s+as\s+(\S+)$")
_TRIPLE_QUOTED_RE = re.compile(r'"""([\s\S]*?)"""|\'\'\'([\s\S]*?)\'\'\'')
_CLASS_RE = re.compile(r"^class\s+(\w+)\s*(?:\(([^)]*)\))?\s*:", re.MULTILINE)
_DEF_START_RE = re.compile(r"^(\s*)(async\s+)?def\s+(\w+)\s*\(")
_RETURN_RE = re.compile(r"\s*(?:->\s*([^:]+?))?\s*:")
_SELF_ATTR_RE = re.compile(r"self\.(\w+)\s*(?::\s*([^=]+?))?\s*=(?!=)")
_CLASS_ATTR_RE = re.compile(r"^ {4}(\w+)\s*(?::\s*([^=]+?))?\s*=(?!=)\s*(.*)$")
_CLASS_ANNOTATION_RE = re.compile(r"^ {4}(\w+)\s*:\s*([^=]+?)\s*$")
_PARAM_RE = re.compile(r"^(\*{0,2}\w+)(?:\s*:\s*([^=]+))?(?:\s*=\s*(.+))?$", re.DOTALL)
_TRAILING_COMMENT_RE = re.compile(r"\s+#[^'\"]*$")

_MAX_HEADER_LINES = 30
_DOCSTRING_WINDOW = 4
_STATIC_DECORATORS = ("@staticmethod", "@classmethod")


class _Signature(NamedTuple):
    params: str
    return_type: Optional[str]


def indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def extract_block(lines: Sequence[str], start_index: int, header_lines: int = 1) -> List[str]:
    """Return the header plus every following line indented deeper than its first line.

    The header spans ``header_lines`` physical lines. Blank lines inside the
    block are kept and trailing ones dropped; the first non-blank line indented
    at or above the header's level ends the block and is not included.
    """
    header_indent = indent_of(lines[start_index])
    block = list(lines[start_index : start_index + header_lines])
    for line in lines[start_index + header_lines :]:
        if not line.strip():
            block.append(line)
            continue
        if indent_of(line) <= header_indent:
            break
        block.append(line)
    while len(block) > header_lines and not block[-1].strip():
        block.pop()
    return block


def extract_docstring(block: Sequence[str], header_lines: int = 1) -> Optional[str]:
    """Return the docstring opening within the first lines after a block header."""
    for index in range(header_lines, min(len(block), header_lines + _DOCSTRING_WINDOW)):
        stripped = block[index].strip()
        if not stripped.startswith(('"""', "'''")):
            continue
        quote = stripped[:3]
        closing = stripped.find(quote, 3)
        if closing != -1:
            return stripped[3:closing].strip()
        collected = [stripped[3:]]
        for following in block[index + 1 :]:
            if quote in following:
                collected.append(following[: following.index(quote)].strip())
                return "\n".join(collected).strip()
            collected.append(following.strip())
        return None
    return None


def split_top_level(text: str) -> List[str]:
    """Split on commas that are not nested inside brackets."""
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    for char in text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def parse_params(params: str) -> Tuple[ParamInfo, ...]:
    """Parse a Python parameter list, dropping ``self`` and ``cls``."""
    parsed: List[ParamInfo] = []
    for part in split_top_level(params):
        match = _PARAM_RE.match(part)
        if not match:
            continue
        name, annotation, default = match.groups()
        if name in ("self", "cls"):
            continue
        parsed.append(
            ParamInfo(
                name=name,
                type=annotation.strip() if annotation else None,
                is_optional=default is not None,
                default_value=default.strip() if default else None,
            )
        )
    return tuple(parsed)


def _strip_comment(line: str) -> str:
    return _TRAILING_COMMENT_RE.sub("", line.rstrip())


def _header_length(lines: Sequence[str], index: int) -> int:
    """Number of physical lines used by the ``def`` header starting at ``index``."""
    depth = 0
    for offset, line in enumerate(lines[index : index + _MAX_HEADER_LINES]):
        code = _strip_comment(line)
        depth += code.count("(") + code.count("[") - code.count(")") - code.count("]")
        if depth <= 0 and ":" in code:
            return offset + 1
    return 1


def _read_header(lines: Sequence[str], index: int) -> str:
    length = _header_length(lines, index)
    parts = [_strip_comment(line).strip() for line in lines[index : index + length]]
    return " ".join(part for part in parts if part)


def _parse_signature(header: str) -> Optional[_Signature]:
    match = _DEF_START_RE.match(header)
    if not match:
        return None
    start = match.end()
    depth = 1
    for position in range(start, len(header)):
        char = header[position]
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
            if depth == 0:
                tail = _RETURN_RE.match(header, position + 1)
                return_type = tail.group(1).strip() if tail and tail.group(1) else None
                return _Signature(params=header[start:position], return_type=return_type)
    return None


def _line_number(code: str, offset: int) -> int:
    return code.count("\n", 0, offset) + 1


def _decorators_above(lines: Sequence[str], index: int) -> List[str]:
    decorators: List[str] = []
    cursor = index - 1
    while cursor >= 0:
        stripped = lines[cursor].strip()
        if not stripped.startswith("@"):
            break
        decorators.append(stripped)
        cursor -= 1
    return decorators


def method_visibility(name: str) -> str:
    if name.startswith("__") and name.endswith("__"):
        return "public"
    if name.startswith("__"):
        return "private"
    if name.startswith("_"):
        return "protected"
    return "public"


class IndentationAnalyzer(Analyzer):
    """Extracts imports, comments, classes and functions from Python source."""

    languages = ("python",)

    def analyze(self, code: str, file_name: str, language: str = "python") -> CodeMetadata:
        lines = code.split("\n")
        return CodeMetadata(
            file_name=file_name,
            language=language,
            raw_code=code,
            classes=tuple(self._extract_classes(code, lines)),
            functions=tuple(self._extract_functions(lines)),
            imports=tuple(self._extract_imports(code)),
            comments=tuple(self._extract_comments(code, lines)),
        )

    @staticmethod
    def _extract_imports(code: str) -> List[ImportInfo]:
        imports: List[ImportInfo] = []
        for match in _IMPORT_RE.finditer(code):
            for part in split_top_level(_strip_comment(match.group(1))):
                alias = _ALIAS_RE.match(part)
                source = alias.group(1) if alias else part
                name = alias.group(2) if alias else part
                imports.append(ImportInfo(source=source, specifiers=(name,), is_default=True))

        for match in _FROM_IMPORT_RE.finditer(code):
            names = match.group(2)
            if names.lstrip().startswith("(") and ")" not in names:
                closing = code.find(")", match.end())
                if closing != -1:
                    names += code[match.end() : closing + 1]
            names = " ".join(_strip_comment(line) for line in names.split("\n"))
            names = names.replace("(", "").replace(")", "").rstrip("\\")
            specifiers: List[str] = []
            for part in names.split(","):
                part = part.strip()
                if not part or part.startswith("#"):
                    continue
                alias = _ALIAS_RE.match(part)
                specifiers.append(alias.group(2) if alias else part)
            imports.append(
                ImportInfo(source=match.group(1), specifiers=tuple(specifiers), is_default=False)
            )
        return imports

    @staticmethod
    def _extract_comments(code: str, lines: Sequence[str]) -> List[CommentInfo]:
        comments: List[CommentInfo] = []
        for index, line in enumerate(lines):
            stripped = line.strip()
            if stripped.startswith("#"):
                comments.append(
                    CommentInfo(
                        kind="line",
                        text=stripped[1:].strip(),
                        start_line=index + 1,
                        end_line=index + 1,
                    )
                )

        for match in _TRIPLE_QUOTED_RE.finditer(code):
            body = match.group(1) if match.group(1) is not None else match.group(2)
            comments.append(
                CommentInfo(
                    kind="block",
                    text=body.strip(),
                    start_line=_line_number(code, match.start()),
                    end_line=_line_number(code, match.end()),
                )
            )

        comments.sort(key=lambda comment: (comment.start_line, comment.end_line))
        return comments

    def _extract_classes(self, code: str, lines: Sequence[str]) -> List[ClassInfo]:
        classes: List[ClassInfo] = []
        for match in _CLASS_RE.finditer(code):
            start_line = _line_number(code, match.start())
            bases = split_top_level(match.group(2) or "")
            header_lines = _header_length(lines, start_line - 1)
            block = extract_block(lines, start_line - 1, header_lines)
            docstring = extract_docstring(block, header_lines)
            classes.append(
                ClassInfo(
                    name=match.group(1),
                    start_line=start_line,
                    end_line=start_line + len(block) - 1,
                    super_class=bases[0] if bases else None,
                    implements=tuple(bases[1:]),
                    properties=tuple(self._extract_properties(block)),
                    methods=tuple(self._extract_methods(block, header_lines)),
                    comments=(docstring,) if docstring else (),
                )
            )
        return classes

    @staticmethod
    def _body_indent(block: Sequence[str], header_lines: int = 1) -> Optional[int]:
        for line in block[header_lines:]:
            if line.strip() and not line.strip().startswith("#"):
                return indent_of(line)
        return None

    def _extract_methods(self, block: Sequence[str], header_lines: int = 1) -> List[MethodInfo]:
        methods: List[MethodInfo] = []
        body_indent = self._body_indent(block, header_lines)
        for index in range(header_lines, len(block)):
            match = _DEF_START_RE.match(block[index])
            if not match or not match.group(1) or len(match.group(1)) != body_indent:
                continue
            name = match.group(3)
            signature = _parse_signature(_read_header(block, index))
            raw_params = split_top_level(signature.params) if signature else []
            first_param = raw_params[0].split(":")[0].strip() if raw_params else ""
            decorators = _decorators_above(block, index)
            is_static = first_param == "cls" or any(
                entry.startswith(_STATIC_DECORATORS) for entry in decorators
            )
            method_header = _header_length(block, index)
            docstring = extract_docstring(extract_block(block, index, method_header), method_header)
            methods.append(
                MethodInfo(
                    name=name,
                    params=parse_params(signature.params) if signature else (),
                    return_type=signature.return_type if signature else None,
                    is_async=bool(match.group(2)),
                    is_static=is_static,
                    visibility=method_visibility(name),  # type: ignore[arg-type]
                    comments=(docstring,) if docstring else (),
                )
            )
        return methods

    @staticmethod
    def _extract_properties(block: Sequence[str]) -> List[PropertyInfo]:
        properties: List[PropertyInfo] = []
        seen: Set[str] = set()

        in_init = False
        init_indent = 0
        index = 1
        while index < len(block):
            line = block[index]
            stripped = line.strip()
            match = _DEF_START_RE.match(line)
            if match and match.group(1) and match.group(3) == "__init__":
                in_init = True
                init_indent = len(match.group(1))
                index += _header_length(block, index)
                continue
            index += 1
            if not in_init or not stripped or stripped.startswith("#"):
                continue
            if indent_of(line) <= init_indent:
                in_init = False
                continue
            attribute = _SELF_ATTR_RE.search(line)
            if attribute and attribute.group(1) not in seen:
                seen.add(attribute.group(1))
                annotation = attribute.group(2)
                properties.append(
                    PropertyInfo(
                        name=attribute.group(1),
                        type=annotation.strip() if annotation else None,
                    )
                )

        for line in block[1:]:
            if "def " in line:
                continue
            assignment = _CLASS_ATTR_RE.match(line)
            if assignment:
                name, annotation, default = assignment.groups()
            else:
                declared = _CLASS_ANNOTATION_RE.match(line)
                if not declared:
                    continue
                name, annotation = declared.groups()
                default = None
            if name in seen:
                continue
            seen.add(name)
            properties.append(
                PropertyInfo(
                    name=name,
                    type=annotation.strip() if annotation else None,
                    default_value=_strip_comment(default).strip() if default else None,
                )
            )
        return properties

    @staticmethod
    def _extract_functions(lines: Sequence[str]) -> List[FunctionInfo]:
        functions: List[FunctionInfo] = []
        for index, line in enumerate(lines):
            match = _DEF_START_RE.match(line)
            if not match or match.group(1):
                continue
            name = match.group(3)
            signature = _parse_signature(_read_header(lines, index))
            header_lines = _header_length(lines, index)
            block = extract_block(lines, index, header_lines)
            docstring = extract_docstring(block, header_lines)
            functions.append(
                FunctionInfo(
                    name=name,
                    start_line=index + 1,
                    end_line=index + len(block),
                    params=parse_params(signature.params) if signature else (),
                    return_type=signature.return_type if signature else None,
                    is_async=bool(match.group(2)),
                    is_exported=not name.startswith("_"),
                    comments=(docstring,) if docstring else (),
                )
            )
        return functions


__all__ = [
    "IndentationAnalyzer",
    "extract_block",
    "extract_docstring",
    "method_visibility",
    "parse_params",
    "split_top_level",
]
