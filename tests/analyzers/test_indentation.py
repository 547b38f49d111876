"""Tests for the indentation-based Python analyzer."""

from __future__ import annotations

from docsmith.analyzers.indentation import (
    IndentationAnalyzer,
    extract_block,
    extract_docstring,
    method_visibility,
    parse_params,
    split_top_level,
)
from docsmith.models import ParamInfo

SOURCE = '''import os
import numpy as np, json
from typing import (
    Dict,
    List as L,
)
from .models import Thing  # local


class Foo(Bar, Mixin):
    """Foo does things."""

    limit: int = 10
    name = "foo"
    tags: L[str]

    def __init__(self, value: int, *, flag=False) -> None:
        self.value = value
        self.items: L[int] = []
        if flag:
            self.flag = True

    @staticmethod
    def build(x):
        return Foo(x)

    @classmethod
    def create(cls, value):
        return cls(value)

    def _helper(self):
        def inner():
            pass
        return inner

    def __secret(self):
        pass

    async def fetch(self, url: str) -> bytes:
        """Fetch a URL."""
        return b""


def top(a, b: int = 2, *args, **kwargs) -> Dict[str, int]:
    # not a docstring
    return {}


async def runner(
    first: str,
    second: Dict[str, int] = None,
):
    pass


def _private():
    """First line.

    More detail.
    """
'''


def _line_of(fragment: str) -> int:
    for number, line in enumerate(SOURCE.split("\n"), start=1):
        if fragment in line:
            return number
    raise AssertionError(f"{fragment!r} not in source")


def _analyze():
    return IndentationAnalyzer().analyze(SOURCE, "sample.py", "python")


def test_imports_cover_plain_aliased_and_parenthesized_forms() -> None:
    imports = _analyze().imports

    assert [(imp.source, imp.specifiers, imp.is_default) for imp in imports] == [
        ("os", ("os",), True),
        ("numpy", ("np",), True),
        ("json", ("json",), True),
        ("typing", ("Dict", "L"), False),
        (".models", ("Thing",), False),
    ]


def test_class_bases_span_and_docstring() -> None:
    (cls,) = _analyze().classes

    assert cls.name == "Foo"
    assert cls.super_class == "Bar"
    assert cls.implements == ("Mixin",)
    assert cls.start_line == _line_of("class Foo")
    assert cls.end_line == _line_of("def top(") - 3
    assert cls.comments == ("Foo does things.",)


def test_methods_only_at_class_body_indent() -> None:
    (cls,) = _analyze().classes
    methods = {method.name: method for method in cls.methods}

    assert list(methods) == ["__init__", "build", "create", "_helper", "__secret", "fetch"]
    assert "inner" not in methods

    init = methods["__init__"]
    assert init.params == (
        ParamInfo(name="value", type="int"),
        ParamInfo(name="flag", is_optional=True, default_value="False"),
    )
    assert init.return_type == "None"
    assert init.visibility == "public"

    assert methods["build"].is_static is True
    assert methods["create"].is_static is True
    assert methods["create"].params == (ParamInfo(name="value"),)
    assert methods["_helper"].visibility == "protected"
    assert methods["__secret"].visibility == "private"

    fetch = methods["fetch"]
    assert fetch.is_async is True
    assert fetch.return_type == "bytes"
    assert fetch.comments == ("Fetch a URL.",)


def test_properties_from_init_and_class_body() -> None:
    (cls,) = _analyze().classes
    properties = {prop.name: prop for prop in cls.properties}

    assert list(properties) == ["value", "items", "flag", "limit", "name", "tags"]
    assert properties["items"].type == "L[int]"
    assert properties["limit"].type == "int"
    assert properties["limit"].default_value == "10"
    assert properties["name"].default_value == '"foo"'
    assert properties["tags"].type == "L[str]"
    assert properties["tags"].default_value is None


def test_top_level_functions() -> None:
    functions = {fn.name: fn for fn in _analyze().functions}

    assert list(functions) == ["top", "runner", "_private"]

    top = functions["top"]
    assert top.params == (
        ParamInfo(name="a"),
        ParamInfo(name="b", type="int", is_optional=True, default_value="2"),
        ParamInfo(name="*args"),
        ParamInfo(name="**kwargs"),
    )
    assert top.return_type == "Dict[str, int]"
    assert top.comments == ()
    assert top.is_exported is True

    runner = functions["runner"]
    assert runner.is_async is True
    assert runner.params == (
        ParamInfo(name="first", type="str"),
        ParamInfo(name="second", type="Dict[str, int]", is_optional=True, default_value="None"),
    )

    private = functions["_private"]
    assert private.is_exported is False
    assert private.comments == ("First line.\n\nMore detail.",)


def test_comments_are_sorted_by_line() -> None:
    comments = _analyze().comments

    assert [comment.start_line for comment in comments] == sorted(c.start_line for c in comments)
    line_comments = [comment for comment in comments if comment.kind == "line"]
    assert [comment.text for comment in line_comments] == ["not a docstring"]
    block_texts = [comment.text for comment in comments if comment.kind == "block"]
    assert "Foo does things." in block_texts
    assert "Fetch a URL." in block_texts


def test_extract_block_keeps_blank_lines_and_stops_at_dedent() -> None:
    lines = ["def a():", "    x = 1", "", "    return x", "def b():", "    pass"]

    assert extract_block(lines, 0) == ["def a():", "    x = 1", "", "    return x"]
    assert extract_block(lines, 4) == ["def b():", "    pass"]


def test_extract_docstring_requires_closing_quote() -> None:
    assert extract_docstring(["def a():", "    '''Single.'''"]) == "Single."
    assert extract_docstring(["def a():", '    """Never closed', "    body"]) is None
    assert extract_docstring(["def a():", "    return 1"]) is None


def test_parameter_helpers() -> None:
    assert split_top_level("a, b: Dict[str, int], c=(1, 2)") == ["a", "b: Dict[str, int]", "c=(1, 2)"]
    assert parse_params("self, *, key: str = 'x'") == (
        ParamInfo(name="key", type="str", is_optional=True, default_value="'x'"),
    )
    assert method_visibility("__repr__") == "public"
    assert method_visibility("__mangled") == "private"


def test_malformed_source_does_not_raise() -> None:
    metadata = IndentationAnalyzer().analyze("def broken(:\n    class\n", "broken.py", "python")

    assert metadata.language == "python"
    assert [fn.name for fn in metadata.functions] == ["broken"]
    assert metadata.functions[0].params == ()


BLACK_STYLE = '''class Repository(
    Base,
    Mixin,
):
    """Stores records."""

    def fetch(
        self,
        key: str,
    ) -> dict:
        """Load one record."""
        return {}

    def size(self) -> int:
        return 0


def total(
    a: int,
    b: int = 0,
) -> int:
    """Add numbers."""
    return a + b
'''


def test_wrapped_headers_keep_their_bodies() -> None:
    metadata = IndentationAnalyzer().analyze(BLACK_STYLE, "repository.py", "python")

    (cls,) = metadata.classes
    assert (cls.name, cls.super_class, cls.implements) == ("Repository", "Base", ("Mixin",))
    assert cls.comments == ("Stores records.",)
    assert (cls.start_line, cls.end_line) == (1, 15)
    fetch, size = cls.methods
    assert fetch.name == "fetch"
    assert fetch.params == (ParamInfo(name="key", type="str"),)
    assert fetch.return_type == "dict"
    assert fetch.comments == ("Load one record.",)
    assert size.name == "size"

    (total,) = metadata.functions
    assert (total.start_line, total.end_line) == (18, 23)
    assert total.return_type == "int"
    assert total.comments == ("Add numbers.",)


def test_wrapped_function_header_at_end_of_file() -> None:
    code = 'def f(\n    a: int,\n) -> int:\n    """Doc."""\n    return a\n'

    (fn,) = IndentationAnalyzer().analyze(code, "f.py", "python").functions

    assert (fn.start_line, fn.end_line) == (1, 5)
    assert fn.params == (ParamInfo(name="a", type="int"),)
    assert fn.comments == ("Doc.",)
