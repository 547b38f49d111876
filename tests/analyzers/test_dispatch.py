"""Tests for language detection and analyzer dispatch."""

from __future__ import annotations

import pytest

from docsmith import analyzers
from docsmith.analyzers import analyze_code, analyzer_for, generate_code_summary
from docsmith.analyzers.indentation import IndentationAnalyzer
from docsmith.analyzers.language import detect_language, is_supported, normalize_language
from docsmith.analyzers.tree_sitter import TreeSitterAnalyzer


def test_detect_language_prefers_hint_over_extension() -> None:
    assert detect_language("app.ts") == "typescript"
    assert detect_language("App.JSX") == "javascript"
    assert detect_language("tool.py") == "python"
    assert detect_language("tool.py", "TS") == "typescript"
    assert detect_language("README.md") is None
    assert detect_language("Makefile", "  ") is None
    assert normalize_language(" Python3 ") == "python"
    assert is_supported("go") is False


def test_analyzer_registry_routes_languages() -> None:
    assert isinstance(analyzer_for("python"), IndentationAnalyzer)
    assert isinstance(analyzer_for("typescript"), TreeSitterAnalyzer)
    assert analyzer_for("typescript") is analyzer_for("javascript")
    assert analyzer_for("rust") is None


def test_unsupported_language_degrades() -> None:
    metadata = analyze_code("fn main() {}", "main.rs")

    assert metadata.language == "unknown"
    assert metadata.is_degraded
    assert metadata.raw_code == "fn main() {}"

    hinted = analyze_code("package main", "main.go", "Go")
    assert hinted.language == "go"
    assert hinted.is_degraded


def test_analyzer_failure_degrades(monkeypatch: pytest.MonkeyPatch) -> None:
    class ExplodingAnalyzer(IndentationAnalyzer):
        def analyze(self, code, file_name, language="python"):  # type: ignore[no-untyped-def]
            raise RuntimeError("boom")

    monkeypatch.setitem(analyzers._registry(), "python", ExplodingAnalyzer())

    metadata = analyze_code("class A:\n    pass\n", "a.py")

    assert metadata.language == "python"
    assert metadata.is_degraded


def test_python_dispatch_extracts_structure() -> None:
    metadata = analyze_code("class A(B):\n    def run(self):\n        pass\n", "a.py")

    assert [cls.name for cls in metadata.classes] == ["A"]
    assert [method.name for method in metadata.classes[0].methods] == ["run"]


def test_code_summary_lists_sections() -> None:
    code = (
        "import os\n"
        "\n"
        "class Greeter(Base):\n"
        "    def __init__(self, name):\n"
        "        self.name = name\n"
        "\n"
        "    def greet(self):\n"
        "        return self.name\n"
        "\n"
        "def shout(text: str) -> str:\n"
        '    """Uppercase text."""\n'
        "    return text.upper()\n"
    )
    summary = generate_code_summary(analyze_code(code, "greeter.py"))

    assert summary.startswith("## Code Analysis Summary")
    assert "**File**: greeter.py" in summary
    assert "### Classes (1)" in summary
    assert "- **Greeter** extends Base" in summary
    assert "  - Properties: name" in summary
    assert "  - Methods: __init__, greet" in summary
    assert "- **shout**(text: str) -> str" in summary
    assert "  - Uppercase text." in summary
    assert '- from "os": os' in summary
    assert "### Interfaces" not in summary
