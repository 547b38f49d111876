"""Tests for the prompt builder."""

from __future__ import annotations

import pytest

from docsmith.models import CodeMetadata, GenerateRequest
from docsmith.prompting.builder import PromptBuilder, doc_type_name, render_metadata_summary
from docsmith.prompting.constants import SYSTEM_PROMPTS, TASK_DESCRIPTIONS, TRUNCATION_MARKER

PYTHON_SOURCE = """import json


class Store(Base):
    def save(self, item):
        return json.dumps(item)


def load(path: str) -> dict:
    return {}
"""


def test_code_prompt_sections_appear_in_order() -> None:
    prompt = PromptBuilder().build_from_code(
        PYTHON_SOURCE, "store.py", "design", additional_context="Runs inside a worker."
    )

    assert prompt.system_prompt == SYSTEM_PROMPTS["design"]
    user = prompt.user_prompt
    assert user.startswith(TASK_DESCRIPTIONS["design"])
    markers = [
        "## Code",
        "```python",
        "## Code Structure Analysis",
        "## Additional Context",
        "Runs inside a worker.",
        "## Output Requirements",
    ]
    positions = [user.index(marker) for marker in markers]
    assert positions == sorted(positions)
    assert "- **File name**: store.py" in user
    assert "  - `Store` (extends Base)" in user
    assert "    - Methods: save" in user
    assert "  - `load(path)` -> dict" in user
    assert prompt.metadata is not None
    assert [cls.name for cls in prompt.metadata.classes] == ["Store"]


def test_text_prompt_has_description_and_no_analysis() -> None:
    prompt = PromptBuilder().build_from_text("A todo list with reminders.", "requirements")

    assert prompt.metadata is None
    assert "## Description\nA todo list with reminders." in prompt.user_prompt
    assert "## Code" not in prompt.user_prompt
    assert "## Additional Context" not in prompt.user_prompt
    assert prompt.user_prompt.rstrip().endswith("5. Number requirements so they can be traced")


def test_unknown_language_uses_plain_fence() -> None:
    prompt = PromptBuilder().build(
        GenerateRequest(input_type="code", doc_type="api", content="SELECT 1;", file_name="q.sql")
    )

    assert "```\nSELECT 1;\n```" in prompt.user_prompt
    assert prompt.metadata is not None
    assert prompt.metadata.language == "unknown"


def test_truncation_cuts_at_line_boundary() -> None:
    builder = PromptBuilder(max_code_length=25)
    code = "line one\nline two\nline three\nline four\n"

    truncated = builder.truncate_code(code)

    assert truncated == "line one\nline two" + TRUNCATION_MARKER
    assert builder.truncate_code("short") == "short"


def test_truncation_without_newline_keeps_prefix() -> None:
    builder = PromptBuilder(max_code_length=5)

    assert builder.truncate_code("abcdefghij") == "abcde" + TRUNCATION_MARKER


def test_analysis_runs_on_truncated_code() -> None:
    seen = []

    def fake_analyzer(code, file_name, language):  # type: ignore[no-untyped-def]
        seen.append((code, file_name, language))
        return CodeMetadata.degraded(code, file_name, language or "unknown")

    builder = PromptBuilder(max_code_length=10, analyzer=fake_analyzer)
    builder.build_from_code("0123456789\nabcdef", "", "test", language="python")

    assert seen == [("0123456789" + TRUNCATION_MARKER, "untitled", "python")]


def test_invalid_max_code_length_rejected() -> None:
    with pytest.raises(ValueError):
        PromptBuilder(max_code_length=0)


def test_invalid_request_tags_rejected() -> None:
    with pytest.raises(ValueError):
        GenerateRequest(input_type="code", doc_type="manual", content="x")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        GenerateRequest(input_type="image", doc_type="api", content="x")  # type: ignore[arg-type]


def test_summary_helpers() -> None:
    metadata = CodeMetadata.degraded("", "empty.ts", "typescript")

    assert render_metadata_summary(metadata) == "- **File name**: empty.ts\n- **Language**: typescript"
    assert doc_type_name("api") == "API Document"
    assert PromptBuilder().get_code_summary("", "empty.py").startswith("## Code Analysis Summary")


def test_code_summary_sees_the_truncated_code() -> None:
    seen = []

    def fake_analyzer(code, file_name, language):  # type: ignore[no-untyped-def]
        seen.append(code)
        return CodeMetadata.degraded(code, file_name, language or "unknown")

    builder = PromptBuilder(max_code_length=10, analyzer=fake_analyzer)
    builder.get_code_summary("0123456789\nabcdef", "long.py")
    builder.analyze("0123456789\nabcdef", "long.py")

    assert seen == ["0123456789" + TRUNCATION_MARKER] * 2
