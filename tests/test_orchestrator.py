"""Tests for document generation orchestration."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Optional

import pytest

from docsmith.config import ConfigError, LLMConfig
from docsmith.llm import LLMProvider, LLMTransportError
from docsmith.llm.base import ChunkCallback
from docsmith.models import GenerateRequest, LLMResponse, TokenUsage
from docsmith.orchestrator import (
    DocGenerator,
    MockDocGenerator,
    build_title,
    create_doc_generator,
    create_mock_generator,
)
from docsmith.prompting.builder import PromptBuilder
from docsmith.samples import SAMPLE_DOCUMENTS


class FakeProvider(LLMProvider):
    name = "Fake"
    tag = "fake"

    def __init__(self, chunks=("# Doc", "\n\nBody"), error: Optional[Exception] = None) -> None:
        super().__init__(LLMConfig(provider="fake"))
        self.chunks = list(chunks)
        self.error = error
        self.calls: list[tuple[str, Optional[str]]] = []

    def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        self.calls.append((prompt, system_prompt))
        if self.error is not None:
            raise self.error
        return LLMResponse(content="".join(self.chunks))

    def generate_stream(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> LLMResponse:
        self.calls.append((prompt, system_prompt))
        for chunk in self.chunks:
            if on_chunk is not None:
                on_chunk(chunk)
        return LLMResponse(content="".join(self.chunks), usage=TokenUsage(total_tokens=3))


def _code_request(**overrides) -> GenerateRequest:
    values = dict(
        input_type="code",
        doc_type="api",
        content="def ping() -> str:\n    return 'pong'\n",
        file_name="src/health.py",
    )
    values.update(overrides)
    return GenerateRequest(**values)


def test_build_title_uses_file_stem_or_date() -> None:
    today = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)

    assert build_title("api", "src/health.py") == "health - API Document"
    assert build_title("design", None, today=today) == "Design Document - 2026-10-18"
    assert build_title("test", "", today=today) == "Test Document - 2026-10-18"


def test_generate_stamps_result_from_provider_output() -> None:
    provider = FakeProvider()
    generator = DocGenerator(provider=provider)

    result = generator.generate(_code_request())

    assert result.content == "# Doc\n\nBody"
    assert result.title == "health - API Document"
    assert result.doc_type == "api"
    assert result.input_type == "code"
    uuid.UUID(result.id)
    assert datetime.fromisoformat(result.created_at).tzinfo is not None
    assert result.metadata is not None
    assert [fn.name for fn in result.metadata.functions] == ["ping"]
    prompt, system_prompt = provider.calls[0]
    assert "## Code Structure Analysis" in prompt
    assert system_prompt is not None and "API documentation expert" in system_prompt


def test_generate_stream_forwards_chunks() -> None:
    generator = DocGenerator(provider=FakeProvider(chunks=["a", "b", "c"]))
    chunks: list[str] = []

    result = generator.generate_stream(
        GenerateRequest(input_type="text", doc_type="requirements", content="A chat app."),
        chunks.append,
    )

    assert chunks == ["a", "b", "c"]
    assert result.content == "abc"
    assert result.metadata is None
    assert result.title.startswith("Requirements Document - ")


def test_results_get_distinct_ids() -> None:
    generator = DocGenerator(provider=FakeProvider())

    first = generator.generate(_code_request())
    second = generator.generate(_code_request())

    assert first.id != second.id


def test_provider_errors_propagate() -> None:
    generator = DocGenerator(provider=FakeProvider(error=LLMTransportError("down", provider="fake")))

    with pytest.raises(LLMTransportError):
        generator.generate(_code_request())


def test_generator_uses_configured_prompt_builder() -> None:
    provider = FakeProvider()
    generator = DocGenerator(provider=provider, prompt_builder=PromptBuilder(max_code_length=8))

    generator.generate(_code_request(content="x = 1\ny = 2\nz = 3\n"))

    assert "code truncated for length" in provider.calls[0][0]
    metadata = generator.analyze_code("class A:\n    pass\n", "a.py")
    assert [cls.name for cls in metadata.classes] == ["A"]


def test_generator_without_configuration_raises_config_error() -> None:
    with pytest.raises(ConfigError):
        DocGenerator()


def test_connection_check_delegates_to_provider() -> None:
    assert DocGenerator(provider=FakeProvider()).test_connection() is True
    failing = FakeProvider(error=LLMTransportError("down", provider="fake"))
    assert DocGenerator(provider=failing).test_connection() is False


def test_factory_builds_provider_from_config() -> None:
    generator = create_doc_generator(LLMConfig(provider="zhipu", api_key="k"))

    assert generator.provider.tag == "zhipu"


def test_mock_generator_streams_sample_document() -> None:
    sleeps: list[float] = []
    generator = MockDocGenerator(sleep=sleeps.append)
    chunks: list[str] = []

    result = generator.generate_stream(
        GenerateRequest(input_type="text", doc_type="design", content="anything"), chunks.append
    )

    assert "".join(chunks) == SAMPLE_DOCUMENTS["design"]
    assert all(len(chunk) == 1 for chunk in chunks)
    assert result.content == SAMPLE_DOCUMENTS["design"]
    assert result.title == "Sample Design Document"
    assert sleeps == [0.01] * len(chunks)


def test_mock_generator_returns_sample_after_latency() -> None:
    sleeps: list[float] = []
    generator = create_mock_generator(sleep=sleeps.append)

    result = generator.generate(_code_request(doc_type="test"))

    assert result.content == SAMPLE_DOCUMENTS["test"]
    assert result.input_type == "code"
    assert sleeps == [1.0]
    assert generator.test_connection() is True
    assert generator.analyze_code("function f() {}", "f.js").language == "javascript"
