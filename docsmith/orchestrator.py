"""Document generation orchestration: prompt, provider call, result stamping."""

from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime
from pathlib import PurePath
from typing import Callable, Optional

from .analyzers import analyze_code as run_analysis
from .config import LLMConfig, resolve_llm_config
from .llm import LLMProvider, TokenCache, create_provider
from .llm.base import ChunkCallback
from .logging import get_logger
from .models import CodeMetadata, GenerateRequest, GenerateResult
from .prompting.builder import PromptBuilder, doc_type_name
from .samples import sample_document


def _now() -> datetime:
    return datetime.now(UTC)


def build_title(doc_type: str, file_name: Optional[str] = None, *, today: Optional[datetime] = None) -> str:
    """``"<file stem> - <Doc Name>"`` for files, ``"<Doc Name> - <YYYY-MM-DD>"`` otherwise."""
    name = doc_type_name(doc_type)
    if file_name:
        return f"{PurePath(file_name).stem} - {name}"
    return f"{name} - {(today or _now()).date().isoformat()}"


def _stamp(
    request: GenerateRequest,
    *,
    title: str,
    content: str,
    metadata: Optional[CodeMetadata] = None,
) -> GenerateResult:
    return GenerateResult(
        id=str(uuid.uuid4()),
        doc_type=request.doc_type,
        title=title,
        content=content,
        created_at=_now().isoformat(),
        input_type=request.input_type,
        metadata=metadata,
    )


class DocGenerator:
    """Runs generation requests against one configured LLM provider."""

    def __init__(
        self,
        llm_config: Optional[LLMConfig] = None,
        *,
        provider: Optional[LLMProvider] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        token_cache: Optional[TokenCache] = None,
    ) -> None:
        if provider is None:
            provider = create_provider(llm_config or resolve_llm_config(), token_cache=token_cache)
        self.provider = provider
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.logger = get_logger("orchestrator")

    def generate(self, request: GenerateRequest) -> GenerateResult:
        prompt = self.prompt_builder.build(request)
        self.logger.info("Generating %s document with %s", request.doc_type, self.provider.name)
        response = self.provider.generate(prompt.user_prompt, prompt.system_prompt)
        return _stamp(
            request,
            title=build_title(request.doc_type, request.file_name),
            content=response.content,
            metadata=prompt.metadata,
        )

    def generate_stream(self, request: GenerateRequest, on_chunk: ChunkCallback) -> GenerateResult:
        prompt = self.prompt_builder.build(request)
        self.logger.info("Streaming %s document with %s", request.doc_type, self.provider.name)
        response = self.provider.generate_stream(prompt.user_prompt, prompt.system_prompt, on_chunk)
        if response.usage is not None:
            self.logger.debug("Token usage: %s", response.usage)
        return _stamp(
            request,
            title=build_title(request.doc_type, request.file_name),
            content=response.content,
            metadata=prompt.metadata,
        )

    def test_connection(self) -> bool:
        return self.provider.test_connection()

    def analyze_code(self, code: str, file_name: str, language: Optional[str] = None) -> CodeMetadata:
        return self.prompt_builder.analyze(code, file_name, language)


class MockDocGenerator:
    """Network-free stand-in that serves canned documents with simulated latency."""

    def __init__(
        self,
        latency: float = 1.0,
        char_delay: float = 0.01,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.latency = latency
        self.char_delay = char_delay
        self._sleep = sleep

    @staticmethod
    def _title(request: GenerateRequest) -> str:
        return f"Sample {doc_type_name(request.doc_type)}"

    def generate(self, request: GenerateRequest) -> GenerateResult:
        if self.latency > 0:
            self._sleep(self.latency)
        return _stamp(request, title=self._title(request), content=sample_document(request.doc_type))

    def generate_stream(self, request: GenerateRequest, on_chunk: ChunkCallback) -> GenerateResult:
        content = sample_document(request.doc_type)
        for char in content:
            if self.char_delay > 0:
                self._sleep(self.char_delay)
            on_chunk(char)
        return _stamp(request, title=self._title(request), content=content)

    def test_connection(self) -> bool:
        return True

    def analyze_code(self, code: str, file_name: str, language: Optional[str] = None) -> CodeMetadata:
        return run_analysis(code, file_name, language)


def create_doc_generator(llm_config: Optional[LLMConfig] = None, **kwargs) -> DocGenerator:  # type: ignore[no-untyped-def]
    return DocGenerator(llm_config, **kwargs)


def create_mock_generator(**kwargs) -> MockDocGenerator:  # type: ignore[no-untyped-def]
    return MockDocGenerator(**kwargs)


__all__ = [
    "DocGenerator",
    "MockDocGenerator",
    "build_title",
    "create_doc_generator",
    "create_mock_generator",
]
