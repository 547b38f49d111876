"""FastAPI application entrypoint for docsmith service mode."""

from __future__ import annotations

import asyncio
import json
import queue
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Literal, Optional, Union

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from ..analyzers import analyze_code, generate_code_summary
from ..config import ConfigError, DocsmithConfig, LLMConfig, load_config, resolve_llm_config
from ..llm import LLMConfigurationError, LLMError, TokenCache
from ..logging import get_logger
from ..models import GenerateRequest
from ..orchestrator import DocGenerator, MockDocGenerator, create_mock_generator
from ..prompting.builder import PromptBuilder

Generator = Union[DocGenerator, MockDocGenerator]
GeneratorFactory = Callable[[LLMConfig, DocsmithConfig, TokenCache], Generator]

_LOGGER = get_logger("service")


class HealthResponse(BaseModel):
    status: str


class ParseCodeRequest(BaseModel):
    code: str = Field(min_length=1)
    file_name: str = Field(min_length=1)
    language: Optional[str] = None


class ParseCodeResponse(BaseModel):
    metadata: Dict[str, Any]
    summary: str


class GenerateDocRequest(BaseModel):
    input_type: Literal["code", "text"]
    doc_type: Literal["requirements", "design", "api", "test"]
    content: str = Field(min_length=1)
    file_name: Optional[str] = None
    language: Optional[str] = None
    additional_context: Optional[str] = None
    stream: bool = False
    use_mock: bool = False
    provider: Optional[str] = None


class ConnectionRequest(BaseModel):
    provider: Optional[str] = None
    api_key: Optional[str] = None
    model: Optional[str] = None
    secret_key: Optional[str] = None
    app_id: Optional[str] = None
    api_secret: Optional[str] = None


class ConnectionResponse(BaseModel):
    success: bool
    message: str


def _default_generator(llm_config: LLMConfig, config: DocsmithConfig, token_cache: TokenCache) -> Generator:
    return DocGenerator(
        llm_config,
        prompt_builder=PromptBuilder(max_code_length=config.prompt.max_code_length),
        token_cache=token_cache,
    )


def _default_config() -> DocsmithConfig:
    return load_config(Path.cwd())


def sse_events(generator: Generator, request: GenerateRequest) -> Iterator[str]:
    """Run a streaming generation on a worker thread and yield ``data:`` frames."""
    events: "queue.Queue[Optional[Dict[str, Any]]]" = queue.Queue()

    def _worker() -> None:
        try:
            result = generator.generate_stream(request, lambda chunk: events.put({"chunk": chunk}))
            events.put({"done": True, "result": result.to_dict()})
        except LLMError as exc:
            _LOGGER.warning("Streaming generation failed: %s", exc)
            events.put({"error": str(exc)})
        except Exception as exc:  # noqa: BLE001
            _LOGGER.exception("Unexpected streaming failure")
            events.put({"error": str(exc)})
        finally:
            events.put(None)

    threading.Thread(target=_worker, name="docsmith-stream", daemon=True).start()
    while True:
        event = events.get()
        if event is None:
            break
        yield f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


async def _in_executor(func: Callable[..., Any], *args: Any) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


def create_app(
    generator_factory: GeneratorFactory = _default_generator,
    *,
    mock_factory: Callable[[], MockDocGenerator] = create_mock_generator,
    config_loader: Callable[[], DocsmithConfig] = _default_config,
) -> FastAPI:
    """Create the FastAPI application exposing docsmith operations.

    Provider access tokens are cached for the lifetime of the app.
    """

    app = FastAPI(title="docsmith", version="1.0.0")
    token_cache = TokenCache()

    def _select_generator(payload: GenerateDocRequest) -> Generator:
        config = config_loader()
        if payload.use_mock or config.demo_mode:
            return mock_factory()
        return generator_factory(resolve_llm_config(config, payload.provider), config, token_cache)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/parse-code", response_model=ParseCodeResponse)
    async def parse_code(payload: ParseCodeRequest) -> ParseCodeResponse:
        metadata = await _in_executor(analyze_code, payload.code, payload.file_name, payload.language)
        return ParseCodeResponse(metadata=metadata.to_dict(), summary=generate_code_summary(metadata))

    @app.post("/generate-doc")
    async def generate_doc(payload: GenerateDocRequest) -> Any:
        request = GenerateRequest(
            input_type=payload.input_type,
            doc_type=payload.doc_type,
            content=payload.content,
            file_name=payload.file_name,
            language=payload.language,
            additional_context=payload.additional_context,
        )
        generator = _select_generator(payload)

        if payload.stream:
            return StreamingResponse(
                sse_events(generator, request),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
            )

        result = await _in_executor(generator.generate, request)
        return result.to_dict()

    @app.post("/llm/test-connection", response_model=ConnectionResponse)
    async def test_connection(payload: ConnectionRequest) -> Any:
        config = config_loader()
        if payload.api_key:
            if not payload.provider:
                raise ConfigError("provider is required when credentials are supplied")
            llm_config = LLMConfig(
                provider=payload.provider,
                api_key=payload.api_key,
                model=payload.model,
                secret_key=payload.secret_key,
                app_id=payload.app_id,
                api_secret=payload.api_secret,
            )
        else:
            llm_config = resolve_llm_config(config, payload.provider)

        generator = generator_factory(llm_config, config, token_cache)
        connected = await _in_executor(generator.test_connection)
        if not connected:
            return JSONResponse(
                status_code=400,
                content={"success": False, "message": "Connection failed, check the credentials"},
            )
        return ConnectionResponse(success=True, message="Connection succeeded")

    @app.exception_handler(LLMConfigurationError)
    async def llm_config_error_handler(_: Any, exc: LLMConfigurationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(LLMError)
    async def llm_error_handler(_: Any, exc: LLMError) -> JSONResponse:
        _LOGGER.warning("Provider call failed: %s", exc)
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service", "sse_events"]
