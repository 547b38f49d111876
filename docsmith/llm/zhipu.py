"""Zhipu GLM chat completions over HTTP with SSE streaming."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from ..config import LLMConfig
from ..logging import get_logger
from ..models import LLMResponse, TokenUsage
from .base import MAX_TOKENS, TEMPERATURE, TOP_P, ChunkCallback, LLMProvider, build_messages, parse_usage
from .errors import LLMConfigurationError
from .http import iter_sse_data, open_stream, post_json

_LOGGER = get_logger("llm.zhipu")


class ZhipuProvider(LLMProvider):
    """Bearer-key authenticated provider for the GLM model family."""

    name = "Zhipu GLM"
    tag = "zhipu"

    BASE_URL = "https://open.bigmodel.cn/api/paas/v4"

    def __init__(self, config: LLMConfig) -> None:
        super().__init__(config)
        if not config.api_key:
            raise LLMConfigurationError("Zhipu GLM requires an API key", provider=self.tag)
        self.api_key = config.api_key

    @property
    def endpoint(self) -> str:
        return f"{self.BASE_URL}/chat/completions"

    def _payload(self, prompt: str, system_prompt: Optional[str], *, stream: bool) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": build_messages(prompt, system_prompt),
            "temperature": TEMPERATURE,
            "top_p": TOP_P,
            "max_tokens": MAX_TOKENS,
        }
        if stream:
            payload["stream"] = True
        return payload

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        data = post_json(
            self.endpoint,
            self._payload(prompt, system_prompt, stream=False),
            headers=self._headers(),
            timeout=self.config.request_timeout,
            provider=self.tag,
        )
        return LLMResponse(content=_message_content(data), usage=parse_usage(data.get("usage")))

    def generate_stream(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> LLMResponse:
        pieces: List[str] = []
        usage: Optional[TokenUsage] = None
        with open_stream(
            self.endpoint,
            self._payload(prompt, system_prompt, stream=True),
            headers=self._headers(),
            timeout=self.config.request_timeout,
            provider=self.tag,
        ) as lines:
            for data in iter_sse_data(lines):
                try:
                    frame = json.loads(data)
                except json.JSONDecodeError:
                    _LOGGER.debug("Skipping malformed stream frame: %r", data[:200])
                    continue
                text = _delta_content(frame)
                if text:
                    pieces.append(text)
                    if on_chunk is not None:
                        on_chunk(text)
                usage = parse_usage(frame.get("usage")) or usage
        return LLMResponse(content="".join(pieces), usage=usage)


def _first_choice(payload: Dict[str, Any]) -> Dict[str, Any]:
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return {}


def _message_content(payload: Dict[str, Any]) -> str:
    message = _first_choice(payload).get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    return ""


def _delta_content(payload: Dict[str, Any]) -> str:
    delta = _first_choice(payload).get("delta")
    if isinstance(delta, dict) and isinstance(delta.get("content"), str):
        return delta["content"]
    return ""


__all__ = ["ZhipuProvider"]
