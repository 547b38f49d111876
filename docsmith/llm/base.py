"""Provider contract shared by every LLM backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ..config import LLMConfig
from ..logging import get_logger
from ..models import LLMResponse, TokenUsage
from .errors import LLMError

ChunkCallback = Callable[[str], None]

CONNECTION_PROBE = 'Hello, please reply with "connected".'

TEMPERATURE = 0.7
TOP_P = 0.9
MAX_TOKENS = 4096

_LOGGER = get_logger("llm")


class LLMProvider(ABC):
    """One chat-completion backend behind a uniform interface."""

    name: str = "LLM"
    tag: str = ""

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    @property
    def model(self) -> str:
        return self.config.model_or_default()

    @abstractmethod
    def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        """Return the complete answer for ``prompt``."""

    @abstractmethod
    def generate_stream(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> LLMResponse:
        """Stream the answer, invoking ``on_chunk`` for each text fragment in arrival order."""

    def test_connection(self) -> bool:
        try:
            response = self.generate(CONNECTION_PROBE)
        except LLMError as exc:
            _LOGGER.warning("Connection test against %s failed: %s", self.name, exc)
            return False
        return bool(response.content)


def build_messages(prompt: str, system_prompt: Optional[str] = None) -> List[Dict[str, str]]:
    messages: List[Dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


def parse_usage(raw: Any) -> Optional[TokenUsage]:
    """Convert an OpenAI-style ``usage`` mapping into ``TokenUsage``."""
    if not isinstance(raw, dict):
        return None
    return TokenUsage(
        prompt_tokens=int(raw.get("prompt_tokens") or 0),
        completion_tokens=int(raw.get("completion_tokens") or 0),
        total_tokens=int(raw.get("total_tokens") or 0),
    )


__all__ = [
    "CONNECTION_PROBE",
    "ChunkCallback",
    "LLMProvider",
    "build_messages",
    "parse_usage",
]
