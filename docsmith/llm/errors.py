"""Error types raised by LLM providers."""

from __future__ import annotations

from typing import Optional

from ..config import ConfigError


class LLMError(RuntimeError):
    """Base class for provider failures."""

    def __init__(self, message: str, *, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class LLMConfigurationError(LLMError, ConfigError):
    """Credentials or provider selection are missing or malformed."""


class LLMTransportError(LLMError):
    """The HTTP or WebSocket exchange failed."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.status = status
        self.body = body


class LLMProtocolError(LLMError):
    """The provider answered with an application-level error code."""

    def __init__(self, message: str, *, provider: Optional[str] = None, code: object = None) -> None:
        super().__init__(message, provider=provider)
        self.code = code


class LLMTimeoutError(LLMError):
    """No complete answer arrived before the request timeout."""


__all__ = [
    "LLMConfigurationError",
    "LLMError",
    "LLMProtocolError",
    "LLMTimeoutError",
    "LLMTransportError",
]
