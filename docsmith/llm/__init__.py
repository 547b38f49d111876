"""Remote LLM providers behind a common generation contract."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from ..config import LLMConfig
from .base import LLMProvider
from .ernie import ErnieProvider
from .errors import (
    LLMConfigurationError,
    LLMError,
    LLMProtocolError,
    LLMTimeoutError,
    LLMTransportError,
)
from .spark import SparkProvider
from .token_cache import TokenCache
from .zhipu import ZhipuProvider

_FACTORIES: Dict[str, Callable[[LLMConfig, Optional[TokenCache]], LLMProvider]] = {
    "zhipu": lambda config, _cache: ZhipuProvider(config),
    "ernie": lambda config, cache: ErnieProvider(config, token_cache=cache),
    "xfyun": lambda config, _cache: SparkProvider(config),
}


def create_provider(config: LLMConfig, *, token_cache: Optional[TokenCache] = None) -> LLMProvider:
    """Instantiate the provider named by ``config.provider``."""
    factory = _FACTORIES.get((config.provider or "").lower())
    if factory is None:
        raise LLMConfigurationError(
            f"Unsupported LLM provider '{config.provider}'. Expected one of: {', '.join(_FACTORIES)}",
            provider=config.provider,
        )
    return factory(config, token_cache)


__all__ = [
    "ErnieProvider",
    "LLMConfigurationError",
    "LLMError",
    "LLMProtocolError",
    "LLMProvider",
    "LLMTimeoutError",
    "LLMTransportError",
    "SparkProvider",
    "TokenCache",
    "ZhipuProvider",
    "create_provider",
]
