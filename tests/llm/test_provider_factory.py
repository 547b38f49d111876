"""Tests for provider selection."""

from __future__ import annotations

import pytest

from docsmith.config import ConfigError, LLMConfig
from docsmith.llm import (
    ErnieProvider,
    LLMConfigurationError,
    SparkProvider,
    TokenCache,
    ZhipuProvider,
    create_provider,
)


def test_create_provider_by_tag() -> None:
    cache = TokenCache()

    zhipu = create_provider(LLMConfig(provider="zhipu", api_key="k"))
    ernie = create_provider(LLMConfig(provider="ernie", api_key="a:s"), token_cache=cache)
    spark = create_provider(LLMConfig(provider="XFYUN", api_key="app:key:secret"))

    assert isinstance(zhipu, ZhipuProvider)
    assert isinstance(ernie, ErnieProvider)
    assert ernie.token_cache is cache
    assert isinstance(spark, SparkProvider)
    assert zhipu.model == "glm-4-flash"
    assert ernie.model == "ernie-3.5-8k"


def test_unknown_provider_is_a_configuration_error() -> None:
    with pytest.raises(LLMConfigurationError) as excinfo:
        create_provider(LLMConfig(provider="openai", api_key="k"))

    assert isinstance(excinfo.value, ConfigError)
    assert "openai" in str(excinfo.value)
