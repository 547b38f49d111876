"""Configuration loading for docsmith (.docsmith.yml and environment)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .prompting.constants import DEFAULT_MAX_CODE_LENGTH

CONFIG_FILE_NAME = ".docsmith.yml"

PROVIDERS = ("zhipu", "ernie", "xfyun")

DEFAULT_MODELS: Dict[str, str] = {
    "zhipu": "glm-4-flash",
    "ernie": "ernie-3.5-8k",
    "xfyun": "spark-lite",
}


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be parsed or is incomplete."""


@dataclass
class LLMConfig:
    """Provider selection and credentials."""

    provider: str
    api_key: Optional[str] = None
    model: Optional[str] = None
    secret_key: Optional[str] = None
    app_id: Optional[str] = None
    api_secret: Optional[str] = None
    request_timeout: Optional[float] = None

    def model_or_default(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.provider, "")


@dataclass
class PromptConfig:
    """Prompt assembly limits."""

    max_code_length: int = DEFAULT_MAX_CODE_LENGTH


@dataclass
class DocsmithConfig:
    """Represents the settings defined in .docsmith.yml."""

    root: Path
    llm: Optional[LLMConfig] = None
    prompt: PromptConfig = field(default_factory=PromptConfig)
    demo_mode: bool = False


def load_config(config_path: Path) -> DocsmithConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocsmithConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILE_NAME} must contain a mapping at the root")

    llm_data = _as_dict(data.get("llm"))
    llm = None
    if llm_data:
        provider = _as_str(llm_data.get("provider"))
        if provider is None:
            raise ConfigError(f"llm.provider is required in {CONFIG_FILE_NAME}")
        provider = provider.strip().lower()
        if provider not in PROVIDERS:
            raise ConfigError(
                f"Unsupported llm.provider '{provider}'. Expected one of: {', '.join(PROVIDERS)}"
            )
        llm = LLMConfig(
            provider=provider,
            api_key=_as_str(llm_data.get("api_key")),
            model=_as_str(llm_data.get("model")),
            secret_key=_as_str(llm_data.get("secret_key")),
            app_id=_as_str(llm_data.get("app_id")),
            api_secret=_as_str(llm_data.get("api_secret")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
        )

    prompt = PromptConfig()
    prompt_data = _as_dict(data.get("prompt"))
    max_code_length = _as_int(prompt_data.get("max_code_length")) if prompt_data else None
    if max_code_length is not None:
        if max_code_length <= 0:
            raise ConfigError("prompt.max_code_length must be a positive integer")
        prompt.max_code_length = max_code_length

    return DocsmithConfig(
        root=root,
        llm=llm,
        prompt=prompt,
        demo_mode=_as_bool(data.get("demo_mode")) or False,
    )


def llm_config_from_env(
    provider: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> Optional[LLMConfig]:
    """Build an LLM configuration from environment variables.

    Without an explicit provider the first configured one wins, in the order
    zhipu, ernie, xfyun.
    """
    env = os.environ if environ is None else environ
    if provider is None:
        for candidate in PROVIDERS:
            config = llm_config_from_env(candidate, env)
            if config is not None:
                return config
        return None

    if provider == "zhipu":
        api_key = env.get("ZHIPU_API_KEY")
        if not api_key:
            return None
        return LLMConfig(provider="zhipu", api_key=api_key, model=env.get("ZHIPU_MODEL") or DEFAULT_MODELS["zhipu"])

    if provider == "ernie":
        api_key = env.get("ERNIE_API_KEY")
        if not api_key:
            return None
        return LLMConfig(
            provider="ernie",
            api_key=api_key,
            secret_key=env.get("ERNIE_SECRET_KEY") or None,
            model=env.get("ERNIE_MODEL") or DEFAULT_MODELS["ernie"],
        )

    if provider == "xfyun":
        app_id = env.get("XFYUN_APP_ID")
        api_key = env.get("XFYUN_API_KEY")
        api_secret = env.get("XFYUN_API_SECRET")
        model = env.get("XFYUN_MODEL") or DEFAULT_MODELS["xfyun"]
        if app_id and api_key and api_secret:
            return LLMConfig(provider="xfyun", app_id=app_id, api_key=api_key, api_secret=api_secret, model=model)
        if api_key and ":" in api_key:
            return LLMConfig(provider="xfyun", api_key=api_key, model=model)
        return None

    raise ConfigError(f"Unsupported LLM provider '{provider}'. Expected one of: {', '.join(PROVIDERS)}")


def resolve_llm_config(
    config: Optional[DocsmithConfig] = None,
    provider: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> LLMConfig:
    """Pick the LLM configuration: environment first, then the config file."""
    env_config = llm_config_from_env(provider, environ)
    if env_config is not None:
        return env_config

    file_config = config.llm if config is not None else None
    if file_config is not None and (provider is None or file_config.provider == provider):
        return replace(file_config)

    wanted = f" for provider '{provider}'" if provider else ""
    raise ConfigError(
        f"No LLM configuration found{wanted}. Set ZHIPU_API_KEY, ERNIE_API_KEY or "
        f"XFYUN_API_KEY, or add an 'llm' section to {CONFIG_FILE_NAME}."
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DEFAULT_MODELS",
    "DocsmithConfig",
    "LLMConfig",
    "PROVIDERS",
    "PromptConfig",
    "llm_config_from_env",
    "load_config",
    "resolve_llm_config",
]
