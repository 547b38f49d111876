from __future__ import annotations

import pytest

_PROVIDER_ENV = (
    "ZHIPU_API_KEY",
    "ZHIPU_MODEL",
    "ERNIE_API_KEY",
    "ERNIE_SECRET_KEY",
    "ERNIE_MODEL",
    "XFYUN_APP_ID",
    "XFYUN_API_KEY",
    "XFYUN_API_SECRET",
    "XFYUN_MODEL",
)


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep provider credentials from the developer's shell out of every test."""
    for name in _PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
