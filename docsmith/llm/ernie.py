"""Baidu ERNIE chat over HTTP, authenticated with OAuth2 client credentials."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from ..config import LLMConfig
from ..logging import get_logger
from ..models import LLMResponse, TokenUsage
from .base import TEMPERATURE, TOP_P, ChunkCallback, LLMProvider, parse_usage
from .errors import LLMConfigurationError, LLMProtocolError
from .http import iter_sse_data, open_stream, post_json
from .token_cache import TokenCache

_LOGGER = get_logger("llm.ernie")

MODEL_ENDPOINTS: Dict[str, str] = {
    "ernie-4.0-8k": "completions_pro",
    "ernie-4.0-turbo-8k": "ernie-4.0-turbo-8k",
    "ernie-3.5-8k": "completions",
    "ernie-speed-8k": "ernie_speed",
    "ernie-lite-8k": "ernie-lite-8k",
}
DEFAULT_ENDPOINT = "completions_pro"
# Access token invalid, access token expired.
TOKEN_ERROR_CODES = frozenset({110, 111})


def resolve_credentials(config: LLMConfig) -> Tuple[str, str]:
    """Return ``(api_key, secret_key)`` from separate fields or ``"apiKey:secretKey"``."""
    if config.api_key and config.secret_key:
        return config.api_key, config.secret_key
    if config.api_key and ":" in config.api_key:
        api_key, _, secret_key = config.api_key.partition(":")
        if api_key and secret_key:
            return api_key, secret_key
    raise LLMConfigurationError(
        'ERNIE requires an API key and a secret key: set both fields or use api_key "apiKey:secretKey"',
        provider="ernie",
    )


class ErnieProvider(LLMProvider):
    """Exchanges client credentials for an access token and calls the chat endpoint."""

    name = "ERNIE Bot"
    tag = "ernie"

    TOKEN_URL = "https://aip.baidubce.com/oauth/2.0/token"
    CHAT_URL = "https://aip.baidubce.com/rpc/2.0/ai_custom/v1/wenxinworkshop/chat"

    def __init__(self, config: LLMConfig, *, token_cache: Optional[TokenCache] = None) -> None:
        super().__init__(config)
        self.api_key, self.secret_key = resolve_credentials(config)
        self.token_cache = token_cache if token_cache is not None else TokenCache()

    @property
    def endpoint(self) -> str:
        return MODEL_ENDPOINTS.get(self.model, DEFAULT_ENDPOINT)

    def access_token(self) -> str:
        return self.token_cache.get_or_refresh(self.api_key, self._fetch_token)

    def _fetch_token(self) -> Tuple[str, float]:
        query = urlencode(
            {
                "grant_type": "client_credentials",
                "client_id": self.api_key,
                "client_secret": self.secret_key,
            }
        )
        _LOGGER.debug("Requesting ERNIE access token")
        data = post_json(
            f"{self.TOKEN_URL}?{query}",
            timeout=self.config.request_timeout,
            provider=self.tag,
        )
        token = data.get("access_token")
        if "error" in data or not isinstance(token, str) or not token:
            detail = data.get("error_description") or data.get("error") or "no access_token in response"
            raise LLMProtocolError(
                f"Failed to obtain ERNIE access token: {detail}",
                provider=self.tag,
                code=data.get("error"),
            )
        return token, float(data.get("expires_in") or 0)

    def _chat_url(self) -> str:
        return f"{self.CHAT_URL}/{self.endpoint}?{urlencode({'access_token': self.access_token()})}"

    @staticmethod
    def _payload(prompt: str, system_prompt: Optional[str], *, stream: bool) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "messages": [{"role": "user", "content": prompt}],
            "temperature": TEMPERATURE,
            "top_p": TOP_P,
        }
        if system_prompt:
            payload["system"] = system_prompt
        if stream:
            payload["stream"] = True
        return payload

    def _raise_for_error(self, payload: Dict[str, Any]) -> None:
        if payload.get("error_code"):
            if payload["error_code"] in TOKEN_ERROR_CODES:
                _LOGGER.info("ERNIE rejected the access token; the next call requests a new one")
                self.token_cache.invalidate(self.api_key)
            raise LLMProtocolError(
                f"ERNIE API error {payload['error_code']}: {payload.get('error_msg', '')}",
                provider=self.tag,
                code=payload["error_code"],
            )

    def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        data = post_json(
            self._chat_url(),
            self._payload(prompt, system_prompt, stream=False),
            timeout=self.config.request_timeout,
            provider=self.tag,
        )
        self._raise_for_error(data)
        result = data.get("result")
        return LLMResponse(
            content=result if isinstance(result, str) else "",
            usage=parse_usage(data.get("usage")),
        )

    def generate_stream(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> LLMResponse:
        pieces: List[str] = []
        usage: Optional[TokenUsage] = None
        with open_stream(
            self._chat_url(),
            self._payload(prompt, system_prompt, stream=True),
            timeout=self.config.request_timeout,
            provider=self.tag,
        ) as lines:
            for data in iter_sse_data(lines):
                try:
                    frame = json.loads(data)
                except json.JSONDecodeError:
                    _LOGGER.debug("Skipping malformed stream frame: %r", data[:200])
                    continue
                self._raise_for_error(frame)
                text = frame.get("result")
                if isinstance(text, str) and text:
                    pieces.append(text)
                    if on_chunk is not None:
                        on_chunk(text)
                if frame.get("is_end"):
                    usage = parse_usage(frame.get("usage")) or usage
        return LLMResponse(content="".join(pieces), usage=usage)


__all__ = ["DEFAULT_ENDPOINT", "ErnieProvider", "MODEL_ENDPOINTS", "TOKEN_ERROR_CODES", "resolve_credentials"]
