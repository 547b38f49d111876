"""iFlytek Spark chat over an HMAC-signed WebSocket."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import threading
from concurrent.futures import Future
from email.utils import formatdate
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote, urlencode, urlparse

import websocket

from ..config import LLMConfig
from ..logging import get_logger
from ..models import LLMResponse, TokenUsage
from .base import MAX_TOKENS, TEMPERATURE, ChunkCallback, LLMProvider, build_messages, parse_usage
from .errors import LLMConfigurationError, LLMProtocolError, LLMTimeoutError, LLMTransportError
from .http import DEFAULT_TIMEOUT

_LOGGER = get_logger("llm.spark")

DEFAULT_MODEL = "spark-lite"

MODEL_ROUTES: Dict[str, Tuple[str, str]] = {
    "spark-lite": ("wss://spark-api.xf-yun.com/v1.1/chat", "lite"),
    "spark-pro": ("wss://spark-api.xf-yun.com/v3.1/chat", "generalv3"),
    "spark-max": ("wss://spark-api.xf-yun.com/v3.5/chat", "generalv3.5"),
    "spark-ultra": ("wss://spark-api.xf-yun.com/v4.0/chat", "max-32k"),
}

_FINAL_STATUS = 2
_UID = "docsmith"

SocketFactory = Callable[..., Any]


def resolve_credentials(config: LLMConfig) -> Tuple[str, str, str]:
    """Return ``(app_id, api_key, api_secret)`` from separate fields or ``"APPID:APIKey:APISecret"``."""
    if config.app_id and config.api_key and config.api_secret:
        return config.app_id, config.api_key, config.api_secret
    if config.api_key and ":" in config.api_key:
        parts = config.api_key.split(":")
        if len(parts) != 3 or not all(parts):
            raise LLMConfigurationError(
                "Spark API key has the wrong format, expected APPID:APIKey:APISecret",
                provider="xfyun",
            )
        return parts[0], parts[1], parts[2]
    raise LLMConfigurationError(
        'Spark requires an APPID, API key and API secret: set all three fields or use api_key "APPID:APIKey:APISecret"',
        provider="xfyun",
    )


def route_for_model(model: Optional[str]) -> Tuple[str, str]:
    """Return ``(websocket_url, domain)`` for a model name, defaulting to spark-lite."""
    return MODEL_ROUTES.get(model or DEFAULT_MODEL, MODEL_ROUTES[DEFAULT_MODEL])


def build_signed_url(url: str, api_key: str, api_secret: str, *, date: Optional[str] = None) -> str:
    """Append the HMAC-SHA256 ``authorization``, ``date`` and ``host`` query parameters to ``url``."""
    parsed = urlparse(url)
    host = parsed.netloc
    date = date or formatdate(usegmt=True)

    signature_origin = f"host: {host}\ndate: {date}\nGET {parsed.path} HTTP/1.1"
    digest = hmac.new(api_secret.encode("utf-8"), signature_origin.encode("utf-8"), hashlib.sha256).digest()
    signature = base64.b64encode(digest).decode("ascii")

    authorization_origin = (
        f'api_key="{api_key}", algorithm="hmac-sha256", '
        f'headers="host date request-line", signature="{signature}"'
    )
    authorization = base64.b64encode(authorization_origin.encode("utf-8")).decode("ascii")

    query = urlencode({"authorization": authorization, "date": date, "host": host}, quote_via=quote)
    return f"{url}?{query}"


class _StreamSession:
    """Bridges WebSocket callbacks into a single settled ``Future``."""

    def __init__(self, provider: str, envelope: Dict[str, Any], on_chunk: Optional[ChunkCallback]) -> None:
        self.provider = provider
        self.envelope = envelope
        self.on_chunk = on_chunk
        self.future: "Future[LLMResponse]" = Future()
        self.pieces: List[str] = []
        self.usage: Optional[TokenUsage] = None
        self.app: Any = None
        self._lock = threading.Lock()

    def _settle(self, *, result: Optional[LLMResponse] = None, error: Optional[BaseException] = None) -> bool:
        with self._lock:
            if self.future.done():
                return False
            if error is not None:
                self.future.set_exception(error)
            else:
                self.future.set_result(result)  # type: ignore[arg-type]
            return True

    def _response(self) -> LLMResponse:
        return LLMResponse(content="".join(self.pieces), usage=self.usage)

    def close(self) -> None:
        if self.app is not None:
            self.app.close()

    def on_open(self, ws: Any) -> None:
        ws.send(json.dumps(self.envelope))

    def on_message(self, ws: Any, message: Any) -> None:
        if self.future.done():
            return
        try:
            frame = json.loads(message)
        except (TypeError, ValueError):
            _LOGGER.debug("Skipping malformed Spark frame")
            return

        header = frame.get("header") or {}
        code = header.get("code", 0)
        if code != 0:
            self._settle(
                error=LLMProtocolError(
                    f"Spark API error {code}: {header.get('message', '')}",
                    provider=self.provider,
                    code=code,
                )
            )
            ws.close()
            return

        payload = frame.get("payload") or {}
        texts = (payload.get("choices") or {}).get("text") or []
        content = texts[0].get("content") if texts and isinstance(texts[0], dict) else None
        if content:
            self.pieces.append(content)
            if self.on_chunk is not None:
                try:
                    self.on_chunk(content)
                except Exception as exc:  # noqa: BLE001
                    self._settle(error=exc)
                    ws.close()
                    return

        usage = parse_usage((payload.get("usage") or {}).get("text"))
        if usage is not None:
            self.usage = usage

        if header.get("status") == _FINAL_STATUS:
            self._settle(result=self._response())
            ws.close()

    def on_error(self, ws: Any, error: Any) -> None:
        self._settle(error=LLMTransportError(f"Spark WebSocket error: {error}", provider=self.provider))

    def on_close(self, ws: Any, status_code: Any = None, message: Any = None) -> None:
        _LOGGER.debug("Spark WebSocket closed (%s %s)", status_code, message)

    def on_timeout(self) -> None:
        if self._settle(error=LLMTimeoutError("Spark request timed out", provider=self.provider)):
            self.close()

    def finish(self) -> LLMResponse:
        if not self.future.done():
            if self.pieces:
                _LOGGER.warning("Spark connection closed before the final frame; returning partial content")
                self._settle(result=self._response())
            else:
                self._settle(
                    error=LLMTransportError(
                        "Spark connection closed without a response", provider=self.provider
                    )
                )
        return self.future.result()


class SparkProvider(LLMProvider):
    """Streams chat completions from Spark; ``generate`` collects the stream."""

    name = "iFlytek Spark"
    tag = "xfyun"

    def __init__(self, config: LLMConfig, *, socket_factory: Optional[SocketFactory] = None) -> None:
        super().__init__(config)
        self.app_id, self.api_key, self.api_secret = resolve_credentials(config)
        self.url, self.domain = route_for_model(config.model)
        self.request_timeout = config.request_timeout or DEFAULT_TIMEOUT
        self._socket_factory = socket_factory or websocket.WebSocketApp

    def build_envelope(self, prompt: str, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        return {
            "header": {"app_id": self.app_id, "uid": _UID},
            "parameter": {
                "chat": {
                    "domain": self.domain,
                    "temperature": TEMPERATURE,
                    "max_tokens": MAX_TOKENS,
                }
            },
            "payload": {"message": {"text": build_messages(prompt, system_prompt)}},
        }

    def signed_url(self, *, date: Optional[str] = None) -> str:
        return build_signed_url(self.url, self.api_key, self.api_secret, date=date)

    def generate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        return self.generate_stream(prompt, system_prompt)

    def generate_stream(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> LLMResponse:
        session = _StreamSession(self.tag, self.build_envelope(prompt, system_prompt), on_chunk)
        session.app = self._socket_factory(
            self.signed_url(),
            on_open=session.on_open,
            on_message=session.on_message,
            on_error=session.on_error,
            on_close=session.on_close,
        )
        watchdog = threading.Timer(self.request_timeout, session.on_timeout)
        watchdog.daemon = True
        watchdog.start()
        try:
            session.app.run_forever()
        except Exception as exc:  # noqa: BLE001
            raise LLMTransportError(f"Spark WebSocket failed: {exc}", provider=self.tag) from exc
        finally:
            watchdog.cancel()
        return session.finish()


__all__ = [
    "DEFAULT_MODEL",
    "MODEL_ROUTES",
    "SparkProvider",
    "build_signed_url",
    "resolve_credentials",
    "route_for_model",
]
