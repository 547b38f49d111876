"""Small urllib helpers shared by the HTTP based providers."""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import LLMProtocolError, LLMTimeoutError, LLMTransportError

DEFAULT_TIMEOUT = 60.0

_SSE_PREFIX = "data:"
_SSE_DONE = "[DONE]"


def _build_request(
    url: str, payload: Optional[Mapping[str, Any]], headers: Optional[Mapping[str, str]]
) -> Request:
    data = json.dumps(payload).encode("utf-8") if payload is not None else b""
    merged = {"Content-Type": "application/json"}
    if headers:
        merged.update(headers)
    return Request(url, data=data, headers=merged, method="POST")


def _open(request: Request, timeout: Optional[float], provider: str):  # type: ignore[no-untyped-def]
    try:
        return urlopen(request, timeout=timeout or DEFAULT_TIMEOUT)  # type: ignore[arg-type]
    except HTTPError as exc:
        body = exc.read().decode("utf-8", errors="ignore") if exc.fp is not None else ""
        message = body.strip() or str(exc.reason)
        raise LLMTransportError(
            f"{provider} request failed with status {exc.code}: {message}",
            provider=provider,
            status=exc.code,
            body=body,
        ) from exc
    except URLError as exc:
        raise LLMTransportError(f"{provider} request failed: {exc.reason}", provider=provider) from exc
    except TimeoutError as exc:
        raise LLMTimeoutError(f"{provider} request timed out", provider=provider) from exc


def post_json(
    url: str,
    payload: Optional[Mapping[str, Any]] = None,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
    provider: str = "llm",
) -> Dict[str, Any]:
    """POST ``payload`` as JSON and decode the JSON object in the response."""
    with _open(_build_request(url, payload, headers), timeout, provider) as response:
        raw = response.read()

    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise LLMProtocolError(f"{provider} returned invalid JSON", provider=provider) from exc
    if not isinstance(decoded, dict):
        raise LLMProtocolError(f"{provider} returned an unexpected payload", provider=provider)
    return decoded


@contextmanager
def open_stream(
    url: str,
    payload: Mapping[str, Any],
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
    provider: str = "llm",
) -> Iterator[Iterator[str]]:
    """POST ``payload`` and yield an iterator over the decoded response lines."""
    response = _open(_build_request(url, payload, headers), timeout, provider)
    try:
        yield _iter_lines(response, provider)
    finally:
        response.close()


def _iter_lines(response: Iterable[bytes], provider: str) -> Iterator[str]:
    try:
        for raw in response:
            yield raw.decode("utf-8", errors="replace").rstrip("\r\n")
    except TimeoutError as exc:
        raise LLMTimeoutError(f"{provider} stream timed out", provider=provider) from exc
    except OSError as exc:
        raise LLMTransportError(f"{provider} stream interrupted: {exc}", provider=provider) from exc


def iter_sse_data(lines: Iterable[str]) -> Iterator[str]:
    """Yield the payload of each ``data:`` frame, skipping the ``[DONE]`` sentinel."""
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith(_SSE_PREFIX):
            continue
        data = stripped[len(_SSE_PREFIX) :].strip()
        if not data or data == _SSE_DONE:
            continue
        yield data


__all__ = ["DEFAULT_TIMEOUT", "iter_sse_data", "open_stream", "post_json"]
