"""Thread-safe cache for short-lived OAuth access tokens."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

TOKEN_REFRESH_MARGIN = 300.0

TokenFetcher = Callable[[], Tuple[str, float]]


@dataclass(frozen=True)
class CachedToken:
    value: str
    expires_at: float


class TokenCache:
    """Keeps one access token per credential key until shortly before it expires.

    ``get_or_refresh`` holds the lock across the fetch, so concurrent callers
    that find an expired token trigger a single exchange.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        refresh_margin: float = TOKEN_REFRESH_MARGIN,
    ) -> None:
        self._clock = clock
        self._refresh_margin = refresh_margin
        self._tokens: Dict[str, CachedToken] = {}
        self._lock = threading.Lock()

    def get_or_refresh(self, key: str, fetch: TokenFetcher) -> str:
        """Return a valid token for ``key``, calling ``fetch`` when none is cached.

        ``fetch`` returns ``(token, expires_in_seconds)``.
        """
        with self._lock:
            cached = self._valid(key)
            if cached is not None:
                return cached.value
            token, expires_in = fetch()
            self._tokens[key] = CachedToken(
                value=token,
                expires_at=self._clock() + float(expires_in) - self._refresh_margin,
            )
            return token

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._tokens.pop(key, None)

    def _valid(self, key: str) -> Optional[CachedToken]:
        cached = self._tokens.get(key)
        if cached is None or self._clock() >= cached.expires_at:
            return None
        return cached


__all__ = ["CachedToken", "TOKEN_REFRESH_MARGIN", "TokenCache"]
