"""Cached OAuth client-credentials token."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

TokenFetcher = Callable[[], Awaitable[tuple[str, float]]]
"""Returns ``(access_token, expires_in_seconds)``."""


@dataclass(slots=True, frozen=True)
class AccessToken:
    value: str
    refresh_at: float


class TokenCache:
    """Hold one access token and refresh it ahead of its expiry.

    Concurrent callers that find the token stale queue on the refresh lock;
    the first one fetches, the others see the fresh token on the second check.
    """

    def __init__(
        self,
        fetch: TokenFetcher,
        *,
        refresh_margin: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()

    def _valid(self) -> AccessToken | None:
        token = self._token
        if token is not None and self._clock() < token.refresh_at:
            return token
        return None

    async def get(self) -> str:
        token = self._valid()
        if token is not None:
            return token.value
        async with self._lock:
            token = self._valid()
            if token is not None:
                return token.value
            logger.info("Refreshing sanctions access token.")
            value, expires_in = await self._fetch()
            lifetime = max(expires_in - self._refresh_margin, expires_in / 2)
            self._token = AccessToken(value=value, refresh_at=self._clock() + lifetime)
            return value

    def invalidate(self) -> None:
        self._token = None
