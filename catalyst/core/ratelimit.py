"""Per-IP sliding-window rate limiting applied as route dependencies."""

import logging
import math
import time
from collections import deque
from threading import Lock

from fastapi import Request

from catalyst.core.config import settings
from catalyst.core.errors import RateLimited

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """Allows at most `limit` hits per key within the trailing `window` seconds."""

    def __init__(self, limit: int, window: int, message: str, clock=time.monotonic):
        self.limit = limit
        self.window = window
        self.message = message
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> None:
        """Record a request for `key`. Raises RateLimited when over quota."""
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window:
                self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - self.window:
                hits.popleft()
            if len(hits) >= self.limit:
                retry_after = max(1, math.ceil(hits[0] + self.window - now))
                raise RateLimited(self.message, retry_after=retry_after)
            hits.append(now)

    def _sweep(self, now: float) -> None:
        # Drop clients whose newest hit has left the window
        cutoff = now - self.window
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]
        self._last_sweep = now

    def tracked_keys(self) -> int:
        return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


class RateLimits:
    """The quotas of one application instance."""

    def __init__(self):
        self.auth = SlidingWindowLimiter(
            *settings.rate_limit_auth,
            message="Too many authentication attempts, please try again later.",
        )
        self.chat = SlidingWindowLimiter(
            *settings.rate_limit_chat,
            message="Too many chat requests, please slow down.",
        )
        self.general = SlidingWindowLimiter(
            *settings.rate_limit_general,
            message="Too many requests from this IP, please try again later.",
        )

    def reset(self) -> None:
        for limiter in (self.auth, self.chat, self.general):
            limiter.reset()


def _client_ip(request: Request) -> str:
    # Trusted proxy hops are already resolved by uvicorn (forwarded_allow_ips)
    return request.client.host if request.client else "unknown"


def _enforce(request: Request, limiter: SlidingWindowLimiter) -> None:
    ip = _client_ip(request)
    try:
        limiter.hit(ip)
    except RateLimited:
        logger.warning(f"Rate limit exceeded for IP {ip} on {request.url.path}")
        raise


def limit_general(request: Request) -> None:
    _enforce(request, request.app.state.rate_limits.general)


def limit_auth(request: Request) -> None:
    _enforce(request, request.app.state.rate_limits.auth)


def limit_chat(request: Request) -> None:
    _enforce(request, request.app.state.rate_limits.chat)
