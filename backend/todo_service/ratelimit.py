import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from fastapi import Depends, Request, Response

from .auth import get_optional_user_id
from .config import Settings
from .errors import RateLimitExceededError


@dataclass
class WindowState:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float


class FixedWindowLimiter:
    """
    Counts requests per key inside fixed windows of `window` seconds.
    State is kept in-process, so every worker process has its own counters.
    """

    def __init__(self, limit: int, window: int, message: str, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window = window
        self.message = message
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        if now - self._last_sweep < self.window:
            return
        expired = [key for key, (start, _) in self._windows.items() if now - start >= self.window]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now

    def hit(self, key: str) -> WindowState:
        now = self.clock()
        with self._lock:
            self._sweep(now)
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window:
                start, count = now, 0
            count += 1
            self._windows[key] = (start, count)

        reset_at = start + self.window
        return WindowState(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(self.limit - count, 0),
            reset_at=reset_at,
        )

    def check(self, key: str, response: Response) -> None:
        state = self.hit(key)
        retry_after = max(1, math.ceil(state.reset_at - self.clock()))
        if not state.allowed:
            raise RateLimitExceededError(self.message, retry_after)

        response.headers["RateLimit-Limit"] = str(state.limit)
        response.headers["RateLimit-Remaining"] = str(state.remaining)
        response.headers["RateLimit-Reset"] = str(retry_after)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def build_limiters(settings: Settings) -> Dict[str, FixedWindowLimiter]:
    window = settings.rate_limit_window
    return {
        "auth": FixedWindowLimiter(settings.auth_rate_limit, window,
                                   "Too many authentication attempts. Please try again later."),
        "public": FixedWindowLimiter(settings.public_rate_limit, window,
                                     "Too many requests. Please try again later."),
        "user": FixedWindowLimiter(settings.user_rate_limit, window,
                                   "Too many requests. Please slow down."),
    }


def client_ip(request: Request) -> str:
    """Peer address; proxy headers are honoured only with TRUST_PROXY_HEADERS on."""
    if request.app.state.settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
    if request.client:
        return request.client.host
    return "unknown"


def _limiter(request: Request, tier: str) -> FixedWindowLimiter:
    return request.app.state.limiters[tier]


def limit_by_ip(tier: str):
    def dependency(request: Request, response: Response) -> None:
        if request.app.state.settings.rate_limit_enabled:
            _limiter(request, tier).check(client_ip(request), response)
    return dependency


def limit_by_user(request: Request, response: Response,
                  user_id: Optional[str] = Depends(get_optional_user_id)) -> None:
    """Keyed by user id when the token verifies, by client IP otherwise; the route still enforces auth."""
    if request.app.state.settings.rate_limit_enabled:
        key = f"user:{user_id}" if user_id else client_ip(request)
        _limiter(request, "user").check(key, response)


auth_rate_limit = limit_by_ip("auth")
public_rate_limit = limit_by_ip("public")
