"""
Per-client rate limiting with sliding window.
"""

import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from openlrs.shared.config import settings
from openlrs.shared.logging import get_logger

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """In-memory sliding window rate limiter per client."""

    def __init__(self, requests_per_minute: int = 120):
        self.requests_per_minute = requests_per_minute
        self.window_seconds = 60
        # client key -> request timestamps in window; keys with none are dropped
        self._requests: dict[str, list[float]] = {}
        self._last_sweep = time.time()

    def _prune(self, client_key: str) -> list[float]:
        """Remove timestamps older than window; returns what is left."""
        cutoff = time.time() - self.window_seconds
        recent = [t for t in self._requests.get(client_key, ()) if t > cutoff]
        if recent:
            self._requests[client_key] = recent
        else:
            self._requests.pop(client_key, None)
        return recent

    def is_allowed(self, client_key: str) -> bool:
        """Check if request is allowed."""
        return len(self._prune(client_key)) < self.requests_per_minute

    def _sweep(self):
        """Drop every client whose window has emptied; runs at most once per window."""
        now = time.time()
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for client_key in list(self._requests):
            self._prune(client_key)

    def record(self, client_key: str):
        """Record a request."""
        self._sweep()
        self._requests.setdefault(client_key, []).append(time.time())

    def retry_after_seconds(self, client_key: str) -> int:
        """Seconds until next request allowed (oldest in window expires)."""
        recent = self._prune(client_key)
        if len(recent) < self.requests_per_minute:
            return 0
        oldest = min(recent)
        return max(1, int(self.window_seconds - (time.time() - oldest)))

    def tracked_clients(self) -> int:
        return len(self._requests)


def get_client_key(request: Request, trust_key_header: bool = False) -> Optional[str]:
    """
    Extract the rate limiting key for the calling client.

    Credentials are not verified here, so Authorization is never used as a
    key. X-Rate-Limit-Key is honoured only when a fronting proxy sets it.
    """
    if trust_key_header:
        rate_key = request.headers.get("X-Rate-Limit-Key")
        if rate_key:
            return f"key:{rate_key[:64]}"
    client = request.client
    if client:
        return f"ip:{client.host}"
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client rate limiting middleware."""

    def __init__(
        self,
        app,
        requests_per_minute: Optional[int] = None,
        skip_paths: Optional[list[str]] = None,
        trust_key_header: bool = False,
    ):
        super().__init__(app)
        self.limiter = SlidingWindowRateLimiter(
            requests_per_minute or settings.api.rate_limit_requests_per_minute
        )
        self.skip_paths = set(skip_paths or ["/health", "/docs", "/openapi.json", "/redoc"])
        self.trust_key_header = trust_key_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.skip_paths or path.startswith("/docs") or path.startswith("/redoc"):
            return await call_next(request)

        client_key = get_client_key(request, self.trust_key_header)
        if not client_key:
            return await call_next(request)

        if not self.limiter.is_allowed(client_key):
            retry_after = self.limiter.retry_after_seconds(client_key)
            logger.warning(
                "Rate limit exceeded",
                extra={"client": client_key[:12], "retry_after": retry_after},
            )
            return Response(
                content='{"detail":"Rate limit exceeded. Try again later."}',
                status_code=429,
                headers={"Retry-After": str(retry_after), "Content-Type": "application/json"},
            )

        self.limiter.record(client_key)
        return await call_next(request)
