# backend/core/rate_limit.py
import threading
import time
from collections import OrderedDict, deque
from typing import Callable, Deque, Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp


class SlidingWindowCounter:
    """
    Per-key request counter over a sliding time window.

    At most `max_keys` keys are tracked; the least recently seen key is evicted
    first, so memory stays bounded no matter how many clients show up.
    """

    def __init__(self, limit: int, window_seconds: float, max_keys: int = 10_000,
                 clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._hits: "OrderedDict[str, Deque[float]]" = OrderedDict()
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Record one request for `key`. Returns False when the key is over its limit."""
        now = self._clock()
        cutoff = now - self.window
        with self._lock:
            hits = self._hits.get(key)
            if hits is None:
                hits = deque()
                self._hits[key] = hits
                while len(self._hits) > self.max_keys:
                    self._hits.popitem(last=False)
            else:
                self._hits.move_to_end(key)
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True

    def __len__(self) -> int:
        return len(self._hits)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, counter: SlidingWindowCounter,
                 exempt_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.counter = counter
        self.exempt_paths = set(exempt_paths or ())

    async def dispatch(self, request, call_next: Callable):
        if request.url.path in self.exempt_paths:
            return await call_next(request)
        client = request.client.host if request.client else "unknown"
        if not self.counter.hit(client):
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Too many requests, please try again later"},
            )
        return await call_next(request)
