"""
Helper Functions

Contains utility functions used throughout the application.
"""

import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from flask import request


def get_client_ip(request_obj=None) -> str:
    """Best-effort client address for rate limiting and logging."""
    if request_obj is None:
        request_obj = request

    forwarded = request_obj.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request_obj.remote_addr or 'unknown'


class RateLimiter:
    """Sliding-window request counter keyed by client."""

    def __init__(self, max_requests: int = 100, window_seconds: int = 60,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        now = self.clock()
        with self._lock:
            hits = self.hits[key]
            while hits and hits[0] <= now - self.window_seconds:
                hits.popleft()

            if len(hits) >= self.max_requests:
                return False

            hits.append(now)
            return True

    def retry_after(self, key: str) -> int:
        hits = self.hits.get(key)
        if not hits:
            return 0
        return max(0, int(hits[0] + self.window_seconds - self.clock()) + 1)

    def prune(self) -> int:
        """Forget clients with no hits inside the window."""
        now = self.clock()
        with self._lock:
            stale = [key for key, hits in self.hits.items()
                     if not hits or hits[-1] <= now - self.window_seconds]
            for key in stale:
                del self.hits[key]
        return len(stale)
