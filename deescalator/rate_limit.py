"""
Rate Limiter — Per-Client Request Throttling

Sliding window rate limiter backed by an in-memory dict, keyed by
client address. Default: 20 requests/minute, the limit the browser
extension's relay was deployed with.
"""

from __future__ import annotations

import os
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from fastapi import HTTPException

# Maximum number of clients tracked before LRU eviction
MAX_RATE_LIMIT_KEYS = 5000

WINDOW_SECONDS = 60


@dataclass
class RateWindow:
    """Sliding window counter."""
    timestamps: list[float] = field(default_factory=list)

    def count_within(self, window_seconds: float) -> int:
        cutoff = time.time() - window_seconds
        self.timestamps = [t for t in self.timestamps if t > cutoff]
        return len(self.timestamps)

    def record(self) -> None:
        self.timestamps.append(time.time())

    def retry_after(self, window_seconds: float) -> int:
        if not self.timestamps:
            return 0
        return max(1, int(self.timestamps[0] + window_seconds - time.time()) + 1)


@dataclass
class RateLimits:
    per_minute: int = 20


DEFAULT_LIMITS = RateLimits(
    per_minute=int(os.getenv("DEESCALATOR_RATE_PER_MINUTE", "20")),
)

RATE_LIMIT_ENABLED = os.getenv("DEESCALATOR_RATE_LIMIT", "true").lower() == "true"

# client_id -> RateWindow, in least-recently-used order
_windows: OrderedDict[str, RateWindow] = OrderedDict()
_lock = threading.Lock()


def check_rate_limit(
    client_id: Optional[str],
    limits: Optional[RateLimits] = None,
) -> None:
    """
    Record a request for client_id, or raise HTTPException 429.

    A None client (no address available, e.g. in-process calls) is
    never limited.
    """
    if not RATE_LIMIT_ENABLED or client_id is None:
        return

    limits = limits or DEFAULT_LIMITS

    with _lock:
        if client_id not in _windows:
            if len(_windows) >= MAX_RATE_LIMIT_KEYS:
                _windows.popitem(last=False)
            _windows[client_id] = RateWindow()
        else:
            _windows.move_to_end(client_id)

        window = _windows[client_id]
        if window.count_within(WINDOW_SECONDS) >= limits.per_minute:
            retry = window.retry_after(WINDOW_SECONDS)
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded: {limits.per_minute} requests/minute. "
                       f"Retry after {retry} seconds.",
                headers={"Retry-After": str(retry)},
            )
        window.record()


def get_usage(client_id: str) -> dict:
    with _lock:
        window = _windows.get(client_id)
        if not window:
            return {"minute": 0}
        return {"minute": window.count_within(WINDOW_SECONDS)}


def cleanup_stale_windows(max_age: float = 600) -> None:
    """Drop clients with no recent activity. Call periodically."""
    cutoff = time.time() - max_age
    with _lock:
        stale = [
            k for k, w in _windows.items()
            if not w.timestamps or w.timestamps[-1] < cutoff
        ]
        for k in stale:
            del _windows[k]


def reset() -> None:
    with _lock:
        _windows.clear()
