"""
Rephrase Result Cache

In-memory TTL cache for LLM rephrase results.
Key = SHA-256(text + catalog version). TTL = 1 hour.

Identical drafts are common (users retype, clients retry), and every
miss costs a Gemini call. A new catalog version invalidates all keys.

Usage:
    from deescalator.cache import rephrase_cache
    cached = await rephrase_cache.get(text, CATALOG.version)
    if cached:
        return cached
    result = await rephrase(text, llm)
    await rephrase_cache.put(text, CATALOG.version, result)
"""

from __future__ import annotations

import asyncio
import hashlib
import time
from typing import Optional


class RephraseCache:
    """In-memory cache with TTL eviction, guarded by an asyncio lock."""

    def __init__(self, ttl_seconds: int = 3600, max_entries: int = 500):
        self._cache: dict[str, tuple[float, dict]] = {}
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _make_key(text: str, catalog_version: str) -> str:
        raw = f"{text}||{catalog_version}"
        return hashlib.sha256(raw.encode()).hexdigest()

    async def get(self, text: str, catalog_version: str) -> Optional[dict]:
        """Return the cached result if present and not expired."""
        key = self._make_key(text, catalog_version)
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            ts, result = entry
            if time.monotonic() - ts > self._ttl:
                del self._cache[key]
                self._misses += 1
                return None

            self._hits += 1
            return {**result, "cached": True}

    async def put(self, text: str, catalog_version: str, result: dict) -> None:
        """Store a result, evicting the oldest entry when full."""
        key = self._make_key(text, catalog_version)
        async with self._lock:
            if key not in self._cache and len(self._cache) >= self._max_entries:
                oldest_key = min(self._cache, key=lambda k: self._cache[k][0])
                del self._cache[oldest_key]
            self._cache[key] = (time.monotonic(), result)

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    @property
    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "entries": len(self._cache),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }


# Singleton — shared across the application
rephrase_cache = RephraseCache()
