"""
sentiment/cache.py — Time-boxed cache of provider responses
===========================================================
Keyed by the normalized set of request texts. Entries expire after
``ttl_seconds``; expired entries linger until ``sweep_expired()`` runs.

Capacity is a guard, not an eviction policy: once ``max_size`` entries
are held, new keys are simply not stored until a sweep frees space.
"""
from __future__ import annotations

import json
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Iterable, Optional


def make_key(texts: Iterable[str]) -> str:
    """Order-, case- and surrounding-whitespace-insensitive key for a text list."""
    return json.dumps(sorted(t.strip().lower() for t in texts), ensure_ascii=False)


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float


class ResultCache:
    def __init__(
        self,
        ttl_seconds: float = 900.0,
        max_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now - entry.inserted_at >= self.ttl_seconds:
                return None
            return entry.value

    def put(self, key: str, value: Any) -> bool:
        """Store ``value`` if there is room. Returns whether it was stored."""
        with self._lock:
            if len(self._entries) >= self.max_size:
                return False
            self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())
            return True

    def sweep_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now - e.inserted_at >= self.ttl_seconds]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
