"""
rate_limit.py — Request rate limiting
=====================================
Two limiters live here:

* ``limiter``: slowapi, per remote address, guarding evaluation
  submission against bulk spam.
* ``SlidingWindowLimiter``: in-memory sliding window bounding calls
  to the sentiment endpoint (each call costs an upstream request).
  Constructed explicitly with its clock and limits so tests control time.
"""
from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, List, Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger("evaluations.rate_limit")

limiter = Limiter(key_func=get_remote_address)

UNKNOWN_CLIENT = "unknown"


def client_key_from_request(request: Request) -> str:
    """Identify the caller by network address.

    Falls back through proxy headers; callers with no address at all share
    the ``unknown`` bucket.
    """
    if request.client and request.client.host:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return UNKNOWN_CLIENT


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int
    reset_after_seconds: int

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_after_seconds),
        }


class SlidingWindowLimiter:
    """Per-client sliding window: at most ``max_requests`` per ``window_seconds``."""

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}
        self._lock = Lock()

    def _prune(self, timestamps: List[float], now: float) -> List[float]:
        return [ts for ts in timestamps if now - ts < self.window_seconds]

    def check_and_record(self, client_key: str, now: Optional[float] = None) -> RateLimitDecision:
        """Admit and record one request, or reject it if the window is full."""
        if now is None:
            now = self._clock()
        window = math.ceil(self.window_seconds)

        with self._lock:
            timestamps = self._prune(self._requests.get(client_key, []), now)

            if len(timestamps) >= self.max_requests:
                self._requests[client_key] = timestamps
                reset = math.ceil(self.window_seconds - (now - timestamps[0]))
                return RateLimitDecision(
                    allowed=False,
                    limit=self.max_requests,
                    remaining=0,
                    retry_after_seconds=window,
                    reset_after_seconds=max(reset, 0),
                )

            timestamps.append(now)
            self._requests[client_key] = timestamps
            return RateLimitDecision(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - len(timestamps),
                retry_after_seconds=0,
                reset_after_seconds=window,
            )

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop clients whose windows are empty. Returns how many were dropped."""
        if now is None:
            now = self._clock()
        dropped = 0
        with self._lock:
            for key in list(self._requests):
                timestamps = self._prune(self._requests[key], now)
                if timestamps:
                    self._requests[key] = timestamps
                else:
                    del self._requests[key]
                    dropped += 1
        return dropped

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._requests)

    def stats(self) -> Dict[str, float]:
        return {
            "totalClients": self.client_count,
            "maxRequests": self.max_requests,
            "windowSeconds": self.window_seconds,
        }


async def run_periodic_sweep(sliding: SlidingWindowLimiter, interval_seconds: float = 300.0) -> None:
    """Sweep idle clients every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        dropped = sliding.sweep()
        if dropped:
            logger.debug("Rate limiter sweep dropped %d idle clients", dropped)
