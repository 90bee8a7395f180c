"""
state.py — Process-wide runtime services
========================================
The sentiment rate limiter and result cache are built once per
application and stored on ``app.state``. Routes reach them through the
dependencies below, so tests can swap in instances with a fake clock.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .config import Settings
from .rate_limit import SlidingWindowLimiter
from .sentiment.cache import ResultCache
from .sentiment.gateway import SentimentGateway
from .sentiment.service import SentimentService


@dataclass
class RuntimeServices:
    sentiment_limiter: SlidingWindowLimiter
    sentiment: SentimentService


def build_services(settings: Settings, gateway: Optional[SentimentGateway] = None) -> RuntimeServices:
    """Construct the runtime services from configuration."""
    if gateway is None and settings.sentiment_configured:
        gateway = SentimentGateway(
            settings.sentiment_endpoint,
            settings.sentiment_api_key,
            timeout_seconds=settings.sentiment_timeout_seconds,
            language=settings.sentiment_language,
        )
    cache = ResultCache(
        ttl_seconds=settings.sentiment_cache_ttl_seconds,
        max_size=settings.sentiment_cache_max_size,
    )
    return RuntimeServices(
        sentiment_limiter=SlidingWindowLimiter(
            max_requests=settings.sentiment_rate_limit_requests,
            window_seconds=settings.sentiment_rate_limit_window_seconds,
        ),
        sentiment=SentimentService(gateway, cache),
    )


def get_services(request: Request) -> RuntimeServices:
    return request.app.state.services
