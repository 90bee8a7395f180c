"""
routes_sentiment.py — Sentiment analysis passthrough
====================================================
``POST /sentiments`` forwards up to ten texts to the text-analytics
provider. Every call is counted by the per-client sliding-window
limiter (cache hits included); identical text sets within the cache
TTL are answered without an upstream call.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from ..errors import (
    AuthenticationError,
    BadGateway,
    RateLimitExceeded,
    RequestTimeout,
    ServiceUnavailable,
)
from ..rate_limit import RateLimitDecision, client_key_from_request
from ..schemas import ApiResponse, ErrorResponse, SentimentOut, SentimentRequest, SentimentStatusOut
from ..sentiment.gateway import (
    GatewayAuthenticationError,
    GatewayConnectionError,
    GatewayProviderError,
    GatewayRateLimited,
    GatewayTimeout,
    GatewayUnavailable,
    SentimentGatewayError,
)
from ..state import RuntimeServices, get_services

logger = logging.getLogger("evaluations.sentiment")

router = APIRouter(prefix="/sentiments", tags=["sentiment"])


def enforce_sentiment_rate_limit(
    request: Request,
    response: Response,
    services: RuntimeServices = Depends(get_services),
) -> RateLimitDecision:
    """Count this call against the caller's window; 429 once it is full."""
    client_key = client_key_from_request(request)
    decision = services.sentiment_limiter.check_and_record(client_key)
    if not decision.allowed:
        logger.info("Sentiment rate limit exceeded for %s", client_key)
        raise RateLimitExceeded(
            decision.retry_after_seconds,
            "Too many sentiment analysis requests. Try again in a minute.",
            extra={"limit": decision.limit, "remaining": 0},
            headers=decision.headers(),
        )
    response.headers.update(decision.headers())
    return decision


def _translate(exc: SentimentGatewayError) -> Exception:
    """Map a gateway failure onto the client-facing error taxonomy."""
    detail = str(exc.detail) if exc.detail is not None else None
    if isinstance(exc, GatewayTimeout):
        return RequestTimeout("The sentiment service did not answer in time.", detail=detail)
    if isinstance(exc, GatewayRateLimited):
        return RateLimitExceeded(
            exc.retry_after_seconds,
            "The sentiment service is busy. Try again later.",
            detail=detail,
        )
    if isinstance(exc, GatewayAuthenticationError):
        # provider credential errors stay in the server log
        logger.error("Sentiment provider credential failure: %s", detail)
        return AuthenticationError()
    if isinstance(exc, GatewayUnavailable):
        return ServiceUnavailable("The sentiment service is temporarily unavailable.", detail=detail)
    if isinstance(exc, GatewayConnectionError):
        return BadGateway("Could not connect to the sentiment service.", kind="ConnectionError", detail=detail)
    if isinstance(exc, GatewayProviderError):
        if exc.status_code is not None:
            detail = f"status={exc.status_code} {detail or ''}".strip()
        return BadGateway("The sentiment service returned an error.", kind="ProviderError", detail=detail)
    return BadGateway(detail=detail)


@router.post(
    "",
    response_model=ApiResponse[SentimentOut],
    responses={code: {"model": ErrorResponse} for code in (400, 408, 429, 500, 502, 503)},
)
def analyze_sentiments(
    body: SentimentRequest,
    _decision: RateLimitDecision = Depends(enforce_sentiment_rate_limit),
    services: RuntimeServices = Depends(get_services),
) -> dict:
    """Sentiment label and confidence scores for each text, in request order."""
    if not services.sentiment.available:
        raise ServiceUnavailable("Sentiment analysis is not configured on this server.")

    try:
        analysis = services.sentiment.analyze(body.texts)
    except SentimentGatewayError as exc:
        logger.warning("Sentiment analysis failed: %s (%s)", exc, type(exc).__name__)
        raise _translate(exc) from exc

    results = [
        {
            "text": r.text,
            "sentiment": r.sentiment,
            "confidence_scores": (
                {"positive": r.positive, "neutral": r.neutral, "negative": r.negative}
                if r.sentiment is not None
                else None
            ),
            "error": r.error,
        }
        for r in analysis.results
    ]
    return {
        "data": {"results": results, "cached": analysis.cached},
        "message": "Sentiment analysis completed successfully.",
    }


@router.get("/status", response_model=ApiResponse[SentimentStatusOut])
def sentiment_status(services: RuntimeServices = Depends(get_services)) -> dict:
    """Rate limiter and cache occupancy."""
    cache = services.sentiment.cache
    return {
        "data": {
            "rate_limit": services.sentiment_limiter.stats(),
            "cache": {
                "entries": len(cache),
                "maxSize": cache.max_size,
                "ttlSeconds": cache.ttl_seconds,
            },
        },
        "message": "Sentiment service status.",
    }
