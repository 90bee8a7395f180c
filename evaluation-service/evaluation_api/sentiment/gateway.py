"""
sentiment/gateway.py — Outbound text-analytics client
=====================================================
Posts a batch of documents to the configured sentiment endpoint
(Azure Text Analytics v3 wire format) and turns every failure mode
into a typed exception the route can translate for the client.

Request::

    POST <endpoint>
    Ocp-Apim-Subscription-Key: <key>
    {"documents": [{"id": "0", "language": "es", "text": "..."}]}

Response::

    {"documents": [{"id": "0", "sentiment": "positive",
                    "confidenceScores": {"positive": .9, "neutral": .1, "negative": 0}}],
     "errors": [{"id": "1", "error": {...}}]}
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

logger = logging.getLogger("evaluations.sentiment")

MAX_DOCUMENTS = 10
DEFAULT_RETRY_AFTER = 60


class SentimentGatewayError(RuntimeError):
    """Base class for every provider failure."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, detail: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class GatewayTimeout(SentimentGatewayError):
    """The provider did not answer within the timeout."""


class GatewayRateLimited(SentimentGatewayError):
    """The provider throttled us."""

    def __init__(self, message: str, *, retry_after_seconds: int = DEFAULT_RETRY_AFTER, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after_seconds = retry_after_seconds


class GatewayAuthenticationError(SentimentGatewayError):
    """The provider rejected our credentials."""


class GatewayUnavailable(SentimentGatewayError):
    """The provider reports transient unavailability."""


class GatewayConnectionError(SentimentGatewayError):
    """Transport-level failure (DNS, refused connection, TLS, ...)."""


class GatewayProviderError(SentimentGatewayError):
    """Any other unsuccessful or malformed provider response."""


@dataclass
class DocumentSentiment:
    id: str
    sentiment: str
    positive: float
    neutral: float
    negative: float


@dataclass
class DocumentError:
    id: str
    code: Optional[str]
    message: str


@dataclass
class ProviderResult:
    documents: List[DocumentSentiment] = field(default_factory=list)
    errors: List[DocumentError] = field(default_factory=list)

    def by_id(self) -> Dict[str, DocumentSentiment]:
        return {d.id: d for d in self.documents}

    def errors_by_id(self) -> Dict[str, DocumentError]:
        return {e.id: e for e in self.errors}


def parse_response(payload: Dict[str, Any]) -> ProviderResult:
    """Build a ProviderResult from the provider's raw JSON body."""
    try:
        documents = [
            DocumentSentiment(
                id=str(doc["id"]),
                sentiment=doc["sentiment"],
                positive=float(doc["confidenceScores"]["positive"]),
                neutral=float(doc["confidenceScores"]["neutral"]),
                negative=float(doc["confidenceScores"]["negative"]),
            )
            for doc in payload.get("documents", [])
        ]
        errors = [
            DocumentError(
                id=str(err.get("id")),
                code=(err.get("error") or {}).get("code"),
                message=(err.get("error") or {}).get("message", "Document could not be analyzed."),
            )
            for err in payload.get("errors", [])
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise GatewayProviderError("Malformed provider response.", detail=str(exc)) from exc
    return ProviderResult(documents=documents, errors=errors)


def _retry_after(resp: httpx.Response) -> int:
    raw = resp.headers.get("retry-after")
    try:
        return max(int(raw), 1) if raw else DEFAULT_RETRY_AFTER
    except ValueError:
        return DEFAULT_RETRY_AFTER


class SentimentGateway:
    def __init__(
        self,
        endpoint: str,
        api_key: str,
        *,
        timeout_seconds: float = 15.0,
        language: str = "es",
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.language = language
        self._transport = transport
        self._clock = clock

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Ocp-Apim-Subscription-Key": self.api_key,
        }

    def analyze_raw(self, texts: List[str]) -> Dict[str, Any]:
        """Call the provider and return its JSON body untouched.

        Document ids are the positions of ``texts``.
        """
        if not texts or len(texts) > MAX_DOCUMENTS:
            raise ValueError(f"between 1 and {MAX_DOCUMENTS} texts are required, got {len(texts)}")

        payload = {
            "documents": [
                {"id": str(i), "language": self.language, "text": text}
                for i, text in enumerate(texts)
            ]
        }

        # httpx timeouts bound each connect/read step; the deadline bounds the whole call.
        deadline = self._clock() + self.timeout_seconds
        try:
            with httpx.Client(
                timeout=self.timeout_seconds, headers=self._headers(), transport=self._transport
            ) as client:
                with client.stream("POST", self.endpoint, json=payload) as resp:
                    body = self._read_before(resp, deadline)
        except httpx.TimeoutException as exc:
            logger.warning("Sentiment provider timed out after %.1fs", self.timeout_seconds)
            raise GatewayTimeout("Sentiment provider timed out.", detail=str(exc)) from exc
        except httpx.TransportError as exc:
            logger.warning("Sentiment provider connection failed: %s", exc)
            raise GatewayConnectionError("Could not reach sentiment provider.", detail=str(exc)) from exc

        status = resp.status_code
        text = body.decode(resp.encoding or "utf-8", errors="replace")
        if status == 429:
            raise GatewayRateLimited(
                "Sentiment provider rate limit reached.",
                retry_after_seconds=_retry_after(resp),
                status_code=status,
                detail=text,
            )
        if status in (401, 403):
            logger.error("Sentiment provider rejected credentials (%d)", status)
            raise GatewayAuthenticationError(
                "Sentiment provider rejected credentials.", status_code=status, detail=text
            )
        if status in (502, 503, 504):
            raise GatewayUnavailable(
                "Sentiment provider unavailable.", status_code=status, detail=text
            )
        if status >= 400:
            logger.warning("Sentiment provider returned %d", status)
            raise GatewayProviderError(
                f"Sentiment provider returned {status}.", status_code=status, detail=text
            )

        try:
            return json.loads(text)
        except ValueError as exc:
            raise GatewayProviderError(
                "Sentiment provider returned invalid JSON.", status_code=status, detail=text
            ) from exc

    def _read_before(self, resp: httpx.Response, deadline: float) -> bytes:
        """Read the streamed body, aborting once ``deadline`` has passed."""
        chunks: List[bytes] = []
        if self._clock() >= deadline:
            raise self._deadline_exceeded()
        for chunk in resp.iter_bytes():
            chunks.append(chunk)
            if self._clock() >= deadline:
                raise self._deadline_exceeded()
        return b"".join(chunks)

    def _deadline_exceeded(self) -> GatewayTimeout:
        logger.warning("Sentiment provider exceeded the %.1fs deadline", self.timeout_seconds)
        return GatewayTimeout(
            "Sentiment provider timed out.",
            detail=f"response not complete within {self.timeout_seconds:.1f}s",
        )

    def analyze(self, texts: List[str]) -> ProviderResult:
        return parse_response(self.analyze_raw(texts))
