"""
sentiment/service.py — Cached sentiment analysis
================================================
Ties the result cache to the gateway. Texts are sent to the provider in
canonical order (sorted by their normalized form) so a cached response
can be mapped back to any permutation of the same request.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .cache import ResultCache, make_key
from .gateway import ProviderResult, SentimentGateway, parse_response

logger = logging.getLogger("evaluations.sentiment")


@dataclass
class TextSentiment:
    text: str
    sentiment: Optional[str]
    positive: Optional[float] = None
    neutral: Optional[float] = None
    negative: Optional[float] = None
    error: Optional[str] = None


@dataclass
class SentimentAnalysis:
    results: List[TextSentiment]
    cached: bool


def _normalize(text: str) -> str:
    return text.strip().lower()


class SentimentService:
    def __init__(self, gateway: Optional[SentimentGateway], cache: ResultCache) -> None:
        self.gateway = gateway
        self.cache = cache

    @property
    def available(self) -> bool:
        return self.gateway is not None

    def analyze(self, texts: List[str]) -> SentimentAnalysis:
        """Return one sentiment per input text, from cache when possible.

        Gateway errors propagate unchanged.
        """
        if self.gateway is None:
            raise RuntimeError("sentiment gateway is not configured")

        self.cache.sweep_expired()
        key = make_key(texts)
        canonical = sorted((t.strip() for t in texts), key=_normalize)

        raw = self.cache.get(key)
        cached = raw is not None
        if cached:
            logger.debug("Sentiment cache hit for %d texts", len(texts))
            result = parse_response(raw)
        else:
            raw = self.gateway.analyze_raw(canonical)
            result = parse_response(raw)
            if not self.cache.put(key, raw):
                logger.debug("Sentiment cache full (%d entries); result not stored", len(self.cache))

        return SentimentAnalysis(results=self._map_back(texts, canonical, result), cached=cached)

    def _map_back(self, texts: List[str], canonical: List[str], result: ProviderResult) -> List[TextSentiment]:
        positions = {}
        for i, text in enumerate(canonical):
            positions.setdefault(_normalize(text), str(i))

        docs = result.by_id()
        errors = result.errors_by_id()
        out: List[TextSentiment] = []
        for text in texts:
            doc_id = positions[_normalize(text)]
            doc = docs.get(doc_id)
            if doc is not None:
                out.append(
                    TextSentiment(
                        text=text,
                        sentiment=doc.sentiment,
                        positive=doc.positive,
                        neutral=doc.neutral,
                        negative=doc.negative,
                    )
                )
            else:
                err = errors.get(doc_id)
                out.append(
                    TextSentiment(
                        text=text,
                        sentiment=None,
                        error=err.message if err else "No result returned for this text.",
                    )
                )
        return out
