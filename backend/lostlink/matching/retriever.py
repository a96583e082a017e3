"""Cascading-threshold similarity retrieval with a lexical fallback.

The store is read and scored once per query; the threshold ladder is then
walked strictest first over that ranking and the first non-empty tier wins.
Tiers are never mixed. The ladder is not error recovery: a store failure
aborts it instead of moving on to a laxer threshold. Falling back to token
overlap after such a failure is a separate decision made in ``retrieve``.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Sequence

from ..errors import QueryTooVague, UpstreamServiceError
from .text import is_specific_enough, shared_tokens
from .vector_store import Hit, VectorStore, cut


def ensure_specific(query: str | None, *, min_chars: int = 5, min_tokens: int = 2) -> str:
    """Return the stripped query, or raise QueryTooVague when it is too short to search on."""
    if not is_specific_enough(query, min_chars=min_chars, min_tokens=min_tokens):
        raise QueryTooVague(
            f"Description must be at least {min_chars} characters with {min_tokens} or more meaningful words"
        )
    return (query or "").strip()


class SimilarityRetriever:
    def __init__(
        self,
        store: VectorStore,
        thresholds: Sequence[float],
        *,
        match_count: int,
        logger: logging.Logger | logging.LoggerAdapter,
        fallback_score: float = 0.5,
        min_shared_tokens: int = 2,
    ):
        if not thresholds:
            raise ValueError("at least one threshold is required")
        self.store = store
        self.thresholds = tuple(thresholds)
        self.match_count = match_count
        self.log = logger
        self.fallback_score = fallback_score
        self.min_shared_tokens = min_shared_tokens

    def cascade(self, query_embedding: Sequence[float]) -> list[Hit]:
        ranked = self.store.rank(query_embedding)
        for threshold in self.thresholds:
            hits = cut(ranked, threshold, self.match_count)
            self.log.debug("threshold %.2f returned %d hits", threshold, len(hits))
            if hits:
                return [dataclasses.replace(h, threshold=threshold) for h in hits]
        return []

    def lexical(self, query_text: str) -> list[Hit]:
        scored = []
        for item in self.store.scan():
            overlap = shared_tokens(query_text, [item.search_text])
            if len(overlap) >= self.min_shared_tokens:
                scored.append((len(overlap), item))
        scored.sort(key=lambda pair: (-pair[0], int(pair[1].id)))
        return [
            Hit(item=item, similarity=self.fallback_score, source="lexical")
            for _, item in scored[: self.match_count]
        ]

    def retrieve(self, query_embedding: Sequence[float], query_text: str | None = None) -> list[Hit]:
        try:
            hits = self.cascade(query_embedding)
        except UpstreamServiceError:
            if not query_text:
                raise
            self.log.warning("vector search failed, falling back to token overlap", exc_info=True)
            return self.lexical(query_text)
        if hits or not query_text:
            return hits
        hits = self.lexical(query_text)
        self.log.info("no vector hits at any threshold, token overlap matched %d", len(hits))
        return hits
