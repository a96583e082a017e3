"""Nearest-neighbour queries over embeddings stored on the item tables.

Vectors live in a JSON column; similarity is cosine computed with numpy over
the rows that pass the store's filter. ``search`` is monotonic in the
threshold: a stricter threshold returns a subset of a laxer one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import numpy as np
from sqlalchemy.exc import SQLAlchemyError

from ..errors import DimensionMismatch, UpstreamServiceError
from ..extensions import db
from ..models import FoundItem, LostItem


@dataclass(frozen=True)
class Hit:
    item: Any
    similarity: float
    source: str = "vector"
    threshold: float | None = None

    @property
    def id(self) -> int:
        return int(self.item.id)


def cut(ranked: Sequence[Hit], match_threshold: float, match_count: int) -> list[Hit]:
    """The leading hits of a best-first ranking at or above the threshold."""
    if match_count <= 0:
        return []
    return [h for h in ranked if h.similarity >= match_threshold][:match_count]


class VectorStore(Protocol):
    def rank(self, query_embedding: Sequence[float]) -> list[Hit]: ...

    def search(self, query_embedding: Sequence[float], match_threshold: float, match_count: int) -> list[Hit]: ...

    def scan(self) -> list[Any]: ...


class SqlVectorStore:
    def __init__(self, model, criteria: Sequence[Any], *, dimension: int, logger: logging.Logger | logging.LoggerAdapter):
        self.model = model
        self.criteria = tuple(criteria)
        self.dimension = dimension
        self.log = logger

    def scan(self) -> list[Any]:
        """Every row eligible for matching, oldest first."""
        try:
            stmt = db.select(self.model).where(*self.criteria).order_by(self.model.id)
            return list(db.session.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            db.session.rollback()
            raise UpstreamServiceError(f"Vector store unavailable: {e.__class__.__name__}", service="vector-store") from e

    def _matrix(self, rows: list[Any]) -> tuple[list[Any], np.ndarray]:
        kept, vectors = [], []
        for row in rows:
            if not row.embedding:
                continue
            vec = np.asarray(row.embedding, dtype=np.float64)
            if vec.ndim != 1 or vec.size != self.dimension:
                self.log.warning("skipping %s %s: stored embedding has %d dims, expected %d",
                                 self.model.__tablename__, row.id, vec.size, self.dimension)
                continue
            norm = float(np.linalg.norm(vec))
            if norm <= 1e-12:
                continue
            kept.append(row)
            vectors.append(vec / norm)
        if not vectors:
            return [], np.empty((0, self.dimension), dtype=np.float64)
        return kept, np.vstack(vectors)

    def rank(self, query_embedding: Sequence[float]) -> list[Hit]:
        """Every eligible row scored against the query, best first, from a single table read."""
        query = np.asarray(query_embedding, dtype=np.float64)
        if query.size != self.dimension:
            raise DimensionMismatch(query.size, self.dimension)
        qnorm = float(np.linalg.norm(query))
        if qnorm <= 1e-12:
            return []

        rows, matrix = self._matrix(self.scan())
        if not rows:
            return []
        scores = np.clip(matrix @ (query / qnorm), 0.0, 1.0)

        hits = [Hit(item=row, similarity=float(s)) for row, s in zip(rows, scores)]
        hits.sort(key=lambda h: (-h.similarity, h.id))
        return hits

    def search(self, query_embedding: Sequence[float], match_threshold: float, match_count: int) -> list[Hit]:
        return cut(self.rank(query_embedding), match_threshold, match_count)


def found_item_store(dimension: int, logger) -> SqlVectorStore:
    """Found items still available to claim."""
    return SqlVectorStore(FoundItem, [FoundItem.claimed.is_(False)], dimension=dimension, logger=logger)


def lost_alert_store(dimension: int, logger) -> SqlVectorStore:
    """Active lost reports whose owner asked to be alerted."""
    return SqlVectorStore(
        LostItem,
        [
            LostItem.status == "active",
            LostItem.alert_enabled.is_(True),
            LostItem.notification_token.is_not(None),
        ],
        dimension=dimension,
        logger=logger,
    )
