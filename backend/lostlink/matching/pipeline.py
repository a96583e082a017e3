"""Report, ingest and search: the one configurable pipeline every surface goes through."""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Callable, Mapping, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..errors import DimensionMismatch, UpstreamServiceError, ValidationError
from ..extensions import db
from ..integrations.openai import ImageAnalysis
from ..integrations.storage import ObjectStore, StoredImage
from ..models import FoundItem, LostItem, MatchNotification
from .embeddings import combine, found_item_text, lost_item_text, search_text, visual_feature_text
from .geo import RankedResult, filter_and_rank
from .retriever import SimilarityRetriever, ensure_specific
from .reverse import ReverseMatcher, ReverseMatchOutcome
from .vector_store import found_item_store, lost_alert_store


class AIClient(Protocol):
    def embed_text(self, text: str) -> list[float]: ...

    def describe_image(self, image_url: str) -> ImageAnalysis: ...

    def describe_images(self, image_urls: Sequence[str]) -> ImageAnalysis: ...


@dataclass(frozen=True)
class Upload:
    data: bytes
    filename: str
    mimetype: str | None = None


@dataclass(frozen=True)
class MatchingPolicy:
    dimension: int = 1536
    visual_weight: float = 0.6
    text_weight: float = 0.4
    search_thresholds: tuple[float, ...] = (0.65, 0.60, 0.55)
    alert_thresholds: tuple[float, ...] = (0.5, 0.4, 0.3)
    search_match_count: int = 50
    alert_match_count: int = 5
    page_size: int = 10
    rank_epsilon: float = 0.01
    fallback_score: float = 0.5
    min_shared_tokens: int = 2
    query_min_chars: int = 5
    query_min_tokens: int = 2
    embed_location: bool = False

    @classmethod
    def from_config(cls, config: Mapping) -> "MatchingPolicy":
        return cls(
            dimension=int(config["EMBEDDING_DIM"]),
            visual_weight=float(config["VISUAL_WEIGHT"]),
            text_weight=float(config["TEXT_WEIGHT"]),
            search_thresholds=tuple(config["SEARCH_THRESHOLDS"]),
            alert_thresholds=tuple(config["ALERT_THRESHOLDS"]),
            search_match_count=int(config["SEARCH_MATCH_COUNT"]),
            alert_match_count=int(config["ALERT_MATCH_COUNT"]),
            page_size=int(config["RESULT_PAGE_SIZE"]),
            rank_epsilon=float(config["RANK_EPSILON"]),
            fallback_score=float(config["LEXICAL_FALLBACK_SCORE"]),
            min_shared_tokens=int(config["LEXICAL_MIN_SHARED_TOKENS"]),
            query_min_chars=int(config["QUERY_MIN_CHARS"]),
            query_min_tokens=int(config["QUERY_MIN_TOKENS"]),
            embed_location=bool(config["SEARCH_EMBED_LOCATION"]),
        )


def _origin(lat: float | None, lng: float | None) -> tuple[float, float] | None:
    if lat is None or lng is None:
        return None
    return (float(lat), float(lng))


class MatchingPipeline:
    def __init__(
        self,
        ai: AIClient,
        objects: ObjectStore,
        policy: MatchingPolicy,
        *,
        logger: logging.Logger | logging.LoggerAdapter,
        alert_dispatch: Callable[[MatchNotification], None] | None = None,
    ):
        self.ai = ai
        self.objects = objects
        self.policy = policy
        self.log = logger
        self.alert_dispatch = alert_dispatch

    def search_retriever(self) -> SimilarityRetriever:
        p = self.policy
        return SimilarityRetriever(
            found_item_store(p.dimension, self.log),
            p.search_thresholds,
            match_count=p.search_match_count,
            logger=self.log,
            fallback_score=p.fallback_score,
            min_shared_tokens=p.min_shared_tokens,
        )

    def reverse_matcher(self) -> ReverseMatcher:
        p = self.policy
        retriever = SimilarityRetriever(
            lost_alert_store(p.dimension, self.log),
            p.alert_thresholds,
            match_count=p.alert_match_count,
            logger=self.log,
            fallback_score=p.fallback_score,
            min_shared_tokens=p.min_shared_tokens,
        )
        return ReverseMatcher(retriever, logger=self.log, on_notified=self.alert_dispatch)

    def _analyse(self, images: Sequence[StoredImage]) -> tuple[ImageAnalysis, list[float]]:
        urls = [img.vision_url for img in images]
        analysis = self.ai.describe_image(urls[0]) if len(urls) == 1 else self.ai.describe_images(urls)
        visual = self.ai.embed_text(visual_feature_text(analysis.description, analysis.tags))
        return analysis, visual

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self.policy.dimension:
            raise DimensionMismatch(len(vector), self.policy.dimension)

    def _save(self, obj, what: str):
        try:
            db.session.add(obj)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise UpstreamServiceError(f"Failed to save {what}", service="database") from e
        return obj

    def report_lost(
        self,
        *,
        description: str,
        contact_info: str,
        location: str | None = None,
        lat: float | None = None,
        lng: float | None = None,
        alert_enabled: bool = False,
        uploads: Sequence[Upload] = (),
        image_urls: Sequence[str] = (),
    ) -> LostItem:
        images = [StoredImage(url=u, thumb_url=None, vision_url=u) for u in image_urls]
        for up in uploads:
            # A lost report is still useful without its photos
            try:
                images.append(self.objects.put_image(up.data, up.filename, up.mimetype, "lost-items"))
            except (UpstreamServiceError, ValidationError):
                self.log.warning("skipping lost-item image %s", up.filename, exc_info=True)

        text = self.ai.embed_text(lost_item_text(description, location))
        visual = self._analyse(images)[1] if images else None
        embedding = combine(visual, text, visual_weight=self.policy.visual_weight, text_weight=self.policy.text_weight)
        self._check_dimension(embedding)

        item = LostItem(
            description=description,
            location=location,
            lat=lat,
            lng=lng,
            contact_info=contact_info,
            image_urls=[img.url for img in images],
            alert_enabled=bool(alert_enabled),
            notification_token=secrets.token_urlsafe(24) if alert_enabled else None,
            embedding=embedding,
            status="active",
        )
        self._save(item, "lost item")
        self.log.info("lost item %s reported (alerts=%s, images=%d)", item.id, item.alert_enabled, len(images))
        return item

    def ingest_found(
        self,
        *,
        contact_info: str,
        location: str,
        uploads: Sequence[Upload] = (),
        image_urls: Sequence[str] = (),
        lat: float | None = None,
        lng: float | None = None,
    ) -> tuple[FoundItem, ReverseMatchOutcome]:
        images = [StoredImage(url=u, thumb_url=None, vision_url=u) for u in image_urls]
        images += [self.objects.put_image(up.data, up.filename, up.mimetype, "found-items") for up in uploads]
        if not images:
            raise ValidationError("No images provided")

        analysis, visual = self._analyse(images)
        text_only = self.ai.embed_text(found_item_text(analysis.title, analysis.description, analysis.tags))
        combined = combine(visual, text_only, visual_weight=self.policy.visual_weight, text_weight=self.policy.text_weight)
        self._check_dimension(combined)

        item = FoundItem(
            image_urls=[img.url for img in images],
            auto_title=analysis.title,
            auto_description=analysis.description,
            tags=list(analysis.tags),
            location=location,
            lat=lat,
            lng=lng,
            contact_info=contact_info,
            embedding=combined,
            claimed=False,
        )
        self._save(item, "found item")
        self.log.info("found item %s stored (%s)", item.id, item.auto_title)

        outcome = self.reverse_matcher().run(item, combined, text_only, query_text=item.search_text)
        return item, outcome

    def search(
        self,
        *,
        description: str,
        location: str | None = None,
        lat: float | None = None,
        lng: float | None = None,
        radius: float | None = None,
    ) -> list[RankedResult]:
        p = self.policy
        query = ensure_specific(description, min_chars=p.query_min_chars, min_tokens=p.query_min_tokens)
        vector = self.ai.embed_text(search_text(query, location if p.embed_location else None))
        hits = self.search_retriever().retrieve(vector, query_text=query)
        results = filter_and_rank(
            hits, _origin(lat, lng), radius, epsilon=p.rank_epsilon, limit=p.page_size, logger=self.log
        )
        self.log.info("search returned %d of %d candidates", len(results), len(hits))
        return results
