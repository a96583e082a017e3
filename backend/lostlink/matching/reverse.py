"""Match a newly stored found item against standing lost-item alerts.

Everything here is a side effect of found-item ingestion: failures are
logged per candidate and never propagate to the ingestion itself.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import DimensionMismatch, UpstreamServiceError
from ..extensions import db
from ..models import FoundItem, LostItem, MatchNotification
from .retriever import SimilarityRetriever
from .vector_store import Hit


@dataclass(frozen=True)
class MatchAlert:
    lost_item_id: int
    contact_info: str
    similarity: float


@dataclass
class ReverseMatchOutcome:
    alert: MatchAlert | None = None
    created: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


class ReverseMatcher:
    def __init__(
        self,
        retriever: SimilarityRetriever,
        *,
        logger: logging.Logger | logging.LoggerAdapter,
        on_notified: Callable[[MatchNotification], None] | None = None,
    ):
        self.retriever = retriever
        self.log = logger
        self.on_notified = on_notified

    def _candidates(self, combined: Sequence[float], text_only: Sequence[float] | None, query_text: str | None) -> list[Hit]:
        try:
            hits = self.retriever.cascade(combined)
            # Text-only lost reports are compared against the text-only vector too
            if not hits and text_only is not None:
                hits = self.retriever.cascade(text_only)
            if hits or not query_text:
                return hits
        except DimensionMismatch:
            self.log.error("reverse match skipped: embedding dimensions disagree with the alert index", exc_info=True)
            return []
        except UpstreamServiceError:
            if not query_text:
                self.log.warning("reverse match skipped: vector search failed", exc_info=True)
                return []
            self.log.warning("vector search failed, falling back to token overlap", exc_info=True)
        try:
            return self.retriever.lexical(query_text)
        except UpstreamServiceError:
            self.log.warning("reverse match skipped: token overlap scan failed", exc_info=True)
            return []

    def _already_notified(self, lost_id: int, found_id: int) -> bool:
        return MatchNotification.query.filter_by(lost_item_id=lost_id, found_item_id=found_id).first() is not None

    def _notify(self, found_id: int, hit: Hit, outcome: ReverseMatchOutcome) -> None:
        lost_id = hit.id
        token = hit.item.notification_token
        try:
            if self._already_notified(lost_id, found_id):
                outcome.skipped.append(lost_id)
                self.log.debug("lost item %s already notified about found item %s", lost_id, found_id)
                return
            # Conditional flip: only one ingestion may take a lost item out of the active pool
            res = db.session.execute(
                update(LostItem)
                .where(LostItem.id == lost_id, LostItem.status == "active")
                .values(status="found")
            )
            if res.rowcount != 1:
                db.session.rollback()
                outcome.skipped.append(lost_id)
                self.log.info("lost item %s left the active pool concurrently, not notifying", lost_id)
                return
            notif = MatchNotification(
                lost_item_id=lost_id,
                found_item_id=found_id,
                notification_token=token,
                similarity=hit.similarity,
                viewed=False,
            )
            db.session.add(notif)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            outcome.skipped.append(lost_id)
            self.log.info("notification for lost item %s / found item %s already exists", lost_id, found_id)
            return
        except SQLAlchemyError:
            db.session.rollback()
            outcome.skipped.append(lost_id)
            self.log.warning("could not record match for lost item %s", lost_id, exc_info=True)
            return

        outcome.created.append(int(notif.id))
        if self.on_notified is not None:
            try:
                self.on_notified(notif)
            except Exception:
                self.log.warning("could not dispatch alert for notification %s", notif.id, exc_info=True)

    def run(
        self,
        found: FoundItem,
        combined: Sequence[float],
        text_only: Sequence[float] | None = None,
        query_text: str | None = None,
    ) -> ReverseMatchOutcome:
        found_id = int(found.id)
        outcome = ReverseMatchOutcome()
        hits = [h for h in self._candidates(combined, text_only, query_text) if h.item.notification_token]
        if not hits:
            self.log.debug("found item %s matched no active alerts", found_id)
            return outcome

        best = max(hits, key=lambda h: (h.similarity, -h.id))
        # Read before any rollback in _notify can expire the instance
        outcome.alert = MatchAlert(lost_item_id=best.id, contact_info=best.item.contact_info, similarity=best.similarity)

        for hit in hits:
            self._notify(found_id, hit, outcome)
        self.log.info(
            "found item %s: %d alert(s) created, %d skipped", found_id, len(outcome.created), len(outcome.skipped)
        )
        return outcome
