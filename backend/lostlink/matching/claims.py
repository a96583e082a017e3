from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundOrAlreadyClaimed, UpstreamServiceError, ValidationError
from ..extensions import db
from ..models import ClaimRecord, FoundItem


@dataclass(frozen=True)
class ClaimOutcome:
    item_id: int
    item_title: str
    finder_contact: str
    claim_record_id: int | None

    @property
    def finder_email(self) -> str | None:
        return self.finder_contact if "@" in self.finder_contact else None


def mailto_link(to: str, subject: str, body: str) -> str:
    return f"mailto:{to}?subject={quote(subject)}&body={quote(body)}"


class ClaimCoordinator:
    """Marks a found item claimed and hands the finder's contact to the claimant."""

    def __init__(self, *, logger: logging.Logger | logging.LoggerAdapter):
        self.log = logger

    def claim(self, item_id: int, claimer_contact: str) -> ClaimOutcome:
        claimer_contact = (claimer_contact or "").strip()
        if not claimer_contact:
            raise ValidationError("Your contact information is required")

        try:
            item = db.session.execute(
                db.select(FoundItem).where(FoundItem.id == item_id, FoundItem.claimed.is_(False))
            ).scalar_one_or_none()
            if item is None:
                raise NotFoundOrAlreadyClaimed()
            finder_contact = item.contact_info
            title = item.auto_title

            # Keyed on the prior state so two racing claimants cannot both win
            res = db.session.execute(
                update(FoundItem)
                .where(FoundItem.id == item_id, FoundItem.claimed.is_(False))
                .values(claimed=True)
            )
            if res.rowcount != 1:
                db.session.rollback()
                self.log.info("found item %s was claimed by someone else first", item_id)
                raise NotFoundOrAlreadyClaimed()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise UpstreamServiceError("Failed to claim item", service="database") from e

        # Audit trail only; the claim already stands
        record_id = None
        try:
            record = ClaimRecord(item_id=item_id, claimer_contact=claimer_contact)
            db.session.add(record)
            db.session.commit()
            record_id = int(record.id)
        except SQLAlchemyError:
            db.session.rollback()
            self.log.warning("claim record for found item %s not saved", item_id, exc_info=True)

        self.log.info("found item %s claimed", item_id)
        return ClaimOutcome(item_id=item_id, item_title=title, finder_contact=finder_contact, claim_record_id=record_id)
