from sqlalchemy import func, Index
from ..extensions import db
from .enums import BigIntId


class ClaimRecord(db.Model):
    __tablename__ = "item_claims"

    id = db.Column(BigIntId, primary_key=True)
    item_id = db.Column(db.BigInteger, db.ForeignKey("items_found.id", ondelete="CASCADE"), nullable=False)
    claimer_contact = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    item = db.relationship("FoundItem", back_populates="claims")

    __table_args__ = (
        Index("idx_item_claims_item", "item_id"),
    )
