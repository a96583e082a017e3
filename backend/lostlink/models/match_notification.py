from sqlalchemy import UniqueConstraint, false, func, Index
from ..extensions import db
from .enums import BigIntId


class MatchNotification(db.Model):
    __tablename__ = "match_notifications"

    id = db.Column(BigIntId, primary_key=True)
    lost_item_id = db.Column(db.BigInteger, db.ForeignKey("items_lost.id", ondelete="CASCADE"), nullable=False)
    found_item_id = db.Column(db.BigInteger, db.ForeignKey("items_found.id", ondelete="CASCADE"), nullable=False)
    notification_token = db.Column(db.String(64), nullable=False)
    similarity = db.Column(db.Float)
    viewed = db.Column(db.Boolean, nullable=False, default=False, server_default=false())
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    lost_item = db.relationship("LostItem", back_populates="notifications")
    found_item = db.relationship("FoundItem", back_populates="notifications")

    __table_args__ = (
        UniqueConstraint("lost_item_id", "found_item_id", name="uq_match_notifications_lost_found"),
        Index("idx_match_notifications_token", "notification_token"),
    )
