from sqlalchemy import false, func, Index
from ..extensions import db
from .enums import BigIntId, lost_status_enum


class LostItem(db.Model):
    __tablename__ = "items_lost"

    id = db.Column(BigIntId, primary_key=True)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(200))
    lat = db.Column(db.Float)
    lng = db.Column(db.Float)
    contact_info = db.Column(db.String(255), nullable=False)
    image_urls = db.Column(db.JSON, nullable=False, default=list)
    alert_enabled = db.Column(db.Boolean, nullable=False, default=False, server_default=false())
    # Present iff alert_enabled; bearer capability for /notifications
    notification_token = db.Column(db.String(64), unique=True)
    # Text-only, or combined when the report came with images
    embedding = db.Column(db.JSON)
    status = db.Column(lost_status_enum, nullable=False, default="active", server_default="active")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    notifications = db.relationship("MatchNotification", back_populates="lost_item", lazy=True)

    __table_args__ = (
        Index("idx_items_lost_alerts", "status", "alert_enabled"),
    )

    @property
    def search_text(self) -> str:
        return " ".join([self.description or "", self.location or ""]).strip()

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.lat is None or self.lng is None:
            return None
        return (float(self.lat), float(self.lng))
