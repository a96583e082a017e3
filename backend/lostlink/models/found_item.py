from sqlalchemy import false, func, Index
from ..extensions import db
from .enums import BigIntId


class FoundItem(db.Model):
    __tablename__ = "items_found"

    id = db.Column(BigIntId, primary_key=True)
    image_urls = db.Column(db.JSON, nullable=False, default=list)
    auto_title = db.Column(db.String(200), nullable=False)
    auto_description = db.Column(db.Text)
    tags = db.Column(db.JSON, nullable=False, default=list)
    location = db.Column(db.String(200), nullable=False)
    lat = db.Column(db.Float)
    lng = db.Column(db.Float)
    contact_info = db.Column(db.String(255), nullable=False)
    # Combined (visual + text) embedding, fixed dimensionality across the table
    embedding = db.Column(db.JSON)
    claimed = db.Column(db.Boolean, nullable=False, default=False, server_default=false())
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    claims = db.relationship("ClaimRecord", back_populates="item", lazy=True)
    notifications = db.relationship("MatchNotification", back_populates="found_item", lazy=True)

    __table_args__ = (
        Index("idx_items_found_claimed", "claimed"),
        Index("idx_items_found_created_at", "created_at"),
    )

    @property
    def search_text(self) -> str:
        return " ".join([self.auto_title or "", self.auto_description or "", " ".join(self.tags or [])]).strip()

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.lat is None or self.lng is None:
            return None
        return (float(self.lat), float(self.lng))
