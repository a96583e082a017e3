from __future__ import annotations

from flask import Blueprint, jsonify, request
from sqlalchemy.orm import joinedload

from ...extensions import db
from ...models import LostItem, MatchNotification
from ...schemas.notification import MatchNotificationSchema

bp = Blueprint("notifications", __name__, url_prefix="/notifications")

_notifications_schema = MatchNotificationSchema(many=True)
_notification_schema = MatchNotificationSchema()


def _lost_summary(lost: LostItem | None) -> dict | None:
    if lost is None:
        return None
    return {
        "id": lost.id,
        "description": lost.description,
        "location": lost.location,
        "contactInfo": lost.contact_info,
        "imageUrls": lost.image_urls or [],
        "status": lost.status,
    }


@bp.get("")
def list_notifications():
    """Matches for the lost-item report owning ``token``, newest first.

    The token is the only authorization: whoever holds it sees the matches.
    """
    token = (request.args.get("token") or "").strip()
    if not token:
        return jsonify({"error": "Notification token is required"}), 400
    rows = (
        MatchNotification.query
        .options(joinedload(MatchNotification.found_item))
        .filter(MatchNotification.notification_token == token)
        .order_by(MatchNotification.created_at.desc(), MatchNotification.id.desc())
        .all()
    )
    lost = LostItem.query.filter_by(notification_token=token).first()
    return jsonify({
        "success": True,
        "notifications": _notifications_schema.dump(rows),
        "lostItem": _lost_summary(lost),
    })


@bp.patch("/<int:notif_id>/viewed")
def mark_viewed(notif_id: int):
    token = (request.args.get("token") or "").strip()
    if not token:
        return jsonify({"error": "Notification token is required"}), 400
    n = db.session.get(MatchNotification, notif_id)
    if n is None:
        return jsonify({"error": "Not found"}), 404
    if n.notification_token != token:
        return jsonify({"error": "Forbidden"}), 403
    if not n.viewed:
        n.viewed = True
        db.session.commit()
    return jsonify({"notification": _notification_schema.dump(n)})
