from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ...log import request_logger
from ...schemas.item import LostItemSchema, LostReportSchema
from ...services import get_pipeline
from ..payload import read_payload

bp = Blueprint("lost", __name__, url_prefix="/lost-items")

_report_schema = LostReportSchema()
_lost_schema = LostItemSchema()


@bp.post("")
def report_lost():
    """Report a lost item.

    JSON or multipart fields: description, contact_info (required), location,
    lat, lng, alert_enabled, image_urls; files under 'images'.
    With alerts enabled the response carries the notification token and the
    page where matches will show up.
    """
    raw, uploads = read_payload()
    data = _report_schema.load(raw)
    log = request_logger("report_lost")

    item = get_pipeline(log).report_lost(uploads=uploads, **data)
    body = {"success": True, "item": _lost_schema.dump(item)}
    if item.notification_token:
        base = current_app.config["PUBLIC_BASE_URL"].rstrip("/")
        body["notificationToken"] = item.notification_token
        body["notifyUrl"] = f"{base}/notify/{item.notification_token}"
    return jsonify(body), 201
