from __future__ import annotations

from flask import Blueprint, jsonify

from ...errors import ValidationError
from ...extensions import db
from ...log import request_logger
from ...models import FoundItem
from ...schemas.item import FoundReportSchema, public_found_schema
from ...services import get_pipeline
from ..payload import read_payload

bp = Blueprint("found", __name__, url_prefix="/found-items")

_report_schema = FoundReportSchema()


@bp.post("")
def report_found():
    """Ingest a found item and check it against standing lost-item alerts.

    The item is stored even when alert matching fails; ``matchAlert`` then is null.
    """
    raw, uploads = read_payload()
    data = _report_schema.load(raw)
    if not uploads and not data["image_urls"]:
        raise ValidationError("No images provided")
    log = request_logger("report_found")

    item, outcome = get_pipeline(log).ingest_found(uploads=uploads, **data)
    alert = None
    if outcome.alert is not None:
        alert = {
            "foundMatch": True,
            "contactInfo": outcome.alert.contact_info,
            "lostItemId": outcome.alert.lost_item_id,
            "similarity": round(outcome.alert.similarity, 4),
        }
    return jsonify({"success": True, "item": public_found_schema.dump(item), "matchAlert": alert}), 201


@bp.get("/<int:item_id>")
def get_found(item_id: int):
    item = db.session.get(FoundItem, item_id)
    if item is None:
        return jsonify({"error": "Item not found"}), 404
    return jsonify({"item": public_found_schema.dump(item)})
