from flask import Blueprint, jsonify, request

from ...log import request_logger
from ...matching.claims import mailto_link
from ...schemas.claim import ClaimRequestSchema
from ...services import get_claims

bp = Blueprint("claims", __name__, url_prefix="/claims")

_claim_schema = ClaimRequestSchema()


@bp.post("")
def claim_item():
    data = _claim_schema.load(request.get_json(silent=True) or {})
    log = request_logger("claim").bind(item=data["item_id"])

    outcome = get_claims(log).claim(data["item_id"], data["claimer_contact"])

    body = {
        "success": True,
        "message": "Item claimed successfully! Contact the finder to arrange pickup.",
        "finderContact": outcome.finder_contact,
        "finderEmail": outcome.finder_email,
        "mailtoLink": None,
    }
    if outcome.finder_email:
        body["mailtoLink"] = mailto_link(
            outcome.finder_email,
            f"Claiming: {outcome.item_title}",
            f"Hi, I believe the item you found ({outcome.item_title}) is mine. "
            f"You can reach me at {data['claimer_contact']} to arrange pickup.",
        )
    return jsonify(body)
