from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...log import request_logger
from ...matching.geo import RankedResult, format_distance
from ...schemas.item import SearchSchema, public_found_schema
from ...services import get_pipeline

bp = Blueprint("search", __name__, url_prefix="/search")

_search_schema = SearchSchema()


def _result_to_dict(r: RankedResult, use_km: bool = False) -> dict:
    return {
        **public_found_schema.dump(r.item),
        "similarity": round(r.similarity, 4),
        "distance": round(r.distance, 3) if r.distance is not None else None,
        "distanceLabel": format_distance(r.distance, use_km=use_km),
        "matchSource": r.hit.source,
        "threshold": r.hit.threshold,
    }


@bp.post("")
def search_found():
    """Search unclaimed found items by description.

    Body: description (required), location, lat, lng, radius (miles).
    Radius filtering applies only when lat, lng and radius are all given.
    ``units`` ("mi" or "km") only changes the distance labels.
    """
    data = _search_schema.load(request.get_json(silent=True) or {})
    use_km = data.pop("units") == "km"
    log = request_logger("search")
    results = get_pipeline(log).search(**data)
    return jsonify({"results": [_result_to_dict(r, use_km) for r in results]})
