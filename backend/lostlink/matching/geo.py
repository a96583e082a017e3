"""Great-circle distance, radius filtering and final result ordering.

All distances are miles, everywhere: stored, compared against the radius,
and displayed. Convert only when formatting for a km audience.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from .vector_store import Hit

EARTH_RADIUS_MILES = 3958.8
KM_PER_MILE = 1.60934

_log = logging.getLogger(__name__)


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE


def format_distance(miles: float | None, use_km: bool = False) -> str | None:
    if miles is None:
        return None
    if use_km:
        km = miles_to_km(miles)
        if km < 1:
            return f"{round(km * 1000)} m away"
        return f"{km:.1f} km away"
    if miles < 0.1:
        return f"{round(miles * 5280)} ft away"
    return f"{miles:.1f} miles away"


@dataclass(frozen=True)
class RankedResult:
    hit: Hit
    distance: float | None  # None: candidate has no coordinates

    @property
    def item(self):
        return self.hit.item

    @property
    def similarity(self) -> float:
        return self.hit.similarity


def _distance_to(origin: tuple[float, float] | None, hit: Hit) -> float | None:
    coords = getattr(hit.item, "coordinates", None)
    if origin is None or coords is None:
        return None
    return haversine_miles(origin[0], origin[1], coords[0], coords[1])


def _banded(ranked: list[RankedResult], epsilon: float) -> list[RankedResult]:
    """Group by similarity bands, each anchored on its best score, nearest first within a band.

    A result joins the current band when it is less than ``epsilon`` below the
    band's top score; otherwise it opens the next band. Unknown distances sort
    last inside their band.
    """
    ordered = sorted(ranked, key=lambda r: (-r.similarity, r.hit.id))
    out: list[RankedResult] = []
    band: list[RankedResult] = []
    for r in ordered:
        if band and band[0].similarity - r.similarity >= epsilon:
            out += sorted(band, key=_nearest_first)
            band = []
        band.append(r)
    out += sorted(band, key=_nearest_first)
    return out


def _nearest_first(r: RankedResult) -> tuple[float, int]:
    return (math.inf if r.distance is None else r.distance, r.hit.id)


def filter_and_rank(
    hits: Iterable[Hit],
    origin: tuple[float, float] | None = None,
    radius: float | None = None,
    *,
    epsilon: float = 0.01,
    limit: int = 10,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> list[RankedResult]:
    """Annotate hits with their distance from ``origin``, drop those beyond ``radius``, order and page.

    Without both an origin and a radius nothing is filtered and the order is
    by similarity alone. With both, results fall into similarity bands no wider
    than ``epsilon`` and are nearest first within a band. Items lacking
    coordinates are never filtered out and sort last within their band.
    """
    log = logger or _log
    ranked = [RankedResult(hit=h, distance=_distance_to(origin, h)) for h in hits]

    if origin is None or radius is None:
        ranked.sort(key=lambda r: (-r.similarity, r.hit.id))
        return ranked[: max(0, limit)]

    kept = []
    for r in ranked:
        if r.distance is None or r.distance <= radius:
            kept.append(r)
        else:
            log.debug("dropping item %s: %.2f mi outside %.2f mi radius", r.hit.id, r.distance, radius)
    return _banded(kept, epsilon)[: max(0, limit)]
