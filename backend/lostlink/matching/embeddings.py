"""Embedding combination and the text fed to the embedding model.

Nothing here calls a remote service; callers supply vectors already computed.
"""
from __future__ import annotations

from typing import Sequence

import numpy as np

from ..errors import DimensionMismatch
from .text import search_terms

VISUAL_WEIGHT = 0.6
TEXT_WEIGHT = 0.4


def combine(
    visual: Sequence[float] | None,
    text: Sequence[float],
    *,
    visual_weight: float = VISUAL_WEIGHT,
    text_weight: float = TEXT_WEIGHT,
) -> list[float]:
    """Return ``visual * visual_weight + text * text_weight`` elementwise.

    Without a visual vector the result is the text vector unchanged.
    Raises DimensionMismatch when the two vectors differ in length.
    """
    t = np.asarray(text, dtype=np.float64)
    if visual is None:
        return t.tolist()
    v = np.asarray(visual, dtype=np.float64)
    if v.shape != t.shape:
        raise DimensionMismatch(v.size, t.size)
    return (v * visual_weight + t * text_weight).tolist()


def found_item_text(title: str, description: str, tags: Sequence[str]) -> str:
    return f"{title} {description} {' '.join(tags)}".strip()


def visual_feature_text(description: str, tags: Sequence[str]) -> str:
    return (
        f"Visual item: {description}. Features: {', '.join(tags)}. "
        "Colors, materials, brand, size, shape, condition, unique marks."
    )


def lost_item_text(description: str, location: str | None = None) -> str:
    return f"{description} Lost in: {location}" if location else description


def search_text(query: str, location: str | None = None) -> str:
    """Shape a user query like the title/description/tags text of found items."""
    base = f"{query} {location}".strip() if location else query.strip()
    return f"{base} {' '.join(search_terms(base))}".strip()
