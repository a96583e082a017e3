from __future__ import annotations

import re
from typing import Iterable

_WORD_RE = re.compile(r"[a-z0-9]+")
# Grammar only; never evidence that two descriptions talk about the same thing
_FUNCTION_WORDS = {
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "her", "was", "our", "out",
    "has", "him", "his", "how", "its", "may", "she", "too", "who", "did", "with", "this", "that",
    "from", "into", "have", "had", "some", "about",
}
# Also dropped from the terms appended to embedding text
_STOP = _FUNCTION_WORDS | {
    "one", "day", "get", "new", "now", "old", "see", "two", "way", "boy", "let", "put", "say", "use",
    "near", "around", "lost", "found", "item",
}


def tokenize(text: str | None) -> list[str]:
    if not text:
        return []
    return _WORD_RE.findall(text.lower())


def significant_tokens(text: str | None) -> set[str]:
    """Distinct tokens longer than two characters, minus function words."""
    return {t for t in tokenize(text) if len(t) > 2 and t not in _FUNCTION_WORDS}


def search_terms(text: str) -> list[str]:
    seen: list[str] = []
    for tok in tokenize(text):
        if len(tok) > 2 and tok not in _STOP and tok not in seen:
            seen.append(tok)
    return seen


def is_specific_enough(query: str | None, *, min_chars: int = 5, min_tokens: int = 2) -> bool:
    """Queries need some length and at least ``min_tokens`` words over two characters."""
    q = (query or "").strip()
    if len(q) < min_chars:
        return False
    return sum(1 for t in tokenize(q) if len(t) > 2) >= min_tokens


def shared_tokens(query: str, candidate_parts: Iterable[str | None]) -> set[str]:
    cand = significant_tokens(" ".join(p for p in candidate_parts if p))
    return significant_tokens(query) & cand
