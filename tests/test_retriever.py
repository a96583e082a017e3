import logging
from types import SimpleNamespace

import pytest

from lostlink.errors import UpstreamServiceError
from lostlink.matching.retriever import SimilarityRetriever
from lostlink.matching.vector_store import Hit

log = logging.getLogger("tests.retriever")


def _item(item_id, text=""):
    return SimpleNamespace(id=item_id, search_text=text)


class RankedStore:
    """Serves a canned ranking and counts how often the store was read."""

    def __init__(self, hits=(), items=(), fail=False):
        self.hits = sorted(hits, key=lambda h: (-h.similarity, h.id))
        self.items = list(items)
        self.fail = fail
        self.reads = 0

    def rank(self, query_embedding):
        self.reads += 1
        if self.fail:
            raise UpstreamServiceError("store down", service="vector-store")
        return list(self.hits)

    def search(self, query_embedding, match_threshold, match_count):
        return [h for h in self.rank(query_embedding) if h.similarity >= match_threshold][:match_count]

    def scan(self):
        return list(self.items)


def _retriever(store, thresholds=(0.65, 0.60, 0.55), **kw):
    return SimilarityRetriever(store, thresholds, match_count=kw.pop("match_count", 10), logger=log, **kw)


def test_first_non_empty_tier_wins():
    hits = [Hit(_item(i), s) for i, s in [(1, 0.64), (2, 0.62), (3, 0.60), (9, 0.56)]]
    store = RankedStore(hits)
    found = _retriever(store).retrieve([1.0], query_text="black leather wallet")
    assert [h.id for h in found] == [1, 2, 3]
    assert {h.threshold for h in found} == {0.60}
    assert store.reads == 1


def test_strictest_tier_used_when_it_has_results():
    store = RankedStore([Hit(_item(4), 0.9), Hit(_item(5), 0.61)])
    hits = _retriever(store).cascade([1.0])
    assert [h.id for h in hits] == [4]
    assert hits[0].threshold == 0.65


def test_tiers_respect_match_count():
    store = RankedStore([Hit(_item(i), 0.7) for i in range(1, 6)])
    assert [h.id for h in _retriever(store, match_count=2).cascade([1.0])] == [1, 2]


def test_store_error_aborts_the_cascade():
    store = RankedStore([Hit(_item(1), 0.56)], fail=True)
    with pytest.raises(UpstreamServiceError):
        _retriever(store).cascade([1.0])
    assert store.reads == 1


def test_store_error_without_query_text_propagates():
    store = RankedStore(fail=True)
    with pytest.raises(UpstreamServiceError):
        _retriever(store).retrieve([1.0])


def test_store_error_falls_back_to_token_overlap():
    items = [_item(1, "Black leather wallet with a red stripe"), _item(2, "blue umbrella")]
    store = RankedStore(items=items, fail=True)
    hits = _retriever(store).retrieve([1.0], query_text="black leather wallet")
    assert [h.id for h in hits] == [1]
    assert hits[0].source == "lexical"
    assert hits[0].similarity == 0.5
    assert hits[0].threshold is None
    assert store.reads == 1


def test_lexical_fallback_needs_two_shared_tokens():
    items = [
        _item(1, "black umbrella"),                # shares only "black"
        _item(2, "brown leather wallet"),          # shares "leather", "wallet"
        _item(3, "black leather wallet, scuffed"), # shares three
    ]
    store = RankedStore(items=items)
    hits = _retriever(store).retrieve([1.0], query_text="black leather wallet")
    assert [h.id for h in hits] == [3, 2]
    assert all(h.similarity == 0.5 for h in hits)


def test_common_words_do_not_count_towards_overlap():
    store = RankedStore(items=[_item(1, "the phone and the charger")])
    assert _retriever(store).retrieve([1.0], query_text="the wallet and the keys") == []


def test_no_fallback_without_query_text():
    store = RankedStore(items=[_item(1, "black leather wallet")])
    assert _retriever(store).retrieve([1.0]) == []


def test_fallback_respects_match_count():
    items = [_item(i, "black leather wallet") for i in range(1, 6)]
    hits = _retriever(RankedStore(items=items), match_count=2).lexical("black leather wallet")
    assert [h.id for h in hits] == [1, 2]


def test_thresholds_required():
    with pytest.raises(ValueError):
        SimilarityRetriever(RankedStore(), [], match_count=5, logger=log)


def test_fallback_matches_on_descriptive_words():
    store = RankedStore(items=[_item(1, "old umbrella"), _item(2, "red scarf")])
    hits = _retriever(store).retrieve([1.0], query_text="old red umbrella")
    assert [h.id for h in hits] == [1]
