import logging

import pytest

from lostlink.errors import DimensionMismatch
from lostlink.matching.retriever import SimilarityRetriever
from lostlink.matching.vector_store import found_item_store, lost_alert_store

log = logging.getLogger("tests.vector_store")

E0 = [1.0, 0, 0, 0, 0, 0, 0, 0]
E1 = [0, 1.0, 0, 0, 0, 0, 0, 0]
MIX = [1.0, 1.0, 0, 0, 0, 0, 0, 0]


def test_search_orders_by_similarity_and_respects_threshold(make_found):
    exact = make_found(E0)
    near = make_found(MIX)
    make_found(E1)
    store = found_item_store(8, log)

    hits = store.search(E0, 0.5, 10)
    assert [h.id for h in hits] == [exact.id, near.id]
    assert hits[0].similarity == pytest.approx(1.0)
    assert hits[1].similarity == pytest.approx(2 ** -0.5)

    assert [h.id for h in store.search(E0, 0.9, 10)] == [exact.id]
    assert store.search(E0, 0.5, 1)[0].id == exact.id


def test_stricter_threshold_returns_subset(make_found):
    for vec in (E0, MIX, E1, [1.0, 0.3, 0, 0, 0, 0, 0, 0]):
        make_found(vec)
    store = found_item_store(8, log)
    lax = {h.id for h in store.search(E0, 0.3, 10)}
    strict = {h.id for h in store.search(E0, 0.8, 10)}
    assert strict <= lax


def test_claimed_items_are_not_candidates(make_found):
    make_found(E0, claimed=True)
    open_item = make_found(E0)
    store = found_item_store(8, log)
    assert [h.id for h in store.search(E0, 0.5, 10)] == [open_item.id]
    assert [i.id for i in store.scan()] == [open_item.id]


def test_ties_break_by_id(make_found):
    a = make_found(E0)
    b = make_found([2.0, 0, 0, 0, 0, 0, 0, 0])
    assert [h.id for h in found_item_store(8, log).search(E0, 0.5, 10)] == [a.id, b.id]


def test_rows_with_wrong_dimension_are_skipped(make_found):
    make_found([1.0, 0.0, 0.0])
    ok = make_found(E0)
    assert [h.id for h in found_item_store(8, log).search(E0, 0.1, 10)] == [ok.id]


def test_query_dimension_mismatch_is_fatal(make_found):
    make_found(E0)
    with pytest.raises(DimensionMismatch):
        found_item_store(8, log).search([1.0, 0.0], 0.5, 10)


def test_alert_store_only_sees_active_alerts(make_lost):
    active = make_lost(E0)
    make_lost(E0, alert_enabled=False)
    make_lost(E0, status="found")
    store = lost_alert_store(8, log)
    assert [h.id for h in store.search(E0, 0.5, 10)] == [active.id]


def test_cascade_reads_the_table_once(make_found, monkeypatch):
    make_found([0.5, 1.0, 0, 0, 0, 0, 0, 0])
    store = found_item_store(8, log)
    real_scan = store.scan
    reads = []

    def counting_scan():
        reads.append(1)
        return real_scan()

    monkeypatch.setattr(store, "scan", counting_scan)
    hits = SimilarityRetriever(store, (0.65, 0.60, 0.4), match_count=5, logger=log).cascade(E0)

    assert [h.threshold for h in hits] == [0.4]
    assert len(reads) == 1


def test_rank_scores_every_eligible_row(make_found):
    a = make_found(E0)
    b = make_found(E1)
    ranked = found_item_store(8, log).rank(E0)
    assert [h.id for h in ranked] == [a.id, b.id]
    assert ranked[1].similarity == 0.0
