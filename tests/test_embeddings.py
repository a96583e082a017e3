import pytest

from lostlink.errors import DimensionMismatch
from lostlink.matching.embeddings import (
    combine,
    found_item_text,
    lost_item_text,
    search_text,
    visual_feature_text,
)


def test_combine_weights_visual_over_text():
    v = [1.0, 0.0, 0.5, -0.25]
    t = [0.0, 1.0, 0.5, 0.75]
    out = combine(v, t)
    assert out == pytest.approx([vi * 0.6 + ti * 0.4 for vi, ti in zip(v, t)])


def test_combine_is_deterministic():
    v = [0.123456789, -0.987654321, 0.333333333]
    t = [0.1, 0.2, 0.3]
    assert combine(v, t) == combine(v, t)


def test_combine_without_image_is_text_vector():
    t = [0.1, 0.2, 0.3]
    assert combine(None, t) == t


def test_combine_custom_weights():
    assert combine([1.0, 1.0], [1.0, 3.0], visual_weight=0.5, text_weight=0.5) == pytest.approx([1.0, 2.0])


def test_combine_dimension_mismatch():
    with pytest.raises(DimensionMismatch) as exc:
        combine([0.0] * 1536, [0.0] * 768)
    assert exc.value.left == 1536
    assert exc.value.right == 768


def test_embedding_texts():
    assert found_item_text("Wallet", "brown leather", ["wallet", "brown"]) == "Wallet brown leather wallet brown"
    assert lost_item_text("blue umbrella", "Main St") == "blue umbrella Lost in: Main St"
    assert lost_item_text("blue umbrella") == "blue umbrella"
    vis = visual_feature_text("a brown wallet", ["wallet", "brown"])
    assert vis.startswith("Visual item: a brown wallet. Features: wallet, brown.")


def test_search_text_appends_significant_terms():
    assert search_text("My red wallet!") == "My red wallet! red wallet"
    assert search_text("red wallet", "Central Park") == "red wallet Central Park red wallet central park"
