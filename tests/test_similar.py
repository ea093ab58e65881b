"""Tests for product-to-product similarity."""

import numpy as np
import pytest

from blendrec.recommender.models import Product, RecommendationType
from blendrec.recommender.similar import (
    SimilarProductScorer,
    price_similarity,
    rating_similarity,
)
from blendrec.recommender.stores import InMemoryCatalogStore


def test_blends_tags_price_rating_and_reviews():
    catalog = InMemoryCatalogStore([
        Product(id=1, name="X", category="bags", price=50.0, tags=("eco", "durable"),
                avg_rating=4.5, total_reviews=10),
        Product(id=2, name="Y", category="bags", price=55.0, tags=("eco",),
                avg_rating=4.0, total_reviews=5),
    ])

    candidates = SimilarProductScorer(catalog).score(1)

    assert len(candidates) == 1
    assert candidates[0].product_id == 2
    assert candidates[0].score == pytest.approx(0.3 + 0.2 * (1 - 5 / 55) + 0.27 + 0.005)
    assert candidates[0].score == pytest.approx(0.7568, abs=1e-4)


def test_same_category_active_products_only(catalog):
    candidates = SimilarProductScorer(catalog).score(1)

    assert [c.product_id for c in candidates] == [2, 3]
    assert candidates[0].score == pytest.approx(0.3 + 0.16 + 0.27 + 0.03)
    assert candidates[1].score == pytest.approx(0.3 + 0.08 + 0.24 + 0.004)


def test_product_never_similar_to_itself(catalog, products):
    scorer = SimilarProductScorer(catalog)

    for product in products:
        assert product.id not in {c.product_id for c in scorer.score(product.id, limit=20)}


def test_reasoning_and_type(catalog):
    candidate = SimilarProductScorer(catalog).score(1)[0]

    assert candidate.recommendation_type == RecommendationType.SIMILAR
    assert candidate.reasoning == (
        "Similar to the product you're viewing",
        "Same category: kitchen",
        "1 common tags",
    )


def test_unknown_product_gives_empty_list(catalog):
    assert SimilarProductScorer(catalog).score(12345) == []


def test_default_limit_is_six():
    catalog = InMemoryCatalogStore(
        [Product(id=i, name=f"P{i}", category="c", price=10.0) for i in range(1, 11)]
    )

    assert len(SimilarProductScorer(catalog).score(1)) == 6


def test_score_is_capped_at_one():
    tags = ("a", "b", "c", "d")
    catalog = InMemoryCatalogStore([
        Product(id=1, name="A", category="c", price=10.0, tags=tags, avg_rating=4.0),
        Product(id=2, name="B", category="c", price=10.0, tags=tags, avg_rating=4.0),
    ])

    assert SimilarProductScorer(catalog).score(1)[0].score == 1.0


def test_price_similarity_handles_free_products():
    result = price_similarity(np.array([0.0, 10.0]), 0.0)

    np.testing.assert_array_almost_equal(result, [1.0, 0.0])


def test_rating_similarity_range():
    result = rating_similarity(np.array([5.0, 0.0, 2.5]), 5.0)

    np.testing.assert_array_almost_equal(result, [1.0, 0.0, 0.5])
