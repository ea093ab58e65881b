"""Product-to-product similarity within a category.

Blends shared tags, price closeness, rating closeness and a small
popularity boost from review counts.
"""

import logging
from typing import List

import numpy as np

from blendrec.recommender.models import Candidate, RecommendationType, clamp_score
from blendrec.recommender.stores import CatalogStore

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 6

# Scoring weights
TAG_WEIGHT = 0.3
PRICE_WEIGHT = 0.2
RATING_WEIGHT = 0.3
POPULARITY_WEIGHT = 0.001
MAX_RATING = 5.0


def price_similarity(price_a: np.ndarray, price_b: float) -> np.ndarray:
    """1 minus the relative price gap; 1 where both prices are zero."""
    price_a = np.asarray(price_a, dtype=float)
    max_price = np.maximum(price_a, price_b)
    gap = np.abs(price_a - price_b)
    safe_max = np.where(max_price > 0, max_price, 1.0)
    return np.where(max_price > 0, 1.0 - gap / safe_max, 1.0)


def rating_similarity(rating_a: np.ndarray, rating_b: float) -> np.ndarray:
    rating_a = np.asarray(rating_a, dtype=float)
    return (MAX_RATING - np.abs(rating_a - rating_b)) / MAX_RATING


class SimilarProductScorer:
    """Finds active products in the same category that resemble a product."""

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog

    def score(self, product_id: int, limit: int = DEFAULT_TOP_N) -> List[Candidate]:
        """Return up to ``limit`` products similar to ``product_id``.

        Returns an empty list when the product does not exist. The product
        itself is never part of the result.
        """
        product = self.catalog.get(product_id)
        if product is None:
            logger.warning(f"Product {product_id} not found, no similar products")
            return []

        pool = [
            p for p in self.catalog.list_active(category=product.category)
            if p.id != product.id
        ]
        if not pool:
            return []

        source_tags = set(product.tags)
        common_tags = np.array([len(source_tags & set(p.tags)) for p in pool], dtype=float)
        prices = np.array([p.price for p in pool], dtype=float)
        ratings = np.array([p.avg_rating for p in pool], dtype=float)
        reviews = np.array([p.total_reviews for p in pool], dtype=float)

        raw = (
            TAG_WEIGHT * common_tags
            + PRICE_WEIGHT * price_similarity(prices, product.price)
            + RATING_WEIGHT * rating_similarity(ratings, product.avg_rating)
            + POPULARITY_WEIGHT * reviews
        )
        scores = np.minimum(raw, 1.0)
        order = np.argsort(-scores, kind="stable")[:limit]

        candidates = []
        for idx in order:
            similar = pool[int(idx)]
            candidates.append(
                Candidate(
                    product_id=similar.id,
                    recommendation_type=RecommendationType.SIMILAR,
                    score=clamp_score(scores[idx]),
                    reasoning=(
                        "Similar to the product you're viewing",
                        f"Same category: {similar.category}",
                        f"{int(common_tags[idx])} common tags",
                    ),
                )
            )

        logger.debug(
            f"Found {len(candidates)} similar products for product {product_id}"
        )
        return candidates
