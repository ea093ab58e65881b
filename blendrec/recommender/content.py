"""Content-based scoring from category and tag affinity.

Builds a category/tag frequency profile from the actor's most recent
products and scores every other active product against it, with a small
boost for highly rated products.
"""

import logging
from collections import Counter
from typing import List

import numpy as np

from blendrec.recommender.models import (
    Actor,
    Candidate,
    InteractionType,
    Product,
    RecommendationType,
    clamp_score,
)
from blendrec.recommender.stores import CatalogStore, InteractionStore

# Configure module logger
logger = logging.getLogger(__name__)

HISTORY_TYPES = (
    InteractionType.VIEW,
    InteractionType.PURCHASE,
    InteractionType.ADD_TO_CART,
)
RECENT_HISTORY_SIZE = 10

# Scoring weights
CATEGORY_WEIGHT = 0.3
TAG_WEIGHT = 0.2
RATING_WEIGHT = 0.1
SCORE_DIVISOR = 10.0


class ContentScorer:
    """Scores active products by affinity to the actor's recent products."""

    def __init__(self, interactions: InteractionStore, catalog: CatalogStore):
        self.interactions = interactions
        self.catalog = catalog

    def _recent_products(self, actor: Actor) -> List[Product]:
        recent = self.interactions.for_actor(
            actor, types=HISTORY_TYPES, limit=RECENT_HISTORY_SIZE
        )
        products = (self.catalog.get(i.product_id) for i in recent)
        return [p for p in products if p is not None]

    def score(self, actor: Actor, limit: int) -> List[Candidate]:
        """Return up to ``limit`` content-based candidates for ``actor``."""
        recent_products = self._recent_products(actor)
        if not recent_products:
            logger.debug("No product history for content scoring", extra={"actor": actor.key})
            return []

        # One count per interaction, so repeated views weigh more
        category_freq = Counter(p.category for p in recent_products)
        tag_freq = Counter(tag for p in recent_products for tag in p.tags if tag)
        seen_ids = {p.id for p in recent_products}

        pool = [p for p in self.catalog.list_active() if p.id not in seen_ids]
        if not pool:
            return []

        category_scores = np.array([category_freq.get(p.category, 0) for p in pool], dtype=float)
        tag_scores = np.array(
            [sum(tag_freq.get(tag, 0) for tag in p.tags) for p in pool], dtype=float
        )
        ratings = np.array([p.avg_rating for p in pool], dtype=float)

        raw = (
            CATEGORY_WEIGHT * category_scores
            + TAG_WEIGHT * tag_scores
            + RATING_WEIGHT * ratings
        )
        scores = np.minimum(raw / SCORE_DIVISOR, 1.0)

        # Stable sort keeps catalog order among equal scores
        order = np.argsort(-scores, kind="stable")[:limit]

        candidates = []
        for idx in order:
            product = pool[int(idx)]
            candidates.append(
                Candidate(
                    product_id=product.id,
                    recommendation_type=RecommendationType.CONTENT_BASED,
                    score=clamp_score(scores[idx]),
                    reasoning=(
                        "Similar to products you've viewed",
                        f"Category: {product.category}",
                        f"Rating: {product.avg_rating:.2f}/5",
                    ),
                )
            )

        logger.debug(
            "Content candidates computed",
            extra={
                "actor": actor.key,
                "num_recent_products": len(recent_products),
                "num_candidates": len(candidates),
            },
        )
        return candidates
