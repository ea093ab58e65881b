"""Collaborative filtering from interaction co-occurrence.

Actors who touched the same products as the requesting actor are treated as
neighbours; products those neighbours bought, carted or wishlisted become
candidates. Co-occurrence counting stands in for a full actor-actor
similarity matrix.
"""

import logging
from typing import List

from blendrec.recommender.models import (
    Actor,
    Candidate,
    InteractionType,
    RecommendationType,
    clamp_score,
)
from blendrec.recommender.stores import InteractionStore

# Configure module logger
logger = logging.getLogger(__name__)

HISTORY_TYPES = (
    InteractionType.VIEW,
    InteractionType.PURCHASE,
    InteractionType.ADD_TO_CART,
)
NEIGHBOUR_SIGNAL_TYPES = (
    InteractionType.PURCHASE,
    InteractionType.ADD_TO_CART,
    InteractionType.WISHLIST,
)
MIN_CO_OCCURRENCE = 1  # neighbours need strictly more than this
MAX_NEIGHBOURS = 20
SCORE_DIVISOR = 10.0
REASONING = ("Similar users also liked this product",)


class CollaborativeScorer:
    """Scores products liked by actors with overlapping history."""

    def __init__(self, interactions: InteractionStore):
        self.interactions = interactions

    def score(self, actor: Actor, limit: int) -> List[Candidate]:
        """Return up to ``limit`` collaborative candidates for ``actor``.

        Returns an empty list when the actor has no history or no
        neighbour overlaps on more than one interaction.
        """
        history = self.interactions.for_actor(actor, types=HISTORY_TYPES)
        if not history:
            logger.debug("No history for collaborative scoring", extra={"actor": actor.key})
            return []

        touched = {interaction.product_id for interaction in history}

        co_occurrence = self.interactions.count_by_actor(touched, exclude=actor)
        neighbours = co_occurrence[co_occurrence > MIN_CO_OCCURRENCE].head(MAX_NEIGHBOURS)
        if neighbours.empty:
            logger.debug("No neighbours found", extra={"actor": actor.key})
            return []

        product_counts = self.interactions.count_by_product(
            types=NEIGHBOUR_SIGNAL_TYPES,
            actor_keys=neighbours.index,
            exclude_product_ids=touched,
        ).head(limit)

        candidates = [
            Candidate(
                product_id=int(product_id),
                recommendation_type=RecommendationType.COLLABORATIVE,
                score=clamp_score(count / SCORE_DIVISOR),
                reasoning=REASONING,
            )
            for product_id, count in product_counts.items()
        ]

        logger.debug(
            "Collaborative candidates computed",
            extra={
                "actor": actor.key,
                "num_neighbours": len(neighbours),
                "num_candidates": len(candidates),
            },
        )
        return candidates
