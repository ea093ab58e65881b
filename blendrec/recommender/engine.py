"""Blended recommendation engine.

Runs the collaborative, content-based and trending scorers, merges their
candidates into one deduplicated ranking and persists the result.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from blendrec.recommender.cache import Cache
from blendrec.recommender.collaborative import CollaborativeScorer
from blendrec.recommender.content import ContentScorer
from blendrec.recommender.models import Actor, Candidate, Recommendation, clamp_score
from blendrec.recommender.similar import DEFAULT_TOP_N as DEFAULT_SIMILAR_TOP_N
from blendrec.recommender.similar import SimilarProductScorer
from blendrec.recommender.stores import (
    CatalogStore,
    InteractionStore,
    RecommendationStore,
)
from blendrec.recommender.trending import DEFAULT_CACHE_TTL, TrendingScorer

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10
SCORE_DECIMALS = 4


def merge_candidates(
    candidate_lists: Iterable[List[Candidate]],
    limit: int,
) -> List[Candidate]:
    """Merge scorer outputs into a single ranked list.

    Keeps the highest-scoring candidate per product (the first one seen on a
    tie), sorts by score descending and truncates to ``limit``. Sorting is
    stable, so equal scores keep first-seen order.
    """
    best: Dict[int, Candidate] = {}
    for candidates in candidate_lists:
        for candidate in candidates:
            current = best.get(candidate.product_id)
            if current is None or candidate.score > current.score:
                best[candidate.product_id] = candidate

    ranked = sorted(best.values(), key=lambda c: c.score, reverse=True)
    return ranked[:limit]


class RecommendationEngine:
    """Generates, merges and stores blended recommendations."""

    def __init__(
        self,
        interactions: InteractionStore,
        catalog: CatalogStore,
        recommendations: RecommendationStore,
        cache: Optional[Cache] = None,
        trending_cache_ttl: int = DEFAULT_CACHE_TTL,
        isolate_scorer_failures: bool = False,
        now: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the engine.

        Args:
            interactions: Interaction log to score from.
            catalog: Product catalog.
            recommendations: Store the generated batches are written to.
            cache: Optional cache for trending results.
            trending_cache_ttl: Seconds a trending result stays cached.
            isolate_scorer_failures: When True a failing scorer contributes
                nothing instead of failing the whole generation.
            now: Clock used for timestamps and the trending window.
        """
        self.recommendations = recommendations
        self.isolate_scorer_failures = isolate_scorer_failures
        self.now = now

        self.collaborative = CollaborativeScorer(interactions)
        self.content = ContentScorer(interactions, catalog)
        self.trending = TrendingScorer(
            interactions, cache=cache, cache_ttl=trending_cache_ttl, now=now
        )
        self.similar = SimilarProductScorer(catalog)

        logger.info(
            f"Initialized RecommendationEngine: "
            f"cache={'enabled' if cache is not None else 'disabled'}, "
            f"isolate_scorer_failures={isolate_scorer_failures}"
        )

    def _run_scorer(self, name: str, scorer: Callable[[], List[Candidate]]) -> List[Candidate]:
        if not self.isolate_scorer_failures:
            return scorer()
        try:
            return scorer()
        except Exception as e:
            logger.error(
                "Scorer failed, continuing without it",
                extra={"scorer": name, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return []

    def generate_recommendations(
        self, actor: Actor, limit: int = DEFAULT_TOP_N
    ) -> List[Candidate]:
        """Generate, store and return recommendations for an actor.

        Args:
            actor: User or session to recommend for.
            limit: Maximum number of recommendations.

        Returns:
            Candidates sorted by score descending, at most ``limit`` long,
            with no duplicate product IDs.

        Raises:
            ValueError: If ``limit`` is not positive.
        """
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")

        start_time = time.time()

        collaborative = self._run_scorer(
            "collaborative", lambda: self.collaborative.score(actor, limit)
        )
        content_based = self._run_scorer(
            "content_based", lambda: self.content.score(actor, limit)
        )
        trending = self._run_scorer("trending", lambda: self.trending.score(limit))

        merged = merge_candidates([collaborative, content_based, trending], limit)
        self._store(merged, actor)

        logger.info(
            "Recommendations generated",
            extra={
                "actor": actor.key,
                "limit": limit,
                "num_collaborative": len(collaborative),
                "num_content_based": len(content_based),
                "num_trending": len(trending),
                "num_recommendations": len(merged),
                "total_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return merged

    def _store(self, candidates: List[Candidate], actor: Actor) -> None:
        if not candidates:
            return

        created_at = self.now()
        rows = [
            Recommendation(
                actor=actor,
                product_id=c.product_id,
                recommendation_type=c.recommendation_type,
                score=round(clamp_score(c.score), SCORE_DECIMALS),
                reasoning=list(c.reasoning),
                created_at=created_at,
            )
            for c in candidates
        ]
        self.recommendations.insert_many(rows)

    def similar_products(
        self, product_id: int, limit: int = DEFAULT_SIMILAR_TOP_N
    ) -> List[Candidate]:
        """Products similar to ``product_id``. Not persisted."""
        return self.similar.score(product_id, limit)

    def trending_products(self, limit: int = DEFAULT_TOP_N) -> List[Candidate]:
        return self.trending.score(limit)
