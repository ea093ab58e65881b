"""Trending products by recent interaction volume."""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from blendrec.recommender.cache import Cache, remember
from blendrec.recommender.models import (
    Candidate,
    InteractionType,
    RecommendationType,
    clamp_score,
)
from blendrec.recommender.stores import InteractionStore

# Configure module logger
logger = logging.getLogger(__name__)

TRENDING_TYPES = (
    InteractionType.VIEW,
    InteractionType.PURCHASE,
    InteractionType.ADD_TO_CART,
)
DEFAULT_WINDOW_DAYS = 7
DEFAULT_CACHE_TTL = 3600
SCORE_DIVISOR = 100.0
CACHE_KEY_PREFIX = "trending_products_"
REASONING = ("Currently trending and popular",)


class TrendingScorer:
    """Global popularity scorer, memoized per limit."""

    def __init__(
        self,
        interactions: InteractionStore,
        cache: Optional[Cache] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        window_days: int = DEFAULT_WINDOW_DAYS,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.interactions = interactions
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.window_days = window_days
        self.now = now

    def _compute(self, limit: int) -> List[dict]:
        since = self.now() - timedelta(days=self.window_days)
        counts = self.interactions.count_by_product(
            types=TRENDING_TYPES, since=since
        ).head(limit)

        logger.info(
            "Computed trending products",
            extra={"limit": limit, "num_products": len(counts), "since": since.isoformat()},
        )

        return [
            Candidate(
                product_id=int(product_id),
                recommendation_type=RecommendationType.TRENDING,
                score=clamp_score(count / SCORE_DIVISOR),
                reasoning=REASONING,
            ).to_dict()
            for product_id, count in counts.items()
        ]

    def score(self, limit: int) -> List[Candidate]:
        """Return up to ``limit`` trending candidates."""
        cached = remember(
            self.cache,
            f"{CACHE_KEY_PREFIX}{limit}",
            self.cache_ttl,
            lambda: self._compute(limit),
        )
        return [Candidate.from_dict(item) for item in cached]
