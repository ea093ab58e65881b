"""Click and purchase attribution for stored recommendations.

Attribution is best-effort: feedback that matches no stored row is not an
error. The analytics event is emitted either way.
"""

import logging
from typing import Optional

from blendrec.recommender.models import Actor
from blendrec.recommender.stores import RecommendationStore
from blendrec.recommender.tracking import EventTracker

# Configure module logger
logger = logging.getLogger(__name__)

CLICK_EVENT = "recommendation_clicked"
PURCHASE_EVENT = "recommendation_purchased"


class FeedbackRecorder:
    """Flips ``was_clicked``/``was_purchased`` and reports to analytics."""

    def __init__(
        self,
        recommendations: RecommendationStore,
        tracker: Optional[EventTracker] = None,
    ):
        self.recommendations = recommendations
        self.tracker = tracker

    def _track(self, event_name: str, payload: dict) -> None:
        if self.tracker is not None:
            self.tracker.track(event_name, payload)

    def record_click(self, recommendation_id: int) -> bool:
        """Mark a recommendation as clicked.

        Returns:
            True if a stored recommendation was updated.
        """
        updated = self.recommendations.mark_clicked(recommendation_id)
        if not updated:
            logger.debug(f"Click for unknown recommendation {recommendation_id} ignored")

        self._track(CLICK_EVENT, {"recommendation_id": recommendation_id})
        return updated

    def record_purchase(self, product_id: int, actor: Actor) -> int:
        """Mark every recommendation of ``product_id`` to ``actor`` as purchased.

        Returns:
            Number of stored recommendations updated, possibly zero.
        """
        updated = self.recommendations.mark_purchased(product_id, actor)
        logger.info(
            "Purchase attributed",
            extra={"product_id": product_id, "actor": actor.key, "rows_updated": updated},
        )

        self._track(PURCHASE_EVENT, {"product_id": product_id, **actor.as_fields()})
        return updated
