"""Recommendation endpoints for the BlendRec API.

This module provides API endpoints for generating blended recommendations,
listing similar and trending products, browsing stored recommendations and
recording click/purchase feedback.
"""

import logging
import time
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from blendrec.api.exceptions import (
    DataLoadError,
    DataNotFoundError,
    InvalidActorError,
    RecommendationError,
)
from blendrec.api.metrics import metrics_service
from blendrec.config import get_settings
from blendrec.recommender.cache import InMemoryTTLCache, RedisCache
from blendrec.recommender.engine import RecommendationEngine
from blendrec.recommender.feedback import FeedbackRecorder
from blendrec.recommender.models import (
    Actor,
    Candidate,
    RecommendationType,
    actor_from_ids,
)
from blendrec.recommender.stores import HIGH_SCORE_THRESHOLD, InMemoryRecommendationStore
from blendrec.recommender.tracking import LoggingEventTracker
from blendrec.recommender.utils import check_data_exists, load_data

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)

# Data directory override; when unset the configured data_dir is used
DEFAULT_DATA_DIR: Optional[str] = None

# Loaded stores, engine and feedback recorder
_engine_cache: Optional[Dict] = None


class CandidateItem(BaseModel):
    """A single scored recommendation."""

    product_id: int = Field(..., description="Recommended product ID")
    recommendation_type: RecommendationType = Field(..., description="Signal that produced it")
    score: float = Field(..., ge=0.0, le=1.0, description="Score in [0, 1]")
    reasoning: List[str] = Field(default_factory=list, description="Why it was recommended")

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "CandidateItem":
        return cls(
            product_id=candidate.product_id,
            recommendation_type=candidate.recommendation_type,
            score=candidate.score,
            reasoning=list(candidate.reasoning),
        )


class RecommendationResponse(BaseModel):
    """Response model for recommendation requests."""

    user_id: Optional[int] = None
    session_id: Optional[str] = None
    recommendations: List[CandidateItem]


class SimilarProductsResponse(BaseModel):
    product_id: int
    similar: List[CandidateItem]


class TrendingResponse(BaseModel):
    recommendations: List[CandidateItem]


class StoredRecommendation(BaseModel):
    """A recommendation row as persisted by the engine."""

    id: int
    product_id: int
    recommendation_type: RecommendationType
    score: float
    reasoning: List[str]
    was_clicked: bool
    was_purchased: bool
    created_at: datetime


class HistoryResponse(BaseModel):
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    recommendations: List[StoredRecommendation]


class ClickResponse(BaseModel):
    recommendation_id: int
    updated: bool


class PurchaseRequest(BaseModel):
    product_id: int
    user_id: Optional[int] = None
    session_id: Optional[str] = None


class PurchaseResponse(BaseModel):
    product_id: int
    rows_updated: int


def _build_cache():
    settings = get_settings()
    if settings.redis_url:
        return RedisCache.from_url(settings.redis_url)
    return InMemoryTTLCache()


def load_engine_if_needed(data_dir: Optional[str] = None) -> Dict:
    """Load data and build the engine if not already loaded.

    Uses a module-level cache so data is read once per process.

    Args:
        data_dir: Directory containing ``products.csv`` and
            ``interactions.csv``. Defaults to ``DEFAULT_DATA_DIR``, then the
            ``data_dir`` setting.

    Returns:
        Dictionary with the ``engine``, ``feedback`` recorder, the three
        stores and ``loaded_at``.

    Raises:
        DataNotFoundError: If the data files are missing.
        DataLoadError: If the data files cannot be parsed.
    """
    global _engine_cache

    if _engine_cache is not None:
        return _engine_cache

    settings = get_settings()
    data_dir = data_dir or DEFAULT_DATA_DIR or settings.data_dir

    if not check_data_exists(data_dir):
        logger.error(f"Data not found in {data_dir}")
        raise DataNotFoundError(data_dir)

    try:
        logger.info(f"Loading data from {data_dir}")
        catalog, interactions = load_data(data_dir)
        recommendations = InMemoryRecommendationStore(settings.recommendations_path)
    except Exception as e:
        logger.error(f"Failed to load data: {e}", exc_info=True)
        raise DataLoadError(data_dir, e) from e

    engine = RecommendationEngine(
        interactions=interactions,
        catalog=catalog,
        recommendations=recommendations,
        cache=_build_cache(),
        trending_cache_ttl=settings.trending_cache_ttl,
        isolate_scorer_failures=settings.isolate_scorer_failures,
    )

    _engine_cache = {
        "engine": engine,
        "feedback": FeedbackRecorder(recommendations, LoggingEventTracker()),
        "catalog": catalog,
        "interactions": interactions,
        "recommendations": recommendations,
        "loaded_at": datetime.now().isoformat(),
    }
    logger.info("Data loaded successfully")
    return _engine_cache


def _resolve_actor(user_id: Optional[int], session_id: Optional[str]) -> Actor:
    try:
        return actor_from_ids(user_id=user_id, session_id=session_id)
    except ValueError as e:
        raise InvalidActorError(user_id, session_id) from e


@router.get("", response_model=RecommendationResponse)
def get_recommendations(
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
) -> RecommendationResponse:
    """Generate blended recommendations for a user or session.

    Exactly one of ``user_id`` and ``session_id`` must be given. The
    generated batch is stored so later clicks and purchases can be
    attributed to it.

    Example:
        GET /recommend?user_id=42&limit=5
    """
    actor = _resolve_actor(user_id, session_id)
    limit = limit or get_settings().default_limit
    state = load_engine_if_needed()

    start_time = time.time()
    try:
        candidates = state["engine"].generate_recommendations(actor, limit)
    except Exception as e:
        logger.error(
            f"Error generating recommendations for {actor.key}: {e}",
            exc_info=True,
        )
        raise RecommendationError(actor.key, e) from e

    metrics_service.record_generation(
        latency_ms=(time.time() - start_time) * 1000,
        num_recommendations=len(candidates),
    )

    return RecommendationResponse(
        **actor.as_fields(),
        recommendations=[CandidateItem.from_candidate(c) for c in candidates],
    )


@router.get("/trending", response_model=TrendingResponse)
def get_trending(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
) -> TrendingResponse:
    """Currently trending products. Not stored as recommendations."""
    limit = limit or get_settings().default_limit
    state = load_engine_if_needed()
    candidates = state["engine"].trending_products(limit)
    return TrendingResponse(
        recommendations=[CandidateItem.from_candidate(c) for c in candidates]
    )


@router.get("/similar/{product_id}", response_model=SimilarProductsResponse)
def get_similar_products(
    product_id: int,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
) -> SimilarProductsResponse:
    """Products similar to ``product_id``; empty when the product is unknown."""
    limit = limit or get_settings().similar_limit
    state = load_engine_if_needed()
    candidates = state["engine"].similar_products(product_id, limit)
    return SimilarProductsResponse(
        product_id=product_id,
        similar=[CandidateItem.from_candidate(c) for c in candidates],
    )


@router.get("/history", response_model=HistoryResponse)
def get_history(
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
    recommendation_type: Optional[RecommendationType] = None,
    min_score: Optional[float] = Query(default=None, ge=0.0, le=1.0),
    high_score_only: bool = False,
) -> HistoryResponse:
    """Stored recommendations for an actor, highest score first.

    ``high_score_only`` keeps rows scoring at least ``HIGH_SCORE_THRESHOLD``
    unless an explicit ``min_score`` is given.
    """
    actor = _resolve_actor(user_id, session_id)
    if high_score_only and min_score is None:
        min_score = HIGH_SCORE_THRESHOLD
    state = load_engine_if_needed()
    rows = state["recommendations"].list_for_actor(
        actor, recommendation_type=recommendation_type, min_score=min_score
    )
    return HistoryResponse(
        **actor.as_fields(),
        recommendations=[
            StoredRecommendation(
                id=row.id,
                product_id=row.product_id,
                recommendation_type=row.recommendation_type,
                score=row.score,
                reasoning=row.reasoning,
                was_clicked=row.was_clicked,
                was_purchased=row.was_purchased,
                created_at=row.created_at,
            )
            for row in rows
        ],
    )


@router.post("/{recommendation_id}/click", response_model=ClickResponse)
def record_click(recommendation_id: int) -> ClickResponse:
    """Attribute a click to a stored recommendation.

    Unknown IDs are accepted and reported with ``updated: false``.
    """
    state = load_engine_if_needed()
    updated = state["feedback"].record_click(recommendation_id)
    metrics_service.record_click(matched=updated)
    return ClickResponse(recommendation_id=recommendation_id, updated=updated)


@router.post("/purchase", response_model=PurchaseResponse)
def record_purchase(request: PurchaseRequest) -> PurchaseResponse:
    """Attribute a purchase to every stored recommendation of the product."""
    actor = _resolve_actor(request.user_id, request.session_id)
    state = load_engine_if_needed()
    rows_updated = state["feedback"].record_purchase(request.product_id, actor)
    metrics_service.record_purchase(rows_updated)
    return PurchaseResponse(product_id=request.product_id, rows_updated=rows_updated)


@router.post("/reload-data")
def reload_data() -> Dict[str, str]:
    """Reload catalog and interactions from disk.

    Clears the cached engine so the next request re-reads the data files.
    Stored recommendations are kept only when a snapshot path is configured.
    """
    global _engine_cache

    logger.info("Reloading data...")
    _engine_cache = None

    load_engine_if_needed()
    return {"status": "Data reloaded successfully"}
