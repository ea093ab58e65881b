"""Domain types shared by the scorers, stores and API.

Actors are a tagged union of ``UserActor`` and ``SessionActor`` so a record
can never carry both identities or neither.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class InteractionType(str, Enum):
    """Kinds of interaction an actor can have with a product."""

    VIEW = "view"
    CLICK = "click"
    ADD_TO_CART = "add_to_cart"
    PURCHASE = "purchase"
    WISHLIST = "wishlist"
    RATING = "rating"


class RecommendationType(str, Enum):
    """Signal that produced a recommendation."""

    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content_based"
    TRENDING = "trending"
    SIMILAR = "similar"
    AI_GENERATED = "ai_generated"


@dataclass(frozen=True)
class UserActor:
    """An authenticated user."""

    user_id: int

    @property
    def key(self) -> str:
        return f"user:{self.user_id}"

    def as_fields(self) -> Dict[str, Any]:
        return {"user_id": self.user_id, "session_id": None}


@dataclass(frozen=True)
class SessionActor:
    """An anonymous browsing session."""

    session_id: str

    @property
    def key(self) -> str:
        return f"session:{self.session_id}"

    def as_fields(self) -> Dict[str, Any]:
        return {"user_id": None, "session_id": self.session_id}


Actor = Union[UserActor, SessionActor]


def actor_from_ids(
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
) -> Actor:
    """Build an actor from a pair of nullable identity fields.

    Args:
        user_id: Authenticated user ID, if any.
        session_id: Anonymous session ID, if any.

    Returns:
        ``UserActor`` or ``SessionActor``.

    Raises:
        ValueError: If both or neither identity is given.
    """
    has_user = user_id is not None
    has_session = session_id is not None and session_id != ""

    if has_user and has_session:
        raise ValueError("Actor must have a user_id or a session_id, not both")
    if not has_user and not has_session:
        raise ValueError("Actor must have either a user_id or a session_id")

    if has_user:
        return UserActor(user_id=int(user_id))
    return SessionActor(session_id=str(session_id))


@dataclass(frozen=True)
class Interaction:
    """A single append-only interaction record."""

    actor: Actor
    product_id: int
    interaction_type: InteractionType
    created_at: datetime
    value: Optional[float] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Product:
    """Catalog entry as seen by the scorers."""

    id: int
    name: str
    category: str
    price: float = 0.0
    description: str = ""
    tags: Tuple[str, ...] = ()
    stock: int = 0
    is_active: bool = True
    avg_rating: float = 0.0
    total_reviews: int = 0


@dataclass(frozen=True)
class Candidate:
    """Scored product suggestion produced by a scorer before merging."""

    product_id: int
    recommendation_type: RecommendationType
    score: float
    reasoning: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "recommendation_type": self.recommendation_type.value,
            "score": self.score,
            "reasoning": list(self.reasoning),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Candidate":
        return cls(
            product_id=int(data["product_id"]),
            recommendation_type=RecommendationType(data["recommendation_type"]),
            score=float(data["score"]),
            reasoning=tuple(data.get("reasoning") or ()),
        )


@dataclass
class Recommendation:
    """A persisted recommendation row."""

    actor: Actor
    product_id: int
    recommendation_type: RecommendationType
    score: float
    created_at: datetime
    reasoning: List[str] = field(default_factory=list)
    was_clicked: bool = False
    was_purchased: bool = False
    id: Optional[int] = None


def clamp_score(score: float) -> float:
    """Clamp a raw score into [0.0, 1.0]."""
    return max(0.0, min(float(score), 1.0))
