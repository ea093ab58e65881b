"""Store contracts and in-process implementations.

The scorers only depend on the ``Protocol`` classes below. The concrete
stores keep interactions in a pandas DataFrame, the catalog and the
recommendation log in memory, and can snapshot recommendations to disk with
joblib so they survive a restart.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

import joblib
import pandas as pd

from blendrec.recommender.models import (
    Actor,
    Interaction,
    InteractionType,
    Product,
    Recommendation,
    RecommendationType,
    actor_from_ids,
)

# Configure module logger
logger = logging.getLogger(__name__)

INTERACTION_COLUMNS = [
    "actor_key",
    "user_id",
    "session_id",
    "product_id",
    "interaction_type",
    "value",
    "metadata",
    "created_at",
]

# Minimum score for the "high score" recommendation filter
HIGH_SCORE_THRESHOLD = 0.5


class InteractionStore(Protocol):
    """Read access to the interaction log."""

    def for_actor(
        self,
        actor: Actor,
        types: Optional[Iterable[InteractionType]] = None,
        limit: Optional[int] = None,
    ) -> List[Interaction]:
        """Return the actor's interactions, newest first."""
        ...

    def count_by_actor(
        self,
        product_ids: Iterable[int],
        exclude: Optional[Actor] = None,
    ) -> pd.Series:
        """Count interactions on ``product_ids`` per actor key, highest first."""
        ...

    def count_by_product(
        self,
        types: Optional[Iterable[InteractionType]] = None,
        since: Optional[datetime] = None,
        actor_keys: Optional[Iterable[str]] = None,
        exclude_product_ids: Optional[Iterable[int]] = None,
    ) -> pd.Series:
        """Count interactions per product ID, highest first."""
        ...

    def count_for_product(
        self, product_id: int, interaction_type: InteractionType
    ) -> int:
        ...


class CatalogStore(Protocol):
    """Read access to the product catalog."""

    def get(self, product_id: int) -> Optional[Product]:
        ...

    def list_active(
        self, category: Optional[str] = None, in_stock: bool = False
    ) -> List[Product]:
        ...


class RecommendationStore(Protocol):
    """Write access to the recommendation log."""

    def insert_many(self, rows: Sequence[Recommendation]) -> List[Recommendation]:
        ...

    def mark_clicked(self, recommendation_id: int) -> bool:
        """Set ``was_clicked``. Return False when no row has that ID."""
        ...

    def mark_purchased(self, product_id: int, actor: Actor) -> int:
        """Set ``was_purchased`` on matching rows and return how many matched."""
        ...

    def get(self, recommendation_id: int) -> Optional[Recommendation]:
        ...

    def list_for_actor(
        self,
        actor: Actor,
        recommendation_type: Optional[RecommendationType] = None,
        min_score: Optional[float] = None,
    ) -> List[Recommendation]:
        ...

    def count(self) -> int:
        ...


def _type_values(types: Optional[Iterable[InteractionType]]) -> Optional[List[str]]:
    if types is None:
        return None
    return [InteractionType(t).value for t in types]


def _rank_counts(counts: pd.Series) -> pd.Series:
    """Sort counts descending, breaking ties on the index ascending."""
    counts = counts.sort_index(kind="mergesort")
    return counts.sort_values(ascending=False, kind="mergesort")


def to_naive_utc(values) -> pd.Series:
    """Parse timestamps to naive UTC.

    Timezone-aware values are converted to UTC and stripped of their zone;
    naive values are kept as they are.
    """
    return pd.to_datetime(pd.Series(values), utc=True).dt.tz_convert(None)


def _naive_utc_timestamp(value: datetime) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts


def interactions_to_frame(interactions: Iterable[Interaction]) -> pd.DataFrame:
    """Convert interaction records to the frame layout used by the store."""
    rows = []
    for interaction in interactions:
        fields = interaction.actor.as_fields()
        rows.append({
            "actor_key": interaction.actor.key,
            "user_id": fields["user_id"],
            "session_id": fields["session_id"],
            "product_id": int(interaction.product_id),
            "interaction_type": InteractionType(interaction.interaction_type).value,
            "value": interaction.value,
            "metadata": interaction.metadata,
            "created_at": interaction.created_at,
        })

    df = pd.DataFrame(rows, columns=INTERACTION_COLUMNS)
    df["product_id"] = df["product_id"].astype("int64")
    df["created_at"] = to_naive_utc(df["created_at"])
    return df


class DataFrameInteractionStore:
    """Interaction store backed by a pandas DataFrame.

    Aggregations are plain ``groupby`` counts over the frame. Reads work on
    whichever frame snapshot was current when they started, so appends never
    block scoring.
    """

    def __init__(self, frame: Optional[pd.DataFrame] = None):
        if frame is None:
            frame = interactions_to_frame([])

        missing = set(INTERACTION_COLUMNS) - set(frame.columns)
        if missing:
            raise ValueError(f"Interaction frame missing required columns: {missing}")

        self._lock = threading.Lock()
        self._frame = frame.reset_index(drop=True)

        logger.info(f"Initialized DataFrameInteractionStore with {len(self._frame)} interactions")

    @classmethod
    def from_interactions(cls, interactions: Iterable[Interaction]) -> "DataFrameInteractionStore":
        return cls(interactions_to_frame(interactions))

    def __len__(self) -> int:
        return len(self._frame)

    def append(self, interactions: Iterable[Interaction]) -> None:
        """Append new interactions; used by ingestion, never by the scorers."""
        new_rows = interactions_to_frame(interactions)
        if new_rows.empty:
            return
        with self._lock:
            self._frame = pd.concat([self._frame, new_rows], ignore_index=True)

    def _filtered(
        self,
        types: Optional[Iterable[InteractionType]] = None,
        since: Optional[datetime] = None,
    ) -> pd.DataFrame:
        df = self._frame
        type_values = _type_values(types)
        if type_values is not None:
            df = df[df["interaction_type"].isin(type_values)]
        if since is not None:
            df = df[df["created_at"] >= _naive_utc_timestamp(since)]
        return df

    def for_actor(
        self,
        actor: Actor,
        types: Optional[Iterable[InteractionType]] = None,
        limit: Optional[int] = None,
    ) -> List[Interaction]:
        df = self._filtered(types)
        df = df[df["actor_key"] == actor.key]

        # Reverse first so later rows win ties on created_at
        df = df.iloc[::-1].sort_values("created_at", ascending=False, kind="mergesort")
        if limit is not None:
            df = df.head(limit)

        return [_row_to_interaction(row) for row in df.to_dict("records")]

    def count_by_actor(
        self,
        product_ids: Iterable[int],
        exclude: Optional[Actor] = None,
    ) -> pd.Series:
        df = self._frame
        df = df[df["product_id"].isin(list(product_ids))]
        if exclude is not None:
            df = df[df["actor_key"] != exclude.key]
        return _rank_counts(df.groupby("actor_key").size())

    def count_by_product(
        self,
        types: Optional[Iterable[InteractionType]] = None,
        since: Optional[datetime] = None,
        actor_keys: Optional[Iterable[str]] = None,
        exclude_product_ids: Optional[Iterable[int]] = None,
    ) -> pd.Series:
        df = self._filtered(types, since)
        if actor_keys is not None:
            df = df[df["actor_key"].isin(list(actor_keys))]
        if exclude_product_ids is not None:
            df = df[~df["product_id"].isin(list(exclude_product_ids))]
        return _rank_counts(df.groupby("product_id").size())

    def count_for_product(
        self, product_id: int, interaction_type: InteractionType
    ) -> int:
        df = self._filtered([interaction_type])
        return int((df["product_id"] == product_id).sum())


def _row_to_interaction(row: Dict) -> Interaction:
    user_id = row.get("user_id")
    session_id = row.get("session_id")
    actor = actor_from_ids(
        user_id=None if pd.isna(user_id) else int(user_id),
        session_id=None if pd.isna(session_id) else str(session_id),
    )
    value = row.get("value")
    metadata = row.get("metadata")
    return Interaction(
        actor=actor,
        product_id=int(row["product_id"]),
        interaction_type=InteractionType(row["interaction_type"]),
        created_at=pd.Timestamp(row["created_at"]).to_pydatetime(),
        value=None if value is None or pd.isna(value) else float(value),
        metadata=metadata if isinstance(metadata, dict) else None,
    )


class InMemoryCatalogStore:
    """Product catalog held in a dict, iterated in product ID order."""

    def __init__(self, products: Iterable[Product]):
        self._products: Dict[int, Product] = {
            p.id: p for p in sorted(products, key=lambda p: p.id)
        }
        logger.info(f"Initialized InMemoryCatalogStore with {len(self._products)} products")

    def __len__(self) -> int:
        return len(self._products)

    def get(self, product_id: int) -> Optional[Product]:
        return self._products.get(product_id)

    def list_active(
        self, category: Optional[str] = None, in_stock: bool = False
    ) -> List[Product]:
        products = [p for p in self._products.values() if p.is_active]
        if category is not None:
            products = [p for p in products if p.category == category]
        if in_stock:
            products = [p for p in products if p.stock > 0]
        return products


class InMemoryRecommendationStore:
    """Append-only recommendation log with optional joblib snapshots.

    When ``path`` is given the log is loaded from it on start-up and written
    back after every mutation.
    """

    def __init__(self, path: Optional[str] = None):
        self._lock = threading.Lock()
        self._rows: Dict[int, Recommendation] = {}
        self._next_id = 1
        self.path = Path(path) if path else None

        if self.path is not None and self.path.exists():
            snapshot = joblib.load(self.path)
            self._rows = {row.id: row for row in snapshot["rows"]}
            self._next_id = snapshot["next_id"]
            logger.info(f"Loaded {len(self._rows)} recommendations from {self.path}")

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(
            {"next_id": self._next_id, "rows": list(self._rows.values())},
            self.path,
        )

    def insert_many(self, rows: Sequence[Recommendation]) -> List[Recommendation]:
        stored = []
        with self._lock:
            for row in rows:
                saved = replace(row, id=self._next_id, reasoning=list(row.reasoning))
                self._rows[saved.id] = saved
                self._next_id += 1
                stored.append(replace(saved))
            self._save()

        logger.debug(f"Inserted {len(stored)} recommendations")
        return stored

    def mark_clicked(self, recommendation_id: int) -> bool:
        with self._lock:
            row = self._rows.get(recommendation_id)
            if row is None:
                return False
            row.was_clicked = True
            self._save()
        return True

    def mark_purchased(self, product_id: int, actor: Actor) -> int:
        updated = 0
        with self._lock:
            for row in self._rows.values():
                if row.product_id == product_id and row.actor == actor:
                    row.was_purchased = True
                    updated += 1
            if updated:
                self._save()
        return updated

    def get(self, recommendation_id: int) -> Optional[Recommendation]:
        with self._lock:
            row = self._rows.get(recommendation_id)
            return replace(row) if row is not None else None

    def list_for_actor(
        self,
        actor: Actor,
        recommendation_type: Optional[RecommendationType] = None,
        min_score: Optional[float] = None,
    ) -> List[Recommendation]:
        with self._lock:
            rows = [replace(r) for r in self._rows.values() if r.actor == actor]

        if recommendation_type is not None:
            rows = [r for r in rows if r.recommendation_type == recommendation_type]
        if min_score is not None:
            rows = [r for r in rows if r.score >= min_score]

        return sorted(rows, key=lambda r: r.score, reverse=True)

    def count(self) -> int:
        with self._lock:
            return len(self._rows)
