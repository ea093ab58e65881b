"""Shared fixtures: a small catalog and interaction log with a fixed clock."""

from datetime import datetime, timedelta
from typing import List

import pandas as pd
import pytest

from blendrec.api.metrics import metrics_service
from blendrec.api.routes import recommend as recommend_module
from blendrec.recommender.models import (
    Interaction,
    InteractionType,
    Product,
    SessionActor,
    UserActor,
)
from blendrec.recommender.stores import (
    DataFrameInteractionStore,
    InMemoryCatalogStore,
    InMemoryRecommendationStore,
)

NOW = datetime(2024, 6, 15, 12, 0, 0)


def make_interaction(actor, product_id, interaction_type, minutes_ago=60):
    return Interaction(
        actor=actor,
        product_id=product_id,
        interaction_type=InteractionType(interaction_type),
        created_at=NOW - timedelta(minutes=minutes_ago),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def products() -> List[Product]:
    return [
        Product(id=1, name="Bamboo bottle", category="kitchen", price=20.0,
                tags=("eco", "durable"), stock=10, avg_rating=4.5, total_reviews=10),
        Product(id=2, name="Steel bottle", category="kitchen", price=25.0,
                tags=("durable",), stock=5, avg_rating=4.0, total_reviews=30),
        Product(id=3, name="Glass jar", category="kitchen", price=8.0,
                tags=("eco",), stock=0, avg_rating=3.5, total_reviews=4),
        Product(id=4, name="Trail shoes", category="outdoor", price=90.0,
                tags=("durable", "waterproof"), stock=3, avg_rating=4.8, total_reviews=120),
        Product(id=5, name="Tent", category="outdoor", price=250.0,
                tags=("waterproof",), stock=2, avg_rating=4.2, total_reviews=15),
        Product(id=6, name="Old kettle", category="kitchen", price=30.0,
                tags=("eco",), stock=1, is_active=False, avg_rating=5.0, total_reviews=0),
        Product(id=7, name="Novel", category="books", price=12.0,
                tags=(), stock=50, avg_rating=3.0, total_reviews=2),
    ]


@pytest.fixture
def catalog(products) -> InMemoryCatalogStore:
    return InMemoryCatalogStore(products)


@pytest.fixture
def alice():
    return UserActor(user_id=1)


@pytest.fixture
def bob():
    return UserActor(user_id=2)


@pytest.fixture
def guest():
    return SessionActor(session_id="sess-guest")


@pytest.fixture
def interactions(alice, bob, guest) -> DataFrameInteractionStore:
    """Alice viewed 1 and bought 2; Bob bought 1, 2 and 4; a guest viewed 5 twice."""
    return DataFrameInteractionStore.from_interactions([
        make_interaction(alice, 1, "view", minutes_ago=120),
        make_interaction(alice, 2, "purchase", minutes_ago=60),
        make_interaction(bob, 1, "purchase", minutes_ago=300),
        make_interaction(bob, 2, "purchase", minutes_ago=290),
        make_interaction(bob, 4, "purchase", minutes_ago=280),
        make_interaction(guest, 5, "view", minutes_ago=30),
        make_interaction(guest, 5, "view", minutes_ago=20),
    ])


@pytest.fixture
def recommendation_store() -> InMemoryRecommendationStore:
    return InMemoryRecommendationStore()


def write_dataset(data_dir, products):
    """Write products.csv and interactions.csv timed relative to the wall clock."""
    data_dir.mkdir(parents=True, exist_ok=True)

    pd.DataFrame([
        {
            "id": p.id,
            "name": p.name,
            "category": p.category,
            "price": p.price,
            "tags": "|".join(p.tags),
            "stock": p.stock,
            "is_active": p.is_active,
            "avg_rating": p.avg_rating,
            "total_reviews": p.total_reviews,
        }
        for p in products
    ]).to_csv(data_dir / "products.csv", index=False)

    wall_now = datetime.now()
    rows = [
        (1, None, 1, "view", 120),
        (1, None, 2, "purchase", 60),
        (2, None, 1, "purchase", 300),
        (2, None, 2, "purchase", 290),
        (2, None, 4, "purchase", 280),
        (None, "sess-guest", 5, "view", 30),
        (None, "sess-guest", 5, "view", 20),
    ]
    pd.DataFrame([
        {
            "user_id": user_id,
            "session_id": session_id,
            "product_id": product_id,
            "interaction_type": interaction_type,
            "created_at": (wall_now - timedelta(minutes=minutes_ago)).isoformat(),
        }
        for user_id, session_id, product_id, interaction_type, minutes_ago in rows
    ]).to_csv(data_dir / "interactions.csv", index=False)


@pytest.fixture
def api_state(monkeypatch, tmp_path):
    """Point the API at an empty data directory and a fresh engine cache."""
    data_dir = tmp_path / "data"
    monkeypatch.setattr(recommend_module, "DEFAULT_DATA_DIR", str(data_dir))
    monkeypatch.setattr(recommend_module, "_engine_cache", None)
    metrics_service.reset()
    try:
        yield data_dir
    finally:
        recommend_module._engine_cache = None
        metrics_service.reset()


@pytest.fixture
def loaded_data(api_state, products):
    write_dataset(api_state, products)
    return api_state
