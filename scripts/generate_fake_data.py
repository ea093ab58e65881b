"""Generate a fake catalog and interaction log for development.

Creates ``products.csv`` and ``interactions.csv`` in the layout the
BlendRec loaders expect, with a mix of user and session actors and
timestamps spread over the last few weeks so trending has recent data.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_interactions
        df = generate_fake_interactions(num_users=100, num_products=200)
"""

import json
import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import pandas as pd

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_SESSIONS = 20
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_INTERACTIONS = 2000
DEFAULT_DAYS_BACK = 30
SECONDS_PER_DAY = 86400

CATEGORIES = ["electronics", "home", "outdoor", "fashion", "books", "toys"]
TAGS = [
    "eco", "durable", "wireless", "premium", "budget", "compact",
    "handmade", "waterproof", "bestseller", "gift", "organic", "smart",
]
# Views dominate, purchases are rare
INTERACTION_WEIGHTS = {
    "view": 0.55,
    "click": 0.15,
    "add_to_cart": 0.12,
    "wishlist": 0.08,
    "purchase": 0.07,
    "rating": 0.03,
}


def generate_fake_products(
    num_products: int = DEFAULT_NUM_PRODUCTS,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Generate a synthetic product catalog.

    Args:
        num_products: Number of products. Must be positive.
        seed: Optional random seed.

    Returns:
        DataFrame with the products.csv columns; ``tags`` is a JSON array.

    Raises:
        ValueError: If num_products is not positive.
    """
    if num_products <= 0:
        raise ValueError("num_products must be positive")

    rng = random.Random(seed)
    products = []
    for product_id in range(1, num_products + 1):
        category = rng.choice(CATEGORIES)
        products.append({
            "id": product_id,
            "name": f"{category.title()} item {product_id}",
            "description": f"A fine {category} product",
            "price": round(rng.uniform(5, 500), 2),
            "category": category,
            "tags": json.dumps(rng.sample(TAGS, rng.randint(0, 4))),
            "stock": rng.randint(0, 200),
            "is_active": rng.random() > 0.05,
            "avg_rating": round(rng.uniform(1, 5), 2),
            "total_reviews": rng.randint(0, 500),
        })

    return pd.DataFrame(products)


def generate_fake_interactions(
    num_users: int = DEFAULT_NUM_USERS,
    num_sessions: int = DEFAULT_NUM_SESSIONS,
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_interactions: int = DEFAULT_NUM_INTERACTIONS,
    end_date: Optional[datetime] = None,
    days_back: int = DEFAULT_DAYS_BACK,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Generate synthetic interactions for users and anonymous sessions.

    Each row carries exactly one of ``user_id`` or ``session_id``.

    Args:
        num_users: Number of authenticated users.
        num_sessions: Number of anonymous sessions.
        num_products: Number of products interactions point at.
        num_interactions: Total number of rows.
        end_date: Latest timestamp. Defaults to now.
        days_back: Length of the time window in days.
        seed: Optional random seed.

    Returns:
        DataFrame with the interactions.csv columns, sorted by time.

    Raises:
        ValueError: If any count is not positive.
    """
    if num_users + num_sessions <= 0 or num_products <= 0 or num_interactions <= 0:
        raise ValueError("actor, product and interaction counts must be positive")

    rng = random.Random(seed)
    end_date = end_date or datetime.now()
    start_date = end_date - timedelta(days=days_back)
    types = list(INTERACTION_WEIGHTS)
    weights = list(INTERACTION_WEIGHTS.values())
    num_actors = num_users + num_sessions

    rows = []
    for _ in range(num_interactions):
        actor_idx = rng.randrange(num_actors)
        interaction_type = rng.choices(types, weights=weights)[0]
        timestamp = start_date + timedelta(
            days=rng.randrange(days_back), seconds=rng.randrange(SECONDS_PER_DAY)
        )

        rows.append({
            "user_id": actor_idx + 1 if actor_idx < num_users else None,
            "session_id": None if actor_idx < num_users else f"sess-{actor_idx - num_users + 1}",
            "product_id": rng.randint(1, num_products),
            "interaction_type": interaction_type,
            "value": rng.randint(1, 5) if interaction_type == "rating" else None,
            "created_at": timestamp,
        })

    df = pd.DataFrame(rows)
    df["user_id"] = df["user_id"].astype("Int64")
    return df.sort_values("created_at").reset_index(drop=True)


def main() -> None:
    """Generate default data into the ``data/`` directory."""
    print(f"Generating {DEFAULT_NUM_PRODUCTS} products and {DEFAULT_NUM_INTERACTIONS} interactions...")

    products = generate_fake_products()
    interactions = generate_fake_interactions()

    data_dir = Path(__file__).parent.parent / 'data'
    data_dir.mkdir(exist_ok=True)

    products.to_csv(data_dir / 'products.csv', index=False)
    interactions.to_csv(data_dir / 'interactions.csv', index=False)

    print(f"\nData generated successfully!")
    print(f"Saved to: {data_dir}")
    print(f"\nData summary:")
    print(f"  Products: {len(products)} ({products['is_active'].sum()} active)")
    print(f"  Interactions: {len(interactions)}")
    print(f"  Users: {interactions['user_id'].nunique()}")
    print(f"  Sessions: {interactions['session_id'].nunique()}")
    print(f"  Date range: {interactions['created_at'].min()} to {interactions['created_at'].max()}")


if __name__ == '__main__':
    main()
