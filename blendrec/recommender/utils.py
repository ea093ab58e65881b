"""Utility functions for loading recommendation data.

This module reads the product catalog and interaction log from CSV files
into the in-process stores, and locates the data files on disk.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from blendrec.recommender.models import InteractionType, Product
from blendrec.recommender.stores import (
    INTERACTION_COLUMNS,
    DataFrameInteractionStore,
    InMemoryCatalogStore,
    to_naive_utc,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Data filenames
PRODUCTS_FILENAME = "products.csv"
INTERACTIONS_FILENAME = "interactions.csv"

TAG_SEPARATOR = "|"


def parse_tags(raw: Any) -> Tuple[str, ...]:
    """Parse a tags cell into an ordered tuple of unique, non-empty tags.

    Accepts a JSON array (``["eco", "durable"]``) or a ``|``-separated
    string (``eco|durable``). Missing values give an empty tuple.
    """
    if raw is None or (not isinstance(raw, (list, tuple)) and pd.isna(raw)):
        return ()

    if isinstance(raw, (list, tuple)):
        values = raw
    else:
        text = str(raw).strip()
        if text.startswith("["):
            values = json.loads(text)
        else:
            values = text.split(TAG_SEPARATOR)

    tags = []
    for value in values:
        tag = str(value).strip() if value is not None else ""
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def _number_or(value: Any, default: float) -> float:
    if value is None or pd.isna(value):
        return default
    return float(value)


def _parse_metadata(raw: Any) -> Optional[Dict[str, Any]]:
    if raw is None or (isinstance(raw, float) and pd.isna(raw)) or raw == "":
        return None
    if isinstance(raw, dict):
        return raw
    return json.loads(raw)


def load_products_csv(csv_path: str) -> InMemoryCatalogStore:
    """Load the product catalog from CSV.

    Required columns are ``id``, ``name``, ``category`` and ``price``.
    ``description``, ``tags``, ``stock``, ``is_active``, ``avg_rating`` and
    ``total_reviews`` are optional and take catalog defaults when absent.

    Args:
        csv_path: Path to the products CSV file.

    Returns:
        Catalog store holding every product in the file.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If required columns are missing or IDs are duplicated.
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading products from {csv_path}")
    df = pd.read_csv(csv_path)

    required_columns = {"id", "name", "category", "price"}
    if not required_columns.issubset(df.columns):
        missing = required_columns - set(df.columns)
        raise ValueError(f"CSV missing required columns: {missing}")

    if df["id"].duplicated().any():
        raise ValueError("Product IDs must be unique")

    products = []
    for row in df.to_dict("records"):
        is_active = row.get("is_active", True)
        if isinstance(is_active, str):
            is_active = is_active.strip().lower() in ("1", "true", "yes")
        elif pd.isna(is_active):
            is_active = True

        products.append(
            Product(
                id=int(row["id"]),
                name=str(row["name"]),
                category=str(row["category"]),
                price=round(float(row["price"]), 2),
                description=str(row["description"]) if pd.notna(row.get("description")) else "",
                tags=parse_tags(row.get("tags")),
                stock=int(_number_or(row.get("stock"), 0)),
                is_active=bool(is_active),
                avg_rating=round(_number_or(row.get("avg_rating"), 0.0), 2),
                total_reviews=int(_number_or(row.get("total_reviews"), 0)),
            )
        )

    logger.info(f"Loaded {len(products)} products")
    return InMemoryCatalogStore(products)


def load_interactions_csv(csv_path: str) -> DataFrameInteractionStore:
    """Load the interaction log from CSV.

    Required columns are ``product_id``, ``interaction_type`` and
    ``created_at``, plus ``user_id`` and/or ``session_id``. Every row must
    carry exactly one of the two identities.

    Args:
        csv_path: Path to the interactions CSV file.

    Returns:
        Interaction store over the loaded rows.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If columns are missing, an interaction type is unknown,
            or a row has both or neither actor identity.
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading interactions from {csv_path}")
    df = pd.read_csv(csv_path, dtype={"session_id": "string"})

    required_columns = {"product_id", "interaction_type", "created_at"}
    if not required_columns.issubset(df.columns):
        missing = required_columns - set(df.columns)
        raise ValueError(f"CSV missing required columns: {missing}")

    if "user_id" not in df.columns and "session_id" not in df.columns:
        raise ValueError("CSV needs a user_id or session_id column")

    for column in ("user_id", "session_id", "value", "metadata"):
        if column not in df.columns:
            df[column] = None

    df["user_id"] = df["user_id"].astype("Int64")
    df["session_id"] = df["session_id"].astype("string").replace("", pd.NA)

    has_user = df["user_id"].notna()
    has_session = df["session_id"].notna()
    invalid = has_user == has_session
    if invalid.any():
        rows = df.index[invalid.to_numpy()].tolist()[:5]
        raise ValueError(
            f"Each interaction needs exactly one of user_id or session_id "
            f"(offending rows: {rows})"
        )

    valid_types = {t.value for t in InteractionType}
    unknown = set(df["interaction_type"].unique()) - valid_types
    if unknown:
        raise ValueError(f"Unknown interaction types: {unknown}")

    df["actor_key"] = [
        f"user:{int(u)}" if has_u else f"session:{s}"
        for u, s, has_u in zip(df["user_id"], df["session_id"], has_user)
    ]
    df["product_id"] = df["product_id"].astype("int64")
    df["created_at"] = to_naive_utc(df["created_at"])
    df["metadata"] = df["metadata"].map(_parse_metadata)
    df["value"] = pd.to_numeric(df["value"])

    logger.info(f"Loaded {len(df)} interaction records")
    logger.info(f"Unique actors: {df['actor_key'].nunique()}")
    logger.info(f"Unique products: {df['product_id'].nunique()}")

    return DataFrameInteractionStore(df[INTERACTION_COLUMNS])


def get_data_paths(data_dir: str) -> Tuple[Path, Path]:
    """Get file paths for the data files without loading them.

    Returns:
        Tuple of (products CSV path, interactions CSV path).
    """
    data_path = Path(data_dir)
    return data_path / PRODUCTS_FILENAME, data_path / INTERACTIONS_FILENAME


def check_data_exists(data_dir: str) -> bool:
    """Check if both data files exist in ``data_dir``."""
    products_path, interactions_path = get_data_paths(data_dir)
    return products_path.exists() and interactions_path.exists()


def load_data(data_dir: str) -> Tuple[InMemoryCatalogStore, DataFrameInteractionStore]:
    """Load catalog and interactions from ``data_dir``.

    Raises:
        FileNotFoundError: If either data file is missing.
    """
    data_path = Path(data_dir)
    if not data_path.exists():
        raise FileNotFoundError(f"Data directory does not exist: {data_dir}")

    products_path, interactions_path = get_data_paths(data_dir)
    catalog = load_products_csv(str(products_path))
    interactions = load_interactions_csv(str(interactions_path))
    return catalog, interactions
