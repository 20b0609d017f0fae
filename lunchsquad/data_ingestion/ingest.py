from __future__ import annotations

import uuid
from dataclasses import replace
from pathlib import Path
from typing import List

import pandas as pd

from ..recommendations.models import DIETARY_RESTRICTIONS, Restaurant
from ..store.base import LunchStore
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig


CANONICAL_COLUMNS: List[str] = [
    "name",
    "description",
    "cuisine_types",
    "dietary_restrictions",
    "rating",
    "image_url",
]


def _split_list(raw: str | None) -> list[str]:
    """Comma-separated cell -> trimmed, lower-cased, de-duplicated values."""
    if raw is None:
        return []
    values: list[str] = []
    for part in str(raw).split(","):
        part = part.strip().lower().replace(" ", "_")
        if part and part not in values:
            values.append(part)
    return values


def _normalize_cuisines(raw: str | None) -> list[str]:
    return [c.replace("_", " ") for c in _split_list(raw)]


def _normalize_dietary(raw: str | None) -> list[str]:
    return [d for d in _split_list(raw) if d in DIETARY_RESTRICTIONS]


def _normalize_rating(rating: float | int | str | None) -> float | None:
    if rating is None:
        return None
    raw = str(rating).strip()
    # Handle "X/5" format (e.g. "4.1/5")
    if "/" in raw:
        raw = raw.split("/")[0].strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None

    # Clamp to [0, 5]
    return max(0.0, min(5.0, value))


def _restaurant_id(name: str, namespace: str) -> str:
    """Stable id so re-seeding updates rows instead of duplicating them."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{namespace}/{name.strip().lower()}"))


def load_restaurants(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> list[Restaurant]:
    """Read and normalize the seed CSV into restaurants."""
    df = pd.read_csv(config.seed_csv, dtype=str, keep_default_na=False)

    # Missing optional columns become empty
    for col in CANONICAL_COLUMNS:
        if col not in df.columns:
            df[col] = ""
    df = df[CANONICAL_COLUMNS].copy()

    df["name"] = df["name"].str.strip()
    df = df[df["name"] != ""].drop_duplicates(subset="name", keep="last")

    restaurants: list[Restaurant] = []
    for _, row in df.iterrows():
        restaurants.append(Restaurant(
            id=_restaurant_id(row["name"], config.id_namespace),
            name=row["name"],
            description=row["description"].strip() or None,
            cuisine_types=_normalize_cuisines(row["cuisine_types"]),
            dietary_restrictions=_normalize_dietary(row["dietary_restrictions"]),
            rating=_normalize_rating(row["rating"]),
            image_url=row["image_url"].strip() or None,
        ))
    return restaurants


def run_ingestion(
    store: LunchStore, config: IngestionConfig = DEFAULT_INGESTION_CONFIG,
) -> int:
    """
    Execute the seed pipeline.

    Steps:
    - Read the seed CSV.
    - Map rows into the canonical Restaurant schema.
    - Upsert every restaurant into the store.
    """
    restaurants = load_restaurants(config)
    for restaurant in restaurants:
        store.upsert_restaurant(restaurant)
    return len(restaurants)


def main() -> int:
    """Seed the configured store once. Meant for ``LUNCH_STORE=rest``; a memory
    store only lives as long as this process."""
    from ..config import DEFAULT_APP_CONFIG
    from ..store import build_store

    store = build_store(replace(DEFAULT_APP_CONFIG, seed_demo_data=False))
    count = run_ingestion(store)
    print(f"Ingestion complete. {count} restaurants loaded from: {DEFAULT_INGESTION_CONFIG.seed_csv}")
    return count


if __name__ == "__main__":
    main()
