"""
Persistence layer.

Responsibilities:
- Define the ``LunchStore`` interface over the hosted lunch tables.
- Provide an in-memory backend and a hosted (PostgREST) backend.
- Hold the process store used by the HTTP layer, created on first use.
"""
from __future__ import annotations

import logging

from ..config import DEFAULT_APP_CONFIG, AppConfig
from .base import LunchStore, StoreError
from .memory import MemoryStore
from .rest import RestStore

logger = logging.getLogger(__name__)

_store: LunchStore | None = None


def build_store(config: AppConfig = DEFAULT_APP_CONFIG) -> LunchStore:
    """Create the backend named by ``config.store_backend``."""
    if config.store_backend == "rest":
        return RestStore(config.supabase_url, config.supabase_key, timeout=config.store_timeout)
    if config.store_backend != "memory":
        raise ValueError(f"Unknown store backend: {config.store_backend!r}")

    store = MemoryStore()
    if config.seed_demo_data:
        from ..data_ingestion.ingest import run_ingestion

        count = run_ingestion(store)
        logger.info("Seeded in-memory store with %d restaurants", count)
    return store


def get_store() -> LunchStore:
    """Return the process store, building it on first call."""
    global _store
    if _store is None:
        _store = build_store()
    return _store


def set_store(store: LunchStore | None) -> None:
    """Replace the process store; ``None`` rebuilds it on next use."""
    global _store
    _store = store


__all__ = [
    "LunchStore",
    "MemoryStore",
    "RestStore",
    "StoreError",
    "build_store",
    "get_store",
    "set_store",
]
