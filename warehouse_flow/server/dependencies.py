"""Dependency providers for the API layer."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends

from warehouse_flow.enterprise.config.settings import AppSettings, get_settings
from warehouse_flow.persistence import EntityStore, InMemoryEntityStore, SqlEntityStore
from warehouse_flow.persistence.database import get_sessionmaker, init_engine
from warehouse_flow.services import BatchRunner, StoreHealthIndicator, TransitionCoordinator

__all__ = [
    "get_app_settings",
    "get_store",
    "get_coordinator",
    "get_batch_runner",
    "get_health_indicator",
    "reset_store",
]


_memory_store: Optional[InMemoryEntityStore] = None


def get_app_settings() -> AppSettings:
    return get_settings()


def get_store() -> EntityStore:
    """Return the SQL store when the database is enabled, else the shared memory store."""

    global _memory_store
    try:
        init_engine()
    except RuntimeError:
        if _memory_store is None:
            _memory_store = InMemoryEntityStore()
        return _memory_store
    return SqlEntityStore(get_sessionmaker())


def get_coordinator(
    store: EntityStore = Depends(get_store),
    settings: AppSettings = Depends(get_app_settings),
) -> TransitionCoordinator:
    return TransitionCoordinator(store, settings=settings)


def get_batch_runner(
    coordinator: TransitionCoordinator = Depends(get_coordinator),
) -> BatchRunner:
    return BatchRunner(coordinator)


def get_health_indicator(store: EntityStore = Depends(get_store)) -> StoreHealthIndicator:
    return StoreHealthIndicator(store)


def reset_store() -> None:
    """Drop the cached memory store (useful for tests)."""

    global _memory_store
    _memory_store = None
