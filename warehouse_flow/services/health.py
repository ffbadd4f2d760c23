"""Readiness probing for the entity store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from warehouse_flow.exceptions import EntityStoreError
from warehouse_flow.persistence.base import EntityStore

logger = structlog.get_logger(__name__)


@dataclass
class StoreHealthStatus:
    """Result of one probe against a named dependency."""

    key: str
    up: bool
    message: Optional[str] = None

    @property
    def status(self) -> str:
        return "up" if self.up else "down"


class StoreHealthIndicator:
    """Round-trips a trivial query through the store."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def check(self, key: str = "database") -> StoreHealthStatus:
        try:
            await self.store.ping()
        except EntityStoreError as exc:
            logger.warning("store_unhealthy", key=key, error=exc.detail)
            return StoreHealthStatus(key=key, up=False, message=exc.detail)
        return StoreHealthStatus(key=key, up=True)
