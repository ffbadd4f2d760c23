"""In-memory entity store used when persistent storage is unavailable."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import structlog

from warehouse_flow.enterprise.core import (
    Package,
    PackagePatch,
    Pallet,
    StorageLocation,
    Warehouse,
)

logger = structlog.get_logger(__name__)


class InMemoryEntityStore:
    """Keeps entities in process memory.

    Every call yields to the event loop once before touching state, so
    concurrent coroutines interleave the way they would against a database.
    The check and the write of :meth:`compare_and_set_package` happen with no
    suspension in between, which makes it atomic under asyncio.
    """

    def __init__(self) -> None:
        self.warehouses: Dict[str, Warehouse] = {}
        self.locations: Dict[str, StorageLocation] = {}
        self.pallets: Dict[str, Pallet] = {}
        self.packages: Dict[str, Package] = {}

    async def get_package(self, package_id: str) -> Optional[Package]:
        await asyncio.sleep(0)
        package = self.packages.get(package_id)
        return package.model_copy(deep=True) if package else None

    async def get_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        await asyncio.sleep(0)
        return self.warehouses.get(warehouse_id)

    async def get_pallet(self, pallet_id: str) -> Optional[Pallet]:
        await asyncio.sleep(0)
        pallet = self.pallets.get(pallet_id)
        return pallet.model_copy() if pallet else None

    async def get_storage_location(self, location_id: str) -> Optional[StorageLocation]:
        await asyncio.sleep(0)
        return self.locations.get(location_id)

    async def get_or_create_pallet(self, pallet_id: str) -> Pallet:
        await asyncio.sleep(0)
        pallet = self.pallets.get(pallet_id)
        if pallet is None:
            pallet = Pallet(id=pallet_id)
            self.pallets[pallet_id] = pallet
            logger.info("pallet_created", pallet_id=pallet_id)
        return pallet.model_copy()

    async def compare_and_set_package(
        self, package_id: str, expected_version: int, patch: PackagePatch
    ) -> bool:
        await asyncio.sleep(0)
        current = self.packages.get(package_id)
        if current is None or current.version != expected_version:
            return False
        self.packages[package_id] = current.model_copy(
            update={**patch.changes(), "version": expected_version + 1}
        )
        return True

    async def list_pallet_packages(self, pallet_id: str) -> List[Package]:
        await asyncio.sleep(0)
        packages = [pkg for pkg in self.packages.values() if pkg.pallet_id == pallet_id]
        packages.sort(key=lambda pkg: (pkg.stowed_at is None, pkg.stowed_at, pkg.id))
        return [pkg.model_copy(deep=True) for pkg in packages]

    async def add_warehouse(self, warehouse: Warehouse) -> bool:
        if warehouse.id in self.warehouses:
            return False
        self.warehouses[warehouse.id] = warehouse
        return True

    async def add_storage_location(self, location: StorageLocation) -> bool:
        if location.id in self.locations:
            return False
        self.locations[location.id] = location
        return True

    async def add_package(self, package: Package) -> bool:
        if package.id in self.packages:
            return False
        self.packages[package.id] = package.model_copy(deep=True)
        return True

    async def ping(self) -> None:
        return None
