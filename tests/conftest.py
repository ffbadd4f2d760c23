from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

import pytest

from warehouse_flow.enterprise.core import Package, PackagePatch, PackageStatus, Warehouse
from warehouse_flow.persistence import InMemoryEntityStore

RECEIVED_AT = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
STOWED_AT = datetime(2024, 5, 1, 9, 15, tzinfo=timezone.utc)


class RacingStore(InMemoryEntityStore):
    """Memory store where another writer bumps a package's version just before our write.

    ``races`` maps package id to how many upcoming writes on that package
    should lose their race.
    """

    def __init__(self, races: Optional[Dict[str, int]] = None) -> None:
        super().__init__()
        self.races = dict(races or {})
        self.cas_calls: Dict[str, int] = {}

    async def compare_and_set_package(self, package_id: str, expected_version: int, patch: PackagePatch) -> bool:
        self.cas_calls[package_id] = self.cas_calls.get(package_id, 0) + 1
        if self.races.get(package_id, 0) > 0:
            self.races[package_id] -= 1
            current = self.packages[package_id]
            self.packages[package_id] = current.model_copy(update={"version": current.version + 1})
        return await super().compare_and_set_package(package_id, expected_version, patch)


def populate(store: InMemoryEntityStore) -> InMemoryEntityStore:
    store.warehouses["WH-001"] = Warehouse(id="WH-001", name="Main Distribution Center")
    for package_id in ("PKG-001", "PKG-002", "PKG-003"):
        store.packages[package_id] = Package(id=package_id)
    store.packages["PKG-INDUCTED"] = Package(
        id="PKG-INDUCTED",
        warehouse_id="WH-001",
        status=PackageStatus.INDUCTED,
        inducted_at=RECEIVED_AT,
        version=1,
    )
    store.packages["PKG-INDUCTED-2"] = Package(
        id="PKG-INDUCTED-2",
        warehouse_id="WH-001",
        status=PackageStatus.INDUCTED,
        inducted_at=RECEIVED_AT,
        version=1,
    )
    store.packages["PKG-STOWED"] = Package(
        id="PKG-STOWED",
        warehouse_id="WH-001",
        pallet_id="PLT-OTHER",
        status=PackageStatus.STOWED,
        inducted_at=RECEIVED_AT,
        stowed_at=STOWED_AT,
        version=2,
    )
    store.packages["PKG-PICKED"] = Package(
        id="PKG-PICKED",
        warehouse_id="WH-001",
        pallet_id="PLT-OTHER",
        status=PackageStatus.PICKED,
        inducted_at=RECEIVED_AT,
        stowed_at=STOWED_AT,
        version=4,
    )
    return store


@pytest.fixture
def store() -> InMemoryEntityStore:
    return populate(InMemoryEntityStore())


@pytest.fixture
def racing_store():
    def factory(races: Dict[str, int]) -> RacingStore:
        return populate(RacingStore(races))

    return factory
