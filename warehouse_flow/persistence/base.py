"""Entity store contract consumed by the transition coordinator."""

from __future__ import annotations

from typing import List, Optional, Protocol

from warehouse_flow.enterprise.core import (
    Package,
    PackagePatch,
    Pallet,
    StorageLocation,
    Warehouse,
)


class EntityStore(Protocol):
    """Keyed storage with point lookups and version-guarded package writes.

    Every method is a potential suspension point. A successful
    :meth:`compare_and_set_package` must be visible to the next read made
    through the same store.
    """

    async def get_package(self, package_id: str) -> Optional[Package]:
        ...

    async def get_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        ...

    async def get_pallet(self, pallet_id: str) -> Optional[Pallet]:
        ...

    async def get_storage_location(self, location_id: str) -> Optional[StorageLocation]:
        ...

    async def get_or_create_pallet(self, pallet_id: str) -> Pallet:
        """Return the pallet, creating it atomically on first reference."""
        ...

    async def compare_and_set_package(
        self, package_id: str, expected_version: int, patch: PackagePatch
    ) -> bool:
        """Apply ``patch`` and bump the version iff it still equals ``expected_version``.

        Returns ``False`` (and writes nothing) on a version mismatch or when
        the package does not exist.
        """
        ...

    async def list_pallet_packages(self, pallet_id: str) -> List[Package]:
        ...

    async def add_warehouse(self, warehouse: Warehouse) -> bool:
        ...

    async def add_storage_location(self, location: StorageLocation) -> bool:
        ...

    async def add_package(self, package: Package) -> bool:
        """Insert a package if its id is unused. Returns ``False`` if it exists."""
        ...

    async def ping(self) -> None:
        """Raise :class:`~warehouse_flow.exceptions.EntityStoreError` if unreachable."""
        ...
