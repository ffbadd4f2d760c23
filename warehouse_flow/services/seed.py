"""Bootstrap loader for warehouses, storage locations and pre-registered packages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import structlog
import yaml
from pydantic import BaseModel, Field

from warehouse_flow.enterprise.core import Package, PackageStatus, StorageLocation, Warehouse
from warehouse_flow.persistence.base import EntityStore

logger = structlog.get_logger(__name__)


class SeedPackage(BaseModel):
    id: str
    warehouse_id: str | None = None


class SeedData(BaseModel):
    warehouses: List[Warehouse] = Field(default_factory=list)
    storage_locations: List[StorageLocation] = Field(default_factory=list)
    packages: List[SeedPackage] = Field(default_factory=list)


@dataclass
class SeedReport:
    created: Dict[str, int] = field(default_factory=lambda: {"warehouses": 0, "storage_locations": 0, "packages": 0})
    skipped: Dict[str, int] = field(default_factory=lambda: {"warehouses": 0, "storage_locations": 0, "packages": 0})

    def count(self, kind: str, inserted: bool) -> None:
        bucket = self.created if inserted else self.skipped
        bucket[kind] += 1


def load_seed_file(path: Union[str, Path]) -> SeedData:
    """Parse a YAML seed file. An empty file yields no rows."""

    seed_path = Path(path)
    if not seed_path.exists():
        raise FileNotFoundError(f"Seed file not found: {seed_path}")
    with seed_path.open("r", encoding="utf-8") as handle:
        raw: Dict[str, Any] = yaml.safe_load(handle) or {}
    return SeedData.model_validate(raw)


async def seed_store(store: EntityStore, data: SeedData) -> SeedReport:
    """Insert seed rows, leaving ids that already exist untouched.

    Packages always start PENDING at version 0.
    """

    report = SeedReport()
    for warehouse in data.warehouses:
        report.count("warehouses", await store.add_warehouse(warehouse))
    for location in data.storage_locations:
        report.count("storage_locations", await store.add_storage_location(location))
    for item in data.packages:
        package = Package(id=item.id, warehouse_id=item.warehouse_id, status=PackageStatus.PENDING)
        report.count("packages", await store.add_package(package))

    logger.info("seed_loaded", created=report.created, skipped=report.skipped)
    return report
