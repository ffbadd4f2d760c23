"""Domain models for the warehouse flow service.

These models are the typed representation of the records the transition
engine reads and writes. They are framework-agnostic so the coordinator,
the persistence layer and the API schemas can share them.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, NonNegativeInt


def utcnow() -> datetime:
    """Timezone-aware current time used for every audit timestamp."""

    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Convert ``value`` to aware UTC; naive values are read as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PackageStatus(str, enum.Enum):
    """Lifecycle states for a package, in workflow order."""

    PENDING = "PENDING"
    INDUCTED = "INDUCTED"
    STOWED = "STOWED"
    STAGED = "STAGED"
    PICKED = "PICKED"


class Warehouse(BaseModel):
    """Site a package is inducted into. Reference data."""

    id: str
    name: str
    address: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class StorageLocation(BaseModel):
    """Addressable shelf position inside a warehouse. Reference data."""

    id: str
    warehouse_id: str
    zone: str
    aisle: str
    shelf: str


class Package(BaseModel):
    """Unit of work moving through the warehouse workflow."""

    id: str
    warehouse_id: Optional[str] = None
    pallet_id: Optional[str] = None
    status: PackageStatus = PackageStatus.PENDING
    inducted_at: Optional[datetime] = None
    stowed_at: Optional[datetime] = None
    version: NonNegativeInt = Field(0, description="Optimistic-concurrency counter.")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Pallet(BaseModel):
    """Container that stowed packages are associated with."""

    id: str
    storage_location_id: Optional[str] = None
    staged_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class PalletSnapshot(Pallet):
    """Pallet together with the packages currently associated with it."""

    packages: List[Package] = Field(default_factory=list)

    @classmethod
    def from_pallet(cls, pallet: Pallet, packages: List[Package]) -> "PalletSnapshot":
        return cls(**pallet.model_dump(), packages=packages)


class PackagePatch(BaseModel):
    """Fields written by a single guarded package update.

    Only explicitly set fields are applied; ``version`` is never part of a
    patch because the store owns the increment.
    """

    status: Optional[PackageStatus] = None
    warehouse_id: Optional[str] = None
    pallet_id: Optional[str] = None
    inducted_at: Optional[datetime] = None
    stowed_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=utcnow)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True) | {"updated_at": self.updated_at}
