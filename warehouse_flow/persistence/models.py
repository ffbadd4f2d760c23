"""SQLAlchemy ORM models for warehouse entities."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from warehouse_flow.enterprise.core import PackageStatus, utcnow

from .database import Base


class WarehouseRecord(Base):
    __tablename__ = "warehouses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    locations: Mapped[list["StorageLocationRecord"]] = relationship(back_populates="warehouse")


class StorageLocationRecord(Base):
    __tablename__ = "storage_locations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    warehouse_id: Mapped[str] = mapped_column(String(64), ForeignKey("warehouses.id"), nullable=False)
    zone: Mapped[str] = mapped_column(String(32), nullable=False)
    aisle: Mapped[str] = mapped_column(String(32), nullable=False)
    shelf: Mapped[str] = mapped_column(String(32), nullable=False)

    warehouse: Mapped[WarehouseRecord] = relationship(back_populates="locations")


class PalletRecord(Base):
    __tablename__ = "pallets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    storage_location_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("storage_locations.id"), nullable=True
    )
    staged_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    packages: Mapped[list["PackageRecord"]] = relationship(back_populates="pallet")


class PackageRecord(Base):
    __tablename__ = "packages"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    warehouse_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("warehouses.id"), nullable=True
    )
    pallet_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("pallets.id"), nullable=True, index=True
    )
    status: Mapped[PackageStatus] = mapped_column(
        Enum(PackageStatus), default=PackageStatus.PENDING, nullable=False
    )
    inducted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    stowed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    pallet: Mapped[Optional[PalletRecord]] = relationship(back_populates="packages")
