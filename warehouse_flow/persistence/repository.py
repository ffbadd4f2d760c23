"""SQL implementation of the entity store."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

import structlog
from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from warehouse_flow.enterprise.core import (
    Package,
    PackagePatch,
    Pallet,
    StorageLocation,
    Warehouse,
)
from warehouse_flow.enterprise.core.transitions import PALLET_BOUND_STATUSES
from warehouse_flow.exceptions import CorruptRecordError, EntityStoreError

from .models import PackageRecord, PalletRecord, StorageLocationRecord, WarehouseRecord

logger = structlog.get_logger(__name__)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _package_from_record(record: PackageRecord) -> Package:
    if (record.pallet_id is not None) != (record.status in PALLET_BOUND_STATUSES):
        raise CorruptRecordError(
            "get_package",
            f"package {record.id} has status {record.status.value} and pallet {record.pallet_id!r}",
        )
    return Package(
        id=record.id,
        warehouse_id=record.warehouse_id,
        pallet_id=record.pallet_id,
        status=record.status,
        inducted_at=_aware(record.inducted_at),
        stowed_at=_aware(record.stowed_at),
        version=record.version,
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
    )


def _pallet_from_record(record: PalletRecord) -> Pallet:
    return Pallet(
        id=record.id,
        storage_location_id=record.storage_location_id,
        staged_at=_aware(record.staged_at),
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
    )


class SqlEntityStore:
    """Entity store backed by an async SQLAlchemy session factory.

    Each operation runs in its own short-lived session and commits before
    returning, so a successful write is visible to every later read.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("store_operation_failed", operation=operation, error=str(exc))
            raise EntityStoreError(operation, str(exc)) from exc

    async def get_package(self, package_id: str) -> Optional[Package]:
        async with self._session("get_package") as session:
            record = await session.get(PackageRecord, package_id)
            return _package_from_record(record) if record else None

    async def get_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        async with self._session("get_warehouse") as session:
            record = await session.get(WarehouseRecord, warehouse_id)
            if record is None:
                return None
            return Warehouse(
                id=record.id,
                name=record.name,
                address=record.address,
                created_at=_aware(record.created_at),
            )

    async def get_pallet(self, pallet_id: str) -> Optional[Pallet]:
        async with self._session("get_pallet") as session:
            record = await session.get(PalletRecord, pallet_id)
            return _pallet_from_record(record) if record else None

    async def get_storage_location(self, location_id: str) -> Optional[StorageLocation]:
        async with self._session("get_storage_location") as session:
            record = await session.get(StorageLocationRecord, location_id)
            if record is None:
                return None
            return StorageLocation(
                id=record.id,
                warehouse_id=record.warehouse_id,
                zone=record.zone,
                aisle=record.aisle,
                shelf=record.shelf,
            )

    async def get_or_create_pallet(self, pallet_id: str) -> Pallet:
        async with self._session("get_or_create_pallet") as session:
            record = await session.get(PalletRecord, pallet_id)
            if record is not None:
                return _pallet_from_record(record)

            session.add(PalletRecord(id=pallet_id))
            try:
                await session.commit()
            except IntegrityError:
                # Another writer created it between our read and insert.
                await session.rollback()
            else:
                logger.info("pallet_created", pallet_id=pallet_id)

            record = await session.get(PalletRecord, pallet_id)
            if record is None:
                raise EntityStoreError("get_or_create_pallet", f"pallet {pallet_id} vanished after insert")
            return _pallet_from_record(record)

    async def compare_and_set_package(
        self, package_id: str, expected_version: int, patch: PackagePatch
    ) -> bool:
        stmt = (
            update(PackageRecord)
            .where(PackageRecord.id == package_id, PackageRecord.version == expected_version)
            .values(**patch.changes(), version=PackageRecord.version + 1)
            .execution_options(synchronize_session=False)
        )
        async with self._session("compare_and_set_package") as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount == 1

    async def list_pallet_packages(self, pallet_id: str) -> List[Package]:
        stmt = (
            select(PackageRecord)
            .where(PackageRecord.pallet_id == pallet_id)
            .order_by(PackageRecord.stowed_at, PackageRecord.id)
        )
        async with self._session("list_pallet_packages") as session:
            result = await session.execute(stmt)
            return [_package_from_record(record) for record in result.scalars()]

    async def _insert(self, operation: str, record) -> bool:
        async with self._session(operation) as session:
            if await session.get(type(record), record.id) is not None:
                return False
            session.add(record)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
            return True

    async def add_warehouse(self, warehouse: Warehouse) -> bool:
        return await self._insert(
            "add_warehouse",
            WarehouseRecord(
                id=warehouse.id,
                name=warehouse.name,
                address=warehouse.address,
                created_at=warehouse.created_at,
            ),
        )

    async def add_storage_location(self, location: StorageLocation) -> bool:
        return await self._insert(
            "add_storage_location",
            StorageLocationRecord(
                id=location.id,
                warehouse_id=location.warehouse_id,
                zone=location.zone,
                aisle=location.aisle,
                shelf=location.shelf,
            ),
        )

    async def add_package(self, package: Package) -> bool:
        return await self._insert(
            "add_package",
            PackageRecord(
                id=package.id,
                warehouse_id=package.warehouse_id,
                pallet_id=package.pallet_id,
                status=package.status,
                inducted_at=package.inducted_at,
                stowed_at=package.stowed_at,
                version=package.version,
                created_at=package.created_at,
                updated_at=package.updated_at,
            ),
        )

    async def ping(self) -> None:
        async with self._session("ping") as session:
            await session.execute(text("SELECT 1"))
