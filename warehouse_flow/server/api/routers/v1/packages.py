"""Package induct endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from warehouse_flow.persistence import EntityStore
from warehouse_flow.server.api.schemas.transitions import (
    BatchInductResultSchema,
    InductBatchRequestSchema,
    InductRequestSchema,
    InductResultSchema,
    PackageSchema,
)
from warehouse_flow.server.dependencies import get_batch_runner, get_coordinator, get_store
from warehouse_flow.services import BatchRunner, TransitionCoordinator

router = APIRouter(prefix="/packages", tags=["packages"])


@router.post("/induct", response_model=InductResultSchema)
async def induct_package(
    body: InductRequestSchema,
    coordinator: TransitionCoordinator = Depends(get_coordinator),
) -> InductResultSchema:
    result = await coordinator.induct(body.package_id, body.warehouse_id, body.received_at)
    return InductResultSchema.from_domain(result)


@router.post("/induct/batch", response_model=BatchInductResultSchema)
async def induct_batch(
    body: InductBatchRequestSchema,
    runner: BatchRunner = Depends(get_batch_runner),
) -> BatchInductResultSchema:
    batch = await runner.induct_batch(body.items)
    return BatchInductResultSchema.from_domain(batch)


@router.get("/{package_id}", response_model=PackageSchema)
async def get_package(package_id: str, store: EntityStore = Depends(get_store)) -> PackageSchema:
    package = await store.get_package(package_id)
    if package is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")
    return PackageSchema.from_domain(package)
