"""Pallet stow endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from warehouse_flow.enterprise.core import PalletSnapshot
from warehouse_flow.persistence import EntityStore
from warehouse_flow.server.api.schemas.transitions import PalletSchema, StowRequestSchema, StowResultSchema
from warehouse_flow.server.dependencies import get_coordinator, get_store
from warehouse_flow.services import TransitionCoordinator

router = APIRouter(prefix="/pallets", tags=["pallets"])


@router.post("/{pallet_id}/stow", response_model=StowResultSchema)
async def stow_packages(
    pallet_id: str,
    body: StowRequestSchema,
    coordinator: TransitionCoordinator = Depends(get_coordinator),
) -> StowResultSchema:
    result = await coordinator.stow(pallet_id, body.package_ids, body.stowed_at)
    return StowResultSchema.from_domain(result)


@router.get("/{pallet_id}", response_model=PalletSchema)
async def get_pallet(pallet_id: str, store: EntityStore = Depends(get_store)) -> PalletSchema:
    pallet = await store.get_pallet(pallet_id)
    if pallet is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pallet not found")
    packages = await store.list_pallet_packages(pallet_id)
    return PalletSchema.from_domain(PalletSnapshot.from_pallet(pallet, packages))
