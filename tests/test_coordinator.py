import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from warehouse_flow.enterprise.core import ErrorCode, PackageStatus, TransitionOutcome
from warehouse_flow.services import TransitionCoordinator

RECEIVED_AT = datetime(2024, 6, 3, 7, 0, tzinfo=timezone.utc)
LATER = datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_induct_then_stow_scenario(store):
    coordinator = TransitionCoordinator(store, max_conflict_retries=1)

    first = await coordinator.induct("PKG-001", "WH-001", RECEIVED_AT)
    assert first.success
    assert first.outcome is TransitionOutcome.APPLIED
    assert first.package.status is PackageStatus.INDUCTED
    assert first.package.warehouse_id == "WH-001"
    assert first.package.inducted_at == RECEIVED_AT
    assert first.package.version == 1

    second = await coordinator.induct("PKG-001", "WH-001", LATER)
    assert second.success
    assert second.outcome is TransitionOutcome.UNCHANGED
    assert second.package.inducted_at == RECEIVED_AT
    assert second.package.version == 1

    stowed = await coordinator.stow("PLT-001", ["PKG-001"])
    assert stowed.success
    assert stowed.pallet.id == "PLT-001"
    assert [(p.id, p.status, p.pallet_id) for p in stowed.pallet.packages] == [
        ("PKG-001", PackageStatus.STOWED, "PLT-001")
    ]


@pytest.mark.asyncio
async def test_induct_defaults_received_at_to_clock(store):
    coordinator = TransitionCoordinator(store, clock=lambda: RECEIVED_AT)

    result = await coordinator.induct("PKG-002", "WH-001")

    assert result.package.inducted_at == RECEIVED_AT
    assert store.packages["PKG-002"].inducted_at == RECEIVED_AT


@pytest.mark.asyncio
@pytest.mark.parametrize("package_id", ["PKG-STOWED", "PKG-PICKED"])
async def test_induct_rejects_packages_past_inducted(store, package_id):
    coordinator = TransitionCoordinator(store)
    before = store.packages[package_id].model_copy()

    result = await coordinator.induct(package_id, "WH-001")

    assert not result.success
    assert result.errors[0].code is ErrorCode.INVALID_STATE
    assert result.message
    assert store.packages[package_id] == before


@pytest.mark.asyncio
async def test_induct_unknown_ids_are_not_found(store):
    coordinator = TransitionCoordinator(store)

    missing_package = await coordinator.induct("PKG-404", "WH-001")
    assert not missing_package.success
    assert [(e.field, e.code) for e in missing_package.errors] == [("packageId", ErrorCode.NOT_FOUND)]
    assert missing_package.package is None

    missing_warehouse = await coordinator.induct("PKG-001", "WH-404")
    assert [(e.field, e.code) for e in missing_warehouse.errors] == [("warehouseId", ErrorCode.NOT_FOUND)]
    assert store.packages["PKG-001"].status is PackageStatus.PENDING


@pytest.mark.asyncio
async def test_induct_validates_required_ids(store):
    coordinator = TransitionCoordinator(store)

    result = await coordinator.induct("", "  ")

    assert not result.success
    assert {e.field for e in result.errors} == {"packageId", "warehouseId"}
    assert all(e.code is ErrorCode.VALIDATION_FAILED for e in result.errors)


@pytest.mark.asyncio
async def test_concurrent_inducts_apply_exactly_once(store):
    coordinator = TransitionCoordinator(store, max_conflict_retries=1)

    results = await asyncio.gather(
        coordinator.induct("PKG-001", "WH-001", RECEIVED_AT),
        coordinator.induct("PKG-001", "WH-001", LATER),
    )

    assert all(result.success for result in results)
    outcomes = sorted(result.outcome.value for result in results)
    assert outcomes == [TransitionOutcome.APPLIED.value, TransitionOutcome.UNCHANGED.value]
    assert store.packages["PKG-001"].version == 1


@pytest.mark.asyncio
async def test_induct_retries_once_after_lost_race(racing_store):
    store = racing_store({"PKG-001": 1})
    coordinator = TransitionCoordinator(store, max_conflict_retries=1)

    result = await coordinator.induct("PKG-001", "WH-001", RECEIVED_AT)

    assert result.success
    assert store.cas_calls["PKG-001"] == 2
    # one bump from the competing writer, one from ours
    assert store.packages["PKG-001"].version == 2


@pytest.mark.asyncio
async def test_induct_surfaces_conflict_when_retry_also_loses(racing_store):
    store = racing_store({"PKG-001": 5})
    coordinator = TransitionCoordinator(store, max_conflict_retries=1)

    result = await coordinator.induct("PKG-001", "WH-001", RECEIVED_AT)

    assert not result.success
    assert result.errors[0].code is ErrorCode.CONFLICT
    assert store.cas_calls["PKG-001"] == 2
    assert store.packages["PKG-001"].status is PackageStatus.PENDING


@pytest.mark.asyncio
async def test_retry_bound_is_configurable(racing_store):
    store = racing_store({"PKG-001": 1})
    coordinator = TransitionCoordinator(store, max_conflict_retries=0)

    result = await coordinator.induct("PKG-001", "WH-001", RECEIVED_AT)

    assert result.errors[0].code is ErrorCode.CONFLICT
    assert store.cas_calls["PKG-001"] == 1


def test_negative_retry_bound_is_refused(store):
    with pytest.raises(ValueError):
        TransitionCoordinator(store, max_conflict_retries=-1)


@pytest.mark.asyncio
async def test_stow_sets_pallet_and_bumps_version(store):
    coordinator = TransitionCoordinator(store)
    old_version = store.packages["PKG-INDUCTED"].version

    result = await coordinator.stow("PLT-NEW", ["PKG-INDUCTED"], stowed_at=LATER)

    assert result.success
    assert result.outcome is TransitionOutcome.APPLIED
    package = store.packages["PKG-INDUCTED"]
    assert package.status is PackageStatus.STOWED
    assert package.pallet_id == "PLT-NEW"
    assert package.stowed_at == LATER
    assert package.version == old_version + 1
    assert "PLT-NEW" in store.pallets


@pytest.mark.asyncio
async def test_stow_same_pallet_again_is_noop(store):
    coordinator = TransitionCoordinator(store)
    before = store.packages["PKG-STOWED"].version

    result = await coordinator.stow("PLT-OTHER", ["PKG-STOWED"])

    assert result.success
    assert result.outcome is TransitionOutcome.UNCHANGED
    assert store.packages["PKG-STOWED"].version == before


@pytest.mark.asyncio
async def test_stow_onto_different_pallet_conflicts(store):
    coordinator = TransitionCoordinator(store)

    result = await coordinator.stow("PLT-NEW", ["PKG-STOWED"])

    assert not result.success
    assert result.errors[0].code is ErrorCode.CONFLICT
    assert store.packages["PKG-STOWED"].pallet_id == "PLT-OTHER"


@pytest.mark.asyncio
async def test_stow_validates_all_before_writing_any(store):
    coordinator = TransitionCoordinator(store)
    versions = {pid: pkg.version for pid, pkg in store.packages.items()}

    result = await coordinator.stow(
        "PLT-NEW", ["PKG-INDUCTED", "PKG-001", "PKG-INDUCTED-2", "PKG-404"]
    )

    assert not result.success
    assert result.outcome is TransitionOutcome.REJECTED
    assert [e.code for e in result.errors] == [ErrorCode.INVALID_STATE, ErrorCode.NOT_FOUND]
    assert {pid: pkg.version for pid, pkg in store.packages.items()} == versions
    assert store.packages["PKG-INDUCTED"].status is PackageStatus.INDUCTED
    assert result.pallet.packages == []


@pytest.mark.asyncio
async def test_stow_collapses_duplicate_ids(store):
    coordinator = TransitionCoordinator(store)

    result = await coordinator.stow("PLT-NEW", ["PKG-INDUCTED", "PKG-INDUCTED"])

    assert result.success
    assert store.packages["PKG-INDUCTED"].version == 2
    assert len(result.pallet.packages) == 1


@pytest.mark.asyncio
async def test_stow_validation_failures(store):
    coordinator = TransitionCoordinator(store)

    empty = await coordinator.stow("PLT-NEW", [])
    assert not empty.success
    assert empty.errors[0].code is ErrorCode.VALIDATION_FAILED
    assert "PLT-NEW" not in store.pallets

    blank = await coordinator.stow("", ["PKG-INDUCTED", ""])
    assert [e.field for e in blank.errors] == ["palletId", "packageIds[1]"]


@pytest.mark.asyncio
async def test_stow_partial_failure_after_lost_races(racing_store):
    store = racing_store({"PKG-INDUCTED-2": 2})
    store.packages["PKG-INDUCTED-3"] = store.packages["PKG-INDUCTED"].model_copy(update={"id": "PKG-INDUCTED-3"})
    coordinator = TransitionCoordinator(store, max_conflict_retries=1)

    result = await coordinator.stow("PLT-NEW", ["PKG-INDUCTED", "PKG-INDUCTED-2", "PKG-INDUCTED-3"])

    assert not result.success
    assert result.outcome is TransitionOutcome.PARTIAL
    assert [e.code for e in result.errors] == [ErrorCode.CONFLICT, ErrorCode.NOT_APPLIED]
    assert "PKG-INDUCTED-3" in result.errors[1].message
    assert store.packages["PKG-INDUCTED"].status is PackageStatus.STOWED
    assert store.packages["PKG-INDUCTED-2"].status is PackageStatus.INDUCTED
    assert store.packages["PKG-INDUCTED-3"].status is PackageStatus.INDUCTED
    assert "PKG-INDUCTED-3" not in store.cas_calls
    assert [p.id for p in result.pallet.packages] == ["PKG-INDUCTED"]


@pytest.mark.asyncio
async def test_naive_and_aware_stows_share_a_pallet(store):
    coordinator = TransitionCoordinator(store)

    naive = await coordinator.stow("PLT-NEW", ["PKG-INDUCTED"], stowed_at=datetime(2024, 6, 3, 7, 0))
    aware = await coordinator.stow("PLT-NEW", ["PKG-INDUCTED-2"])

    assert naive.success and aware.success
    assert store.packages["PKG-INDUCTED"].stowed_at == RECEIVED_AT
    assert store.packages["PKG-INDUCTED"].stowed_at.tzinfo is timezone.utc
    assert [p.id for p in aware.pallet.packages] == ["PKG-INDUCTED", "PKG-INDUCTED-2"]


@pytest.mark.asyncio
async def test_induct_stores_received_at_in_utc(store):
    coordinator = TransitionCoordinator(store)
    local = datetime(2024, 6, 3, 9, 0, tzinfo=timezone(timedelta(hours=2)))

    result = await coordinator.induct("PKG-001", "WH-001", local)

    assert result.package.inducted_at == RECEIVED_AT
    assert result.package.inducted_at.tzinfo is timezone.utc
