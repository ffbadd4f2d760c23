"""Transition coordinator: one logical induct or stow against the entity store.

The coordinator loads entities, asks the state machine for a verdict and
applies version-guarded writes. A write that loses a version race is
re-read and re-decided up to ``max_conflict_retries`` times before the
operation reports ``CONFLICT``; it never retries indefinitely.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

import structlog

from warehouse_flow.enterprise.config.settings import AppSettings, get_settings
from warehouse_flow.enterprise.core import (
    Decision,
    ErrorCode,
    FieldError,
    InductResult,
    Package,
    PackagePatch,
    PackageStatus,
    Pallet,
    PalletSnapshot,
    StowResult,
    TransitionOutcome,
    as_utc,
    decide_induct,
    decide_stow,
    utcnow,
)
from warehouse_flow.observability.metrics import record_transition, record_version_conflict
from warehouse_flow.observability.tracing import get_tracer
from warehouse_flow.persistence.base import EntityStore

logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

Clock = Callable[[], datetime]


@dataclass
class GuardedWrite:
    """What happened to one package inside the guarded write loop."""

    decision: Decision
    package: Optional[Package]
    applied: bool = False


def _required(value: Optional[str], field: str) -> List[FieldError]:
    if value is None or not str(value).strip():
        return [
            FieldError(
                field=field,
                message=f"{field} is required",
                code=ErrorCode.VALIDATION_FAILED,
            )
        ]
    return []


def _summary(errors: Sequence[FieldError]) -> str:
    return "; ".join(error.message for error in errors)


class TransitionCoordinator:
    """Executes induct and stow with optimistic concurrency control."""

    def __init__(
        self,
        store: EntityStore,
        settings: Optional[AppSettings] = None,
        max_conflict_retries: Optional[int] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        if max_conflict_retries is None:
            max_conflict_retries = self.settings.transitions.max_conflict_retries
        if max_conflict_retries < 0:
            raise ValueError("max_conflict_retries must be >= 0")
        self.max_conflict_retries = max_conflict_retries
        self._clock = clock

    async def _guarded_write(
        self,
        operation: str,
        package_id: str,
        decide: Callable[[Optional[Package]], Decision],
        build_patch: Callable[[Package], PackagePatch],
        field: str,
        package: Optional[Package] = None,
    ) -> GuardedWrite:
        """Read, decide and compare-and-set one package with bounded retry.

        ``package`` may carry an already loaded snapshot for the first
        attempt; every retry re-reads from the store.
        """

        if package is None:
            package = await self.store.get_package(package_id)

        for attempt in range(self.max_conflict_retries + 1):
            if attempt:
                package = await self.store.get_package(package_id)
            decision = decide(package)
            if not decision.accepted:
                return GuardedWrite(decision=decision, package=package)

            assert package is not None
            patch = build_patch(package)
            if await self.store.compare_and_set_package(package_id, package.version, patch):
                written = package.model_copy(
                    update={**patch.changes(), "version": package.version + 1}
                )
                return GuardedWrite(decision=decision, package=written, applied=True)

            record_version_conflict(operation)
            logger.warning(
                "version_conflict",
                operation=operation,
                package_id=package_id,
                expected_version=package.version,
                attempt=attempt + 1,
            )

        conflict = Decision.reject(
            FieldError(
                field=field,
                message=(
                    f"Package {package_id} was modified concurrently "
                    f"{self.max_conflict_retries + 1} time(s); not updated"
                ),
                code=ErrorCode.CONFLICT,
            )
        )
        return GuardedWrite(decision=conflict, package=package)

    async def induct(
        self,
        package_id: str,
        warehouse_id: str,
        received_at: Optional[datetime] = None,
    ) -> InductResult:
        """Move a package from PENDING to INDUCTED in ``warehouse_id``.

        Inducting an already inducted package succeeds without writing and
        keeps the original ``inducted_at``.
        """

        started = time.perf_counter()
        with tracer.start_as_current_span("induct") as span:
            span.set_attribute("package.id", str(package_id))
            result = await self._induct(package_id, warehouse_id, received_at)
            span.set_attribute("transition.outcome", result.outcome.value)
        record_transition("induct", result.outcome.value, time.perf_counter() - started)
        return result

    async def _induct(
        self,
        package_id: str,
        warehouse_id: str,
        received_at: Optional[datetime],
    ) -> InductResult:
        errors = _required(package_id, "packageId") + _required(warehouse_id, "warehouseId")
        if errors:
            logger.info("induct_rejected", package_id=package_id, codes=[e.code.value for e in errors])
            return InductResult(
                success=False,
                message=f"Invalid induct request: {_summary(errors)}",
                errors=errors,
                outcome=TransitionOutcome.REJECTED,
            )

        warehouse = await self.store.get_warehouse(warehouse_id)
        inducted_at = as_utc(received_at or self._clock())

        def build_patch(package: Package) -> PackagePatch:
            return PackagePatch(
                status=PackageStatus.INDUCTED,
                warehouse_id=warehouse_id,
                inducted_at=inducted_at,
                updated_at=as_utc(self._clock()),
            )

        write = await self._guarded_write(
            "induct",
            package_id,
            decide=lambda package: decide_induct(package, warehouse, package_id, warehouse_id),
            build_patch=build_patch,
            field="packageId",
        )

        if write.applied:
            logger.info(
                "package_inducted",
                package_id=package_id,
                warehouse_id=warehouse_id,
                version=write.package.version if write.package else None,
            )
            return InductResult(
                success=True,
                message=f"Package {package_id} inducted into warehouse {warehouse_id}",
                package=write.package,
                outcome=TransitionOutcome.APPLIED,
            )

        if not write.decision.rejected:
            logger.info("induct_noop", package_id=package_id)
            return InductResult(
                success=True,
                message=f"Package {package_id} was already inducted",
                package=write.package,
                outcome=TransitionOutcome.UNCHANGED,
            )

        errors = list(write.decision.errors)
        logger.info("induct_rejected", package_id=package_id, codes=[e.code.value for e in errors])
        return InductResult(
            success=False,
            message=f"Induct failed: {_summary(errors)}",
            package=write.package,
            errors=errors,
            outcome=TransitionOutcome.REJECTED,
        )

    async def stow(
        self,
        pallet_id: str,
        package_ids: Sequence[str],
        stowed_at: Optional[datetime] = None,
    ) -> StowResult:
        """Stow every package in ``package_ids`` onto ``pallet_id`` as one unit.

        All packages are validated before any is written. A single rejection
        fails the whole set with nothing mutated. If a write later loses its
        version race past the retry bound, the remaining writes are abandoned
        and reported as ``NOT_APPLIED``.
        """

        started = time.perf_counter()
        with tracer.start_as_current_span("stow") as span:
            span.set_attribute("pallet.id", str(pallet_id))
            result = await self._stow(pallet_id, package_ids, stowed_at)
            span.set_attribute("transition.outcome", result.outcome.value)
        record_transition("stow", result.outcome.value, time.perf_counter() - started)
        return result

    async def _stow(
        self,
        pallet_id: str,
        package_ids: Sequence[str],
        stowed_at: Optional[datetime],
    ) -> StowResult:
        errors = _required(pallet_id, "palletId")
        if not package_ids:
            errors.append(
                FieldError(
                    field="packageIds",
                    message="packageIds must contain at least one package id",
                    code=ErrorCode.VALIDATION_FAILED,
                )
            )
        else:
            for index, package_id in enumerate(package_ids):
                errors.extend(_required(package_id, f"packageIds[{index}]"))
        if errors:
            logger.info("stow_rejected", pallet_id=pallet_id, codes=[e.code.value for e in errors])
            return StowResult(
                success=False,
                message=f"Invalid stow request: {_summary(errors)}",
                errors=errors,
                outcome=TransitionOutcome.REJECTED,
            )

        unique_ids = list(dict.fromkeys(package_ids))
        pallet = await self.store.get_or_create_pallet(pallet_id)

        pending: List[Package] = []
        rejections: List[FieldError] = []
        for package_id in unique_ids:
            package = await self.store.get_package(package_id)
            decision = decide_stow(package, package_id, pallet_id)
            if decision.rejected:
                rejections.extend(decision.errors)
            elif decision.accepted:
                assert package is not None
                pending.append(package)

        if rejections:
            logger.info(
                "stow_rejected",
                pallet_id=pallet_id,
                rejected=len(rejections),
                requested=len(unique_ids),
            )
            return StowResult(
                success=False,
                message=(
                    f"Stow onto pallet {pallet_id} rejected: "
                    f"{len(rejections)} of {len(unique_ids)} package(s) failed validation"
                ),
                pallet=await self._snapshot(pallet),
                errors=rejections,
                outcome=TransitionOutcome.REJECTED,
            )

        stamp = as_utc(stowed_at or self._clock())

        def build_patch(package: Package) -> PackagePatch:
            return PackagePatch(
                status=PackageStatus.STOWED,
                pallet_id=pallet_id,
                stowed_at=stamp,
                updated_at=as_utc(self._clock()),
            )

        written = 0
        for index, package in enumerate(pending):
            write = await self._guarded_write(
                "stow",
                package.id,
                decide=lambda current, package_id=package.id: decide_stow(current, package_id, pallet_id),
                build_patch=build_patch,
                field="packageIds",
                package=package,
            )
            if write.applied:
                written += 1
                continue
            if not write.decision.rejected:
                # a concurrent stow put it on this pallet already
                continue

            # Validation passed earlier, so any rejection now is a lost race.
            errors = [
                FieldError(field=error.field, message=error.message, code=ErrorCode.CONFLICT)
                for error in write.decision.errors
            ]
            errors.extend(
                FieldError(
                    field="packageIds",
                    message=f"Package {skipped.id} not stowed: write pass aborted after conflict on {package.id}",
                    code=ErrorCode.NOT_APPLIED,
                )
                for skipped in pending[index + 1 :]
            )
            logger.warning(
                "stow_partial",
                pallet_id=pallet_id,
                conflicted=package.id,
                written=written,
                not_applied=len(pending) - index - 1,
            )
            return StowResult(
                success=False,
                message=(
                    f"Stow onto pallet {pallet_id} partially applied: "
                    f"{written} of {len(pending)} package(s) written before a conflict on {package.id}"
                ),
                pallet=await self._snapshot(pallet),
                errors=errors,
                outcome=TransitionOutcome.PARTIAL,
            )

        logger.info("stow_applied", pallet_id=pallet_id, written=written, requested=len(unique_ids))
        if written:
            message = f"Stowed {written} package(s) onto pallet {pallet_id}"
            outcome = TransitionOutcome.APPLIED
        else:
            message = f"All packages already stowed on pallet {pallet_id}"
            outcome = TransitionOutcome.UNCHANGED
        return StowResult(
            success=True,
            message=message,
            pallet=await self._snapshot(pallet),
            outcome=outcome,
        )

    async def _snapshot(self, pallet: Pallet) -> PalletSnapshot:
        packages = await self.store.list_pallet_packages(pallet.id)
        return PalletSnapshot.from_pallet(pallet, packages)
