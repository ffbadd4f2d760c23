"""Package lifecycle state machine.

Pure decision logic: given what the store currently holds and the
transition a caller asks for, return ACCEPT, NOOP or REJECT. Nothing here
performs I/O, so every rule can be exercised without a store.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .models import Package, PackageStatus, Warehouse
from .results import ErrorCode, FieldError

# Each status has at most one legal successor; the workflow never branches.
NEXT_STATUS: Dict[PackageStatus, Optional[PackageStatus]] = {
    PackageStatus.PENDING: PackageStatus.INDUCTED,
    PackageStatus.INDUCTED: PackageStatus.STOWED,
    PackageStatus.STOWED: PackageStatus.STAGED,
    PackageStatus.STAGED: PackageStatus.PICKED,
    PackageStatus.PICKED: None,
}

PALLET_BOUND_STATUSES = frozenset(
    {PackageStatus.STOWED, PackageStatus.STAGED, PackageStatus.PICKED}
)


class DecisionKind(str, enum.Enum):
    ACCEPT = "ACCEPT"
    NOOP = "NOOP"
    REJECT = "REJECT"


@dataclass(frozen=True)
class Decision:
    """Verdict for one requested transition."""

    kind: DecisionKind
    target: Optional[PackageStatus] = None
    errors: Tuple[FieldError, ...] = ()

    @classmethod
    def accept(cls, target: PackageStatus) -> "Decision":
        return cls(kind=DecisionKind.ACCEPT, target=target)

    @classmethod
    def noop(cls, target: PackageStatus) -> "Decision":
        return cls(kind=DecisionKind.NOOP, target=target)

    @classmethod
    def reject(cls, *errors: FieldError) -> "Decision":
        return cls(kind=DecisionKind.REJECT, errors=tuple(errors))

    @property
    def accepted(self) -> bool:
        return self.kind is DecisionKind.ACCEPT

    @property
    def rejected(self) -> bool:
        return self.kind is DecisionKind.REJECT


def can_advance(current: PackageStatus, target: PackageStatus) -> bool:
    """Return ``True`` if ``target`` is the immediate successor of ``current``."""

    return NEXT_STATUS.get(current) is target


def _advance(package: Package, target: PackageStatus, field: str) -> Decision:
    if package.status is target:
        return Decision.noop(target)
    if can_advance(package.status, target):
        return Decision.accept(target)
    return Decision.reject(
        FieldError(
            field=field,
            message=(
                f"Package {package.id} is {package.status.value}; "
                f"cannot move to {target.value}"
            ),
            code=ErrorCode.INVALID_STATE,
        )
    )


def decide_induct(
    package: Optional[Package],
    warehouse: Optional[Warehouse],
    package_id: str,
    warehouse_id: str,
) -> Decision:
    """Decide PENDING -> INDUCTED for one package.

    An already inducted package is a no-op and keeps its original
    ``inducted_at``; anything further along the workflow is rejected.
    """

    missing = []
    if package is None:
        missing.append(
            FieldError(
                field="packageId",
                message=f"Package {package_id} not found",
                code=ErrorCode.NOT_FOUND,
            )
        )
    if warehouse is None:
        missing.append(
            FieldError(
                field="warehouseId",
                message=f"Warehouse {warehouse_id} not found",
                code=ErrorCode.NOT_FOUND,
            )
        )
    if missing:
        return Decision.reject(*missing)

    assert package is not None
    return _advance(package, PackageStatus.INDUCTED, field="packageId")


def decide_stow(package: Optional[Package], package_id: str, pallet_id: str) -> Decision:
    """Decide INDUCTED -> STOWED onto ``pallet_id`` for one package.

    Re-stowing onto the same pallet is a no-op. A package already on a
    different pallet is a conflict; moving between pallets is not supported.
    """

    if package is None:
        return Decision.reject(
            FieldError(
                field="packageIds",
                message=f"Package {package_id} not found",
                code=ErrorCode.NOT_FOUND,
            )
        )

    if package.status is PackageStatus.STOWED:
        if package.pallet_id == pallet_id:
            return Decision.noop(PackageStatus.STOWED)
        return Decision.reject(
            FieldError(
                field="packageIds",
                message=(
                    f"Package {package.id} is already stowed on pallet "
                    f"{package.pallet_id}"
                ),
                code=ErrorCode.CONFLICT,
            )
        )

    return _advance(package, PackageStatus.STOWED, field="packageIds")
