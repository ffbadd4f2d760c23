"""Core domain package for the warehouse flow service."""

from .models import (
    Package,
    PackagePatch,
    PackageStatus,
    Pallet,
    PalletSnapshot,
    StorageLocation,
    Warehouse,
    as_utc,
    utcnow,
)
from .results import (
    BatchInductResult,
    ErrorCode,
    FieldError,
    InductRequest,
    InductResult,
    StowResult,
    TransitionOutcome,
)
from .transitions import Decision, DecisionKind, decide_induct, decide_stow

__all__ = [
    "Package",
    "PackagePatch",
    "PackageStatus",
    "Pallet",
    "PalletSnapshot",
    "StorageLocation",
    "Warehouse",
    "as_utc",
    "utcnow",
    "BatchInductResult",
    "ErrorCode",
    "FieldError",
    "InductRequest",
    "InductResult",
    "StowResult",
    "TransitionOutcome",
    "Decision",
    "DecisionKind",
    "decide_induct",
    "decide_stow",
]
