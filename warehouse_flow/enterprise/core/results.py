"""Structured outcomes returned by the transition engine.

Business-rule failures never raise; they come back as one of these result
objects so a batch can report every item independently.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Package, PalletSnapshot


class ErrorCode(str, enum.Enum):
    """Error kinds shared by every transition operation."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    CONFLICT = "CONFLICT"
    # Stow write pass aborted before this package was written.
    NOT_APPLIED = "NOT_APPLIED"


class TransitionOutcome(str, enum.Enum):
    """How an operation ended, beyond the plain success flag."""

    APPLIED = "APPLIED"
    UNCHANGED = "UNCHANGED"
    REJECTED = "REJECTED"
    PARTIAL = "PARTIAL"


class FieldError(BaseModel):
    field: str
    message: str
    code: ErrorCode


class InductRequest(BaseModel):
    """One induct input. Ids are validated by the coordinator, not here."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    package_id: str
    warehouse_id: str
    received_at: Optional[datetime] = None


class InductResult(BaseModel):
    success: bool
    message: str
    package: Optional[Package] = None
    errors: List[FieldError] = Field(default_factory=list)
    outcome: TransitionOutcome


class StowResult(BaseModel):
    success: bool
    message: str
    pallet: Optional[PalletSnapshot] = None
    errors: List[FieldError] = Field(default_factory=list)
    outcome: TransitionOutcome


class BatchInductResult(BaseModel):
    success_count: int
    failure_count: int
    results: List[InductResult] = Field(default_factory=list)
