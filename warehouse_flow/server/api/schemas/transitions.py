"""Pydantic schemas for transition API requests and responses.

Responses mirror the engine's result objects field for field; error codes
are passed through untouched.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from warehouse_flow.enterprise.core import (
    BatchInductResult,
    FieldError,
    InductResult,
    Package,
    PalletSnapshot,
    StowResult,
)


class InductRequestSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    package_id: Optional[str] = None
    warehouse_id: Optional[str] = None
    received_at: Optional[datetime] = None


class InductBatchRequestSchema(BaseModel):
    # validated per item by BatchRunner
    items: List[Any] = Field(default_factory=list)


class StowRequestSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    package_ids: List[str] = Field(default_factory=list)
    stowed_at: Optional[datetime] = None


class FieldErrorSchema(BaseModel):
    field: str
    message: str
    code: str

    @classmethod
    def from_domain(cls, error: FieldError) -> "FieldErrorSchema":
        return cls(field=error.field, message=error.message, code=error.code.value)


class PackageSchema(BaseModel):
    id: str
    status: str
    warehouse_id: Optional[str]
    pallet_id: Optional[str]
    inducted_at: Optional[datetime]
    stowed_at: Optional[datetime]
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, package: Package) -> "PackageSchema":
        return cls(
            id=package.id,
            status=package.status.value,
            warehouse_id=package.warehouse_id,
            pallet_id=package.pallet_id,
            inducted_at=package.inducted_at,
            stowed_at=package.stowed_at,
            version=package.version,
            created_at=package.created_at,
            updated_at=package.updated_at,
        )


class PalletSchema(BaseModel):
    id: str
    storage_location_id: Optional[str]
    staged_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    packages: List[PackageSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, pallet: PalletSnapshot) -> "PalletSchema":
        return cls(
            id=pallet.id,
            storage_location_id=pallet.storage_location_id,
            staged_at=pallet.staged_at,
            created_at=pallet.created_at,
            updated_at=pallet.updated_at,
            packages=[PackageSchema.from_domain(pkg) for pkg in pallet.packages],
        )


class InductResultSchema(BaseModel):
    success: bool
    message: str
    outcome: str
    package: Optional[PackageSchema] = None
    errors: List[FieldErrorSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: InductResult) -> "InductResultSchema":
        return cls(
            success=result.success,
            message=result.message,
            outcome=result.outcome.value,
            package=PackageSchema.from_domain(result.package) if result.package else None,
            errors=[FieldErrorSchema.from_domain(error) for error in result.errors],
        )


class BatchInductResultSchema(BaseModel):
    success_count: int
    failure_count: int
    results: List[InductResultSchema]

    @classmethod
    def from_domain(cls, batch: BatchInductResult) -> "BatchInductResultSchema":
        return cls(
            success_count=batch.success_count,
            failure_count=batch.failure_count,
            results=[InductResultSchema.from_domain(result) for result in batch.results],
        )


class StowResultSchema(BaseModel):
    success: bool
    message: str
    outcome: str
    pallet: Optional[PalletSchema] = None
    errors: List[FieldErrorSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: StowResult) -> "StowResultSchema":
        return cls(
            success=result.success,
            message=result.message,
            outcome=result.outcome.value,
            pallet=PalletSchema.from_domain(result.pallet) if result.pallet else None,
            errors=[FieldErrorSchema.from_domain(error) for error in result.errors],
        )


class HealthCheckSchema(BaseModel):
    status: str
    message: Optional[str] = None


class ReadinessSchema(BaseModel):
    status: str
    checks: Dict[str, HealthCheckSchema]
