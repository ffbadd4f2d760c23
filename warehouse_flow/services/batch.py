"""Batch induct: independent per-item outcomes over an ordered input list."""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Union

import structlog
from pydantic import ValidationError

from warehouse_flow.enterprise.core import (
    BatchInductResult,
    ErrorCode,
    FieldError,
    InductRequest,
    InductResult,
    TransitionOutcome,
)

from .coordinator import TransitionCoordinator

logger = structlog.get_logger(__name__)

BatchItem = Union[InductRequest, Mapping[str, Any]]


def _invalid_item(exc: ValidationError) -> InductResult:
    errors = [
        FieldError(
            field=".".join(str(part) for part in error["loc"]) or "item",
            message=error["msg"],
            code=ErrorCode.VALIDATION_FAILED,
        )
        for error in exc.errors()
    ]
    return InductResult(
        success=False,
        message="Invalid induct request: " + "; ".join(e.message for e in errors),
        errors=errors,
        outcome=TransitionOutcome.REJECTED,
    )


class BatchRunner:
    """Runs the induct contract once per item, in input order.

    Items never share a failure: a malformed or rejected item is reported in
    its own slot and the rest of the batch carries on. This is deliberately
    not validate-all-then-write-all.
    """

    def __init__(self, coordinator: TransitionCoordinator) -> None:
        self.coordinator = coordinator

    async def induct_batch(self, items: Sequence[BatchItem]) -> BatchInductResult:
        results: List[InductResult] = []
        for item in items:
            try:
                request = item if isinstance(item, InductRequest) else InductRequest.model_validate(item)
            except ValidationError as exc:
                results.append(_invalid_item(exc))
                continue
            results.append(
                await self.coordinator.induct(
                    request.package_id,
                    request.warehouse_id,
                    request.received_at,
                )
            )

        success_count = sum(1 for result in results if result.success)
        failure_count = len(results) - success_count
        logger.info(
            "induct_batch_finished",
            items=len(results),
            success_count=success_count,
            failure_count=failure_count,
        )
        return BatchInductResult(
            success_count=success_count,
            failure_count=failure_count,
            results=results,
        )
