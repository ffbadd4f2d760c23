"""Exceptions raised for infrastructure faults.

Business-rule failures are never raised; see
:mod:`warehouse_flow.enterprise.core.results`.
"""

from __future__ import annotations


class WarehouseFlowError(Exception):
    """Base class for errors raised by the service."""


class EntityStoreError(WarehouseFlowError):
    """The entity store could not complete a read or write."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation}: {detail}")


class CorruptRecordError(EntityStoreError):
    """A stored row violates a package invariant and cannot be trusted."""
