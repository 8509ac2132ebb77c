"""
Domain exceptions raised by services.

Each exception carries the HTTP status and machine-readable type code used by
the API exception handler to build the standard ErrorResponse envelope.
"""

from __future__ import annotations

from typing import Any, Optional


class WarehouseError(Exception):
    """Base class for expected business-rule failures."""

    status_code: int = 400
    error_type: str = "warehouse_error"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(WarehouseError):
    """Input failed a business validation rule before any write happened."""

    status_code = 422
    error_type = "validation_error"


class NotFoundError(WarehouseError):
    status_code = 404
    error_type = "not_found"


class ConflictError(WarehouseError):
    status_code = 409
    error_type = "conflict"


class DuplicateInventoryError(ConflictError):
    """An inventory row for the same product, location and lot already exists."""

    error_type = "duplicate_inventory"


class InsufficientStockError(WarehouseError):
    status_code = 409
    error_type = "insufficient_stock"

    def __init__(self, product_id: Any, requested: int, available: int, product_name: Optional[str] = None) -> None:
        label = product_name or "product"
        super().__init__(
            f"Insufficient stock for {label}. Only {available} units available.",
            details={"product_id": str(product_id), "requested": requested, "available": available},
        )
        self.requested = requested
        self.available = available


class CapacityExceededError(WarehouseError):
    status_code = 409
    error_type = "capacity_exceeded"

    def __init__(self, location_code: str, capacity: int, existing: int, proposed: int) -> None:
        super().__init__(
            f"Location {location_code} exceeds capacity",
            details={
                "location": location_code,
                "capacity": capacity,
                "existing": existing,
                "proposed": proposed,
            },
        )
        self.location_code = location_code


class CreditLimitExceededError(WarehouseError):
    status_code = 409
    error_type = "credit_limit_exceeded"


class InvalidTransitionError(WarehouseError):
    status_code = 409
    error_type = "invalid_transition"

    def __init__(self, kind: str, current: str, target: str) -> None:
        super().__init__(
            f"Cannot change {kind} from '{current}' to '{target}'",
            details={"kind": kind, "current": current, "target": target},
        )


class ConcurrentStockUpdateError(WarehouseError):
    """A conditional stock update matched no row because another writer got there first."""

    status_code = 409
    error_type = "concurrent_update"
