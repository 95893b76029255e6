from typing import Any, Dict, Optional
from uuid import UUID


class InventoryError(Exception):
    """Base class for every failure the inventory core can report."""

    code = "INVENTORY_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def detail(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


# ==========================================
# BUSINESS FAILURES (returned as results)
# ==========================================

class NotFoundError(InventoryError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id

    def detail(self) -> Dict[str, Any]:
        return {**super().detail(), "resource": self.resource, "id": str(self.resource_id)}


class ValidationError(InventoryError):
    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value

    def detail(self) -> Dict[str, Any]:
        return {**super().detail(), "field": self.field, "value": self.value}


class InsufficientStockError(InventoryError):
    code = "INSUFFICIENT_STOCK"
    status_code = 400

    def __init__(self, item_id: UUID, available: int, requested: int):
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}"
        )
        self.item_id = item_id
        self.available = available
        self.requested = requested

    def detail(self) -> Dict[str, Any]:
        return {**super().detail(), "available": self.available, "requested": self.requested}


# ==========================================
# INFRASTRUCTURE FAILURES (raised)
# ==========================================

class StorageError(InventoryError):
    code = "STORAGE_ERROR"
    status_code = 503

    def __init__(self, message: str = "Storage operation failed", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class StorageTimeoutError(StorageError):
    code = "STORAGE_TIMEOUT"
    status_code = 504


class ConflictError(StorageError):
    """Optimistic version check lost against a concurrent writer."""

    code = "CONFLICT"
    status_code = 409


BUSINESS_ERRORS = (NotFoundError, ValidationError, InsufficientStockError)
