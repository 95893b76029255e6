from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from inventory_api.core.exceptions import InventoryError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a caller-facing inventory operation.

    Expected business conditions (not found, validation, insufficient stock)
    come back as ``Result.failure``; only infrastructure problems are raised.
    """
    value: Optional[T] = None
    error: Optional[InventoryError] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, message: Optional[str] = None) -> "Result[T]":
        return cls(value=value, message=message)

    @classmethod
    def failure(cls, error: InventoryError) -> "Result[T]":
        return cls(error=error, message=error.message)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value
