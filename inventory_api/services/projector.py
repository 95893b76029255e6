"""
Quantity projection: how a single movement changes an item's on-hand quantity.

Everything here is pure. The adjustment service calls these functions inside
its transaction; reconciliation calls `replay` over a whole item history.
"""
from typing import Iterable, Tuple
from uuid import UUID

from inventory_api.core.exceptions import InsufficientStockError, ValidationError
from inventory_api.models.item import ItemStatus
from inventory_api.models.movement import MovementRecord, MovementType

OUTBOUND_TYPES = frozenset({MovementType.OUT, MovementType.TRANSFER})


def parse_movement_type(value) -> MovementType:
    if isinstance(value, MovementType):
        return value
    try:
        return MovementType(str(value).upper())
    except ValueError:
        allowed = ", ".join(t.value for t in MovementType)
        raise ValidationError("type", f"Movement type must be one of: {allowed}", value)


def validate_quantity(movement_type: MovementType, quantity) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity", "Quantity must be an integer", quantity)

    if movement_type is MovementType.ADJUSTMENT:
        if quantity < 0:
            raise ValidationError("quantity", "Adjusted quantity cannot be negative", quantity)
    elif quantity <= 0:
        raise ValidationError("quantity", "Quantity must be greater than 0", quantity)
    return quantity


def check_available(item_id: UUID, current: int, movement_type: MovementType, quantity: int) -> None:
    if movement_type in OUTBOUND_TYPES and quantity > current:
        raise InsufficientStockError(item_id, available=current, requested=quantity)


def project(current: int, movement_type: MovementType, quantity: int, item_id: UUID = None) -> int:
    """Return the quantity after applying one movement; never negative."""
    validate_quantity(movement_type, quantity)

    match movement_type:
        case MovementType.IN | MovementType.RETURN:
            return current + quantity
        case MovementType.OUT | MovementType.TRANSFER:
            check_available(item_id, current, movement_type, quantity)
            return current - quantity
        case MovementType.ADJUSTMENT:
            return quantity
        case _:
            raise ValidationError("type", f"Unsupported movement type: {movement_type}", movement_type)


def derive_status(quantity: int) -> ItemStatus:
    # Low stock is a read-time query, never a persisted status.
    return ItemStatus.OUT_OF_STOCK if quantity == 0 else ItemStatus.ACTIVE


def project_with_status(current: int, movement_type: MovementType, quantity: int,
                        item_id: UUID = None) -> Tuple[int, ItemStatus]:
    new_quantity = project(current, movement_type, quantity, item_id)
    return new_quantity, derive_status(new_quantity)


def replay(initial_quantity: int, movements: Iterable[MovementRecord]) -> int:
    """Fold a commit-ordered history back into the on-hand quantity."""
    quantity = initial_quantity
    for movement in movements:
        quantity = project(quantity, movement.type, movement.quantity, movement.item_id)
    return quantity
