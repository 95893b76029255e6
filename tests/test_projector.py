from uuid import uuid4

import pytest

from inventory_api.core.exceptions import InsufficientStockError, ValidationError
from inventory_api.models.item import ItemStatus
from inventory_api.models.movement import MovementRecord, MovementType
from inventory_api.services.projector import (
    derive_status,
    parse_movement_type,
    project,
    project_with_status,
    replay,
    validate_quantity,
)


@pytest.mark.parametrize(
    "movement_type, current, quantity, expected",
    [
        (MovementType.IN, 100, 50, 150),
        (MovementType.RETURN, 0, 3, 3),
        (MovementType.OUT, 100, 100, 0),
        (MovementType.TRANSFER, 10, 4, 6),
        (MovementType.ADJUSTMENT, 100, 7, 7),
        (MovementType.ADJUSTMENT, 5, 0, 0),
        (MovementType.ADJUSTMENT, 0, 40, 40),
    ],
)
def test_project_table(movement_type, current, quantity, expected):
    assert project(current, movement_type, quantity) == expected


@pytest.mark.parametrize("movement_type", [MovementType.OUT, MovementType.TRANSFER])
def test_outbound_cannot_exceed_stock(movement_type):
    item_id = uuid4()
    with pytest.raises(InsufficientStockError) as exc_info:
        project(100, movement_type, 150, item_id)

    err = exc_info.value
    assert err.available == 100
    assert err.requested == 150
    assert err.item_id == item_id
    assert err.message == "Insufficient stock. Available: 100, Requested: 150"


@pytest.mark.parametrize("movement_type", [MovementType.IN, MovementType.OUT, MovementType.RETURN, MovementType.TRANSFER])
def test_relative_movements_need_positive_quantity(movement_type):
    with pytest.raises(ValidationError):
        validate_quantity(movement_type, 0)
    with pytest.raises(ValidationError):
        validate_quantity(movement_type, -5)


def test_adjustment_rejects_negative_target():
    with pytest.raises(ValidationError) as exc_info:
        validate_quantity(MovementType.ADJUSTMENT, -1)
    assert exc_info.value.field == "quantity"


@pytest.mark.parametrize("bad", [2.5, "10", None, True])
def test_quantity_must_be_an_integer(bad):
    with pytest.raises(ValidationError):
        validate_quantity(MovementType.IN, bad)


def test_parse_movement_type():
    assert parse_movement_type("out") is MovementType.OUT
    assert parse_movement_type(MovementType.RETURN) is MovementType.RETURN
    with pytest.raises(ValidationError) as exc_info:
        parse_movement_type("LOSS")
    assert "ADJUSTMENT" in exc_info.value.message


def test_status_follows_quantity_only():
    assert derive_status(0) is ItemStatus.OUT_OF_STOCK
    assert derive_status(1) is ItemStatus.ACTIVE
    assert project_with_status(100, MovementType.OUT, 100) == (0, ItemStatus.OUT_OF_STOCK)
    assert project_with_status(0, MovementType.IN, 5) == (5, ItemStatus.ACTIVE)


def _movement(item_id, movement_type, quantity, version):
    return MovementRecord(
        item_id=item_id,
        type=movement_type,
        quantity=quantity,
        quantity_before=0,
        quantity_after=0,
        item_version=version,
    )


def test_replay_folds_history():
    item_id = uuid4()
    history = [
        _movement(item_id, MovementType.IN, 50, 1),
        _movement(item_id, MovementType.OUT, 30, 2),
        _movement(item_id, MovementType.ADJUSTMENT, 12, 3),
        _movement(item_id, MovementType.RETURN, 3, 4),
    ]
    assert replay(10, history) == 15
    # same input, same answer
    assert replay(10, history) == replay(10, list(history))
    assert replay(42, []) == 42


def test_replay_refuses_an_impossible_history():
    item_id = uuid4()
    with pytest.raises(InsufficientStockError):
        replay(5, [_movement(item_id, MovementType.OUT, 6, 1)])
