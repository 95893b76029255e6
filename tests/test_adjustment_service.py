from uuid import uuid4

import pytest

from inventory_api.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    StorageError,
    StorageTimeoutError,
    ValidationError,
)
from inventory_api.models.item import ItemStatus
from inventory_api.models.movement import MovementType
from inventory_api.services.adjustment import AdjustmentService
from inventory_api.store.memory import MemoryStore, MemoryTransaction


# ==========================================
# Movement outcomes
# ==========================================

async def test_in_adds_to_stock(store, service, make_item, operator):
    item = make_item(100)

    result = await service.record_movement(item.id, "IN", 50, reason="Restock", user_id=operator.id)

    assert result.ok
    assert result.message == "Movement created successfully"
    view = result.value
    assert (view.quantity_before, view.quantity_after) == (100, 150)
    assert view.item.quantity == 150
    assert view.user.username == "clerk"
    assert store.items[item.id].quantity == 150
    assert store.items[item.id].version == 1
    assert len(store.movements) == 1


async def test_out_to_zero_marks_out_of_stock(store, service, make_item):
    item = make_item(100)

    result = await service.record_movement(item.id, MovementType.OUT, 100)

    assert result.ok
    assert store.items[item.id].quantity == 0
    assert store.items[item.id].status is ItemStatus.OUT_OF_STOCK
    assert result.value.item.status is ItemStatus.OUT_OF_STOCK


async def test_restock_clears_out_of_stock(store, service, make_item):
    item = make_item(0)
    assert item.status is ItemStatus.OUT_OF_STOCK

    await service.record_movement(item.id, "RETURN", 2)

    assert store.items[item.id].status is ItemStatus.ACTIVE


@pytest.mark.parametrize("movement_type", ["OUT", "TRANSFER"])
async def test_outbound_beyond_stock_is_refused(store, service, make_item, movement_type):
    item = make_item(100)

    result = await service.record_movement(item.id, movement_type, 150)

    assert not result.ok
    assert isinstance(result.error, InsufficientStockError)
    assert result.message == "Insufficient stock. Available: 100, Requested: 150"
    assert store.items[item.id].quantity == 100
    assert store.movements == []
    assert store.commits == 0


async def test_low_stock_does_not_change_status(store, service, make_item):
    item = make_item(20, min_quantity=10)

    await service.record_movement(item.id, "OUT", 15)

    updated = store.items[item.id]
    assert updated.quantity == 5
    assert updated.is_low_stock
    assert updated.status is ItemStatus.ACTIVE


async def test_unknown_item_is_not_found(store, service):
    result = await service.record_movement(uuid4(), "IN", 5)

    assert isinstance(result.error, NotFoundError)
    assert result.error.status_code == 404
    assert store.movements == []


@pytest.mark.parametrize(
    "movement_type, quantity",
    [("IN", 0), ("OUT", -3), ("ADJUSTMENT", -1), ("LOSS", 5), ("IN", 2.5)],
)
async def test_invalid_requests_write_nothing(store, service, make_item, movement_type, quantity):
    item = make_item(10)

    result = await service.record_movement(item.id, movement_type, quantity)

    assert isinstance(result.error, ValidationError)
    assert store.items[item.id].quantity == 10
    assert store.movements == []


# ==========================================
# Absolute adjustments
# ==========================================

async def test_adjust_inventory_sets_absolute_quantity(store, service, make_item, operator):
    item = make_item(100)

    result = await service.adjust_inventory(item.id, 7, "Cycle count", user_id=operator.id)

    assert result.ok
    movement = store.movements[0]
    assert movement.type is MovementType.ADJUSTMENT
    assert movement.quantity == 7
    assert movement.reason == "Cycle count"
    assert movement.notes == "Inventory adjustment from 100 to 7"
    assert store.items[item.id].quantity == 7


async def test_adjust_to_zero(store, service, make_item):
    item = make_item(100)

    result = await service.adjust_inventory(item.id, 0, "Damaged")

    assert result.ok
    assert store.items[item.id].quantity == 0
    assert store.items[item.id].status is ItemStatus.OUT_OF_STOCK


async def test_adjust_unknown_item(service):
    result = await service.adjust_inventory(uuid4(), 5, "Count")
    assert isinstance(result.error, NotFoundError)


# ==========================================
# Atomicity
# ==========================================

@pytest.mark.parametrize("fail_on", ["insert_movement", "set_quantity_and_status", "commit"])
async def test_storage_failure_rolls_back_everything(make_item, fail_on):
    store = MemoryStore()
    item = store.add_item(make_item(100).model_copy())
    store.fail_on = {fail_on}
    service = AdjustmentService(store)

    with pytest.raises(StorageError):
        await service.record_movement(item.id, "OUT", 30)

    assert store.items[item.id].quantity == 100
    assert store.items[item.id].version == 0
    assert store.movements == []
    assert store.rollbacks == 1
    assert store.commits == 0


async def test_conflict_is_retried(store, service, make_item, monkeypatch):
    item = make_item(10)
    original = MemoryTransaction.set_quantity_and_status
    calls = []

    async def flaky(self, *args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise ConflictError("lost the race")
        return await original(self, *args, **kwargs)

    monkeypatch.setattr(MemoryTransaction, "set_quantity_and_status", flaky)

    result = await service.record_movement(item.id, "OUT", 4)

    assert result.ok
    assert len(calls) == 2
    assert store.rollbacks == 1
    assert store.commits == 1
    assert store.items[item.id].quantity == 6
    assert len(store.movements) == 1


async def test_retries_are_bounded(store, make_item, monkeypatch):
    item = make_item(10)
    calls = []

    async def always_conflict(self, *args, **kwargs):
        calls.append(args)
        raise ConflictError("lost the race")

    monkeypatch.setattr(MemoryTransaction, "set_quantity_and_status", always_conflict)
    service = AdjustmentService(store, max_retries=3)

    with pytest.raises(ConflictError):
        await service.record_movement(item.id, "IN", 1)

    assert len(calls) == 3
    assert store.rollbacks == 3
    assert store.movements == []
    assert store.items[item.id].quantity == 10


async def test_slow_transaction_times_out(make_item):
    store = MemoryStore(latency=0.05)
    item = store.add_item(make_item(10).model_copy())
    service = AdjustmentService(store, timeout=0.01)

    with pytest.raises(StorageTimeoutError):
        await service.record_movement(item.id, "IN", 5)

    assert store.rollbacks == 1
    assert store.movements == []
    assert store.items[item.id].quantity == 10


async def test_failing_user_lookup_writes_nothing(store, service, make_item, operator):
    item = make_item(10)
    store.fail_on = {"get_user"}

    with pytest.raises(StorageError):
        await service.record_movement(item.id, "OUT", 4, user_id=operator.id)

    # a raised error means the caller can safely retry
    assert store.movements == []
    assert store.commits == 0
    assert store.items[item.id].quantity == 10

    store.fail_on = set()
    retried = await service.record_movement(item.id, "OUT", 4, user_id=operator.id)
    assert retried.ok
    assert store.items[item.id].quantity == 6
    assert len(store.movements) == 1


async def test_response_needs_no_reads_after_commit(store, service, make_item, operator, monkeypatch):
    item = make_item(10)
    original_commit = MemoryTransaction.commit

    def commit_then_break_reads(self):
        original_commit(self)
        store.fail_on = {"get_user", "get_item"}

    monkeypatch.setattr(MemoryTransaction, "commit", commit_then_break_reads)

    result = await service.record_movement(item.id, "IN", 5, user_id=operator.id)

    assert result.ok
    assert result.value.user.username == "clerk"
    assert result.value.item.quantity == 15
