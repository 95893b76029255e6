from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from inventory_api.core.exceptions import NotFoundError, ValidationError
from inventory_api.models.movement import MovementRecord, MovementType
from inventory_api.store.base import PageParams


async def _record_many(service, item_id, count):
    for n in range(count):
        result = await service.record_movement(item_id, "IN", 1, reason=f"delivery {n}")
        assert result.ok


async def test_find_by_id(service, ledger, make_item):
    item = make_item(5)
    created = (await service.record_movement(item.id, "IN", 2, reference="PO-1")).unwrap()

    found = await ledger.find_by_id(created.id)
    assert found.ok
    assert found.value.reference == "PO-1"
    assert found.value.item.sku == item.sku

    missing = await ledger.find_by_id(uuid4())
    assert isinstance(missing.error, NotFoundError)


async def test_pagination(service, ledger, make_item):
    item = make_item(0)
    await _record_many(service, item.id, 25)

    last_page = (await ledger.find_by_item(item.id, PageParams(page=3, limit=10))).unwrap()

    assert len(last_page.movements) == 5
    info = last_page.pagination
    assert (info.total, info.total_pages) == (25, 3)
    assert info.has_prev and not info.has_next


async def test_newest_first_by_default(service, ledger, make_item):
    item = make_item(0)
    await _record_many(service, item.id, 3)

    page = (await ledger.find_all(PageParams())).unwrap()
    assert [m.quantity_after for m in page.movements] == [3, 2, 1]

    oldest_first = (await ledger.find_all(PageParams(sort_order="asc"))).unwrap()
    assert [m.quantity_after for m in oldest_first.movements] == [1, 2, 3]


@pytest.mark.parametrize("params", [PageParams(page=0), PageParams(limit=0), PageParams(limit=500)])
async def test_bad_page_params(ledger, params):
    result = await ledger.find_all(params)
    assert isinstance(result.error, ValidationError)


async def test_find_by_item_unknown(ledger):
    result = await ledger.find_by_item(uuid4(), PageParams())
    assert isinstance(result.error, NotFoundError)


async def test_search_matches_reason_reference_and_notes(service, ledger, make_item):
    item = make_item(50)
    await service.record_movement(item.id, "IN", 5, reason="Weekly Delivery")
    await service.record_movement(item.id, "OUT", 5, reference="INV-2231")
    await service.adjust_inventory(item.id, 40, "Shrinkage")

    assert (await ledger.find_all(PageParams(), search="delivery")).unwrap().pagination.total == 1
    assert (await ledger.find_all(PageParams(), search="inv-22")).unwrap().pagination.total == 1
    assert (await ledger.find_all(PageParams(), search="adjustment from")).unwrap().pagination.total == 1
    assert (await ledger.find_all(PageParams(), search="nothing")).unwrap().movements == []


async def test_find_by_type(service, ledger, make_item):
    item = make_item(50)
    await service.record_movement(item.id, "IN", 5)
    await service.record_movement(item.id, "OUT", 3)
    await service.record_movement(item.id, "OUT", 2)

    page = (await ledger.find_by_type("out", PageParams())).unwrap()
    assert page.pagination.total == 2
    assert {m.type for m in page.movements} == {MovementType.OUT}

    assert isinstance((await ledger.find_by_type("LOSS", PageParams())).error, ValidationError)


async def test_find_by_date_range(service, ledger, make_item):
    item = make_item(10)
    await service.record_movement(item.id, "IN", 1)

    now = datetime.now(timezone.utc)
    hit = await ledger.find_by_date_range(now - timedelta(minutes=5), now + timedelta(minutes=5), PageParams())
    assert hit.unwrap().pagination.total == 1

    miss = await ledger.find_by_date_range(now - timedelta(days=2), now - timedelta(days=1), PageParams())
    assert miss.unwrap().pagination.total == 0

    backwards = await ledger.find_by_date_range(now, now - timedelta(days=1), PageParams())
    assert isinstance(backwards.error, ValidationError)


async def test_recent(service, ledger, make_item):
    item = make_item(0)
    await _record_many(service, item.id, 4)

    recent = (await ledger.recent(2)).unwrap()
    assert [m.quantity_after for m in recent] == [4, 3]
    assert isinstance((await ledger.recent(0)).error, ValidationError)


async def test_aggregate(service, ledger, make_item):
    first = make_item(100)
    second = make_item(100)
    await service.record_movement(first.id, "IN", 10)
    await service.record_movement(first.id, "OUT", 4)
    await service.record_movement(first.id, "TRANSFER", 6)
    await service.record_movement(second.id, "RETURN", 2)
    await service.adjust_inventory(second.id, 90, "Count")

    per_item = (await ledger.aggregate(first.id)).unwrap()
    assert (per_item.total_in, per_item.total_out, per_item.total_transfers) == (10, 4, 6)
    assert per_item.total_returns == 0

    overall = (await ledger.aggregate()).unwrap()
    assert overall.total_returns == 2
    assert overall.total_adjustments == 90

    assert isinstance((await ledger.aggregate(uuid4())).error, NotFoundError)


async def test_reconcile_detects_drift(store, service, ledger, make_item):
    item = make_item(100)
    await service.record_movement(item.id, "OUT", 30)
    await service.record_movement(item.id, "IN", 5)
    await service.adjust_inventory(item.id, 60, "Count")
    await service.record_movement(item.id, "OUT", 10)

    report = (await ledger.reconcile(item.id)).unwrap()
    assert report.consistent
    assert (report.movement_count, report.replayed_quantity, report.stored_quantity) == (4, 50, 50)

    # someone edits the row behind the ledger's back
    store.items[item.id] = store.items[item.id].model_copy(update={"quantity": 999})
    drifted = (await ledger.reconcile(item.id)).unwrap()
    assert not drifted.consistent
    assert drifted.replayed_quantity == 50


async def test_history_is_in_commit_order(service, ledger, make_item):
    item = make_item(10)
    await service.record_movement(item.id, "OUT", 5)
    await service.record_movement(item.id, "IN", 1)

    history = await ledger.history(item.id)
    assert [m.item_version for m in history] == [1, 2]
    assert [(m.quantity_before, m.quantity_after) for m in history] == [(10, 5), (5, 6)]


def _at(item_id, when, movement_type, quantity, version):
    return MovementRecord(
        item_id=item_id,
        type=movement_type,
        quantity=quantity,
        quantity_before=0,
        quantity_after=0,
        item_version=version,
        created_at=when,
    )


async def test_monthly_totals(store, ledger):
    item_id = uuid4()
    store.movements.extend([
        _at(item_id, datetime(2025, 12, 20), MovementType.IN, 99, 1),
        _at(item_id, datetime(2026, 1, 5), MovementType.IN, 10, 2),
        _at(item_id, datetime(2026, 1, 20), MovementType.OUT, 3, 3),
        _at(item_id, datetime(2026, 3, 1), MovementType.IN, 5, 4),
        _at(item_id, datetime(2026, 3, 20), MovementType.IN, 7, 5),
    ])

    months = (await ledger.monthly_totals(2, now=datetime(2026, 3, 15))).unwrap()

    assert [m.month for m in months] == ["2026-01", "2026-03"]
    assert months[0].totals[MovementType.IN] == 10
    assert months[0].totals[MovementType.OUT] == 3
    assert months[1].totals[MovementType.IN] == 5
    assert isinstance((await ledger.monthly_totals(0)).error, ValidationError)


async def test_reconcile_reports_a_history_that_cannot_replay(store, service, ledger, make_item):
    item = make_item(3)
    await service.record_movement(item.id, "OUT", 3)
    # opening stock lost: the OUT can no longer be explained
    store.items[item.id] = store.items[item.id].model_copy(update={"initial_quantity": 0})

    result = await ledger.reconcile(item.id)

    assert result.ok
    report = result.value
    assert not report.consistent
    assert report.replayed_quantity is None
    assert report.replay_error == "Insufficient stock. Available: 0, Requested: 3"
    assert report.stored_quantity == 0
