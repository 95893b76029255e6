"""
Read-only reporting over items and the movement ledger.
Nothing here writes; figures reflect committed transactions only.
"""
from typing import List

from inventory_api.models.category import Category
from inventory_api.models.item import Item
from inventory_api.models.supplier import Supplier
from inventory_api.schemas.dashboard import CategoryCount, DashboardStats, InventoryReportRow
from inventory_api.services.ledger import MovementLedger
from inventory_api.store.base import MovementFilter, PageParams


async def low_stock_items() -> List[Item]:
    # min_quantity is per item, so compare two fields server-side
    return await Item.find(
        Item.is_active == True,  # noqa: E712
        {"$expr": {"$lte": ["$quantity", "$min_quantity"]}},
    ).sort(+Item.quantity).to_list()


async def out_of_stock_items() -> List[Item]:
    return await Item.find(
        Item.is_active == True,  # noqa: E712
        Item.quantity == 0,
    ).sort(+Item.name).to_list()


async def total_inventory_value() -> float:
    rows = await Item.find(Item.is_active == True).aggregate([  # noqa: E712
        {"$group": {"_id": None, "total": {"$sum": {"$multiply": ["$quantity", "$cost"]}}}}
    ]).to_list()
    return round(rows[0]["total"], 2) if rows else 0.0


async def category_counts() -> List[CategoryCount]:
    rows = await Item.find(Item.is_active == True).aggregate([  # noqa: E712
        {"$group": {"_id": "$category_id", "count": {"$sum": 1}}},
        {"$sort": {"count": -1}},
    ]).to_list()
    counts = {row["_id"]: row["count"] for row in rows}

    result = []
    for category in await Category.find_all().to_list():
        result.append(CategoryCount(
            category_id=category.id,
            category=category.name,
            item_count=counts.get(category.id, 0),
        ))
    return sorted(result, key=lambda c: c.item_count, reverse=True)


async def dashboard_stats(ledger: MovementLedger) -> DashboardStats:
    recent = await ledger.recent(10)
    return DashboardStats(
        total_items=await Item.find(Item.is_active == True).count(),  # noqa: E712
        total_categories=await Category.find_all().count(),
        total_suppliers=await Supplier.find(Supplier.is_active == True).count(),  # noqa: E712
        low_stock_items=len(await low_stock_items()),
        out_of_stock_items=len(await out_of_stock_items()),
        total_value=await total_inventory_value(),
        recent_movements=recent.unwrap(),
        top_categories=(await category_counts())[:5],
    )


async def inventory_report(ledger: MovementLedger) -> List[InventoryReportRow]:
    items = await Item.find(Item.is_active == True).sort(+Item.name).to_list()  # noqa: E712
    categories = {c.id: c.name for c in await Category.find_all().to_list()}
    suppliers = {s.id: s.name for s in await Supplier.find_all().to_list()}

    report = []
    for item in items:
        stats = (await ledger.aggregate(item.id)).unwrap()
        last, _ = await ledger.store.find_movements(
            MovementFilter(item_id=item.id), PageParams(page=1, limit=1)
        )
        report.append(InventoryReportRow(
            item_id=item.id,
            item_name=item.name,
            sku=item.sku,
            current_quantity=item.quantity,
            min_quantity=item.min_quantity,
            max_quantity=item.max_quantity,
            status=item.status,
            low_stock=item.is_low_stock,
            last_movement=last[0].created_at if last else None,
            total_in=stats.total_in,
            total_out=stats.total_out,
            category=categories.get(item.category_id),
            supplier=suppliers.get(item.supplier_id) if item.supplier_id else None,
        ))
    return report
