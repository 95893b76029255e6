from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional
from uuid import UUID

from inventory_api.core.timeutil import utc_now
from inventory_api.dependencies.auth import get_current_active_user, get_manager_user, get_operator_user
from inventory_api.dependencies.pagination import page_params
from inventory_api.dependencies.services import get_adjustment_service, get_ledger
from inventory_api.models.category import Category
from inventory_api.models.item import Item, ItemStatus
from inventory_api.models.movement import Movement
from inventory_api.models.supplier import Supplier
from inventory_api.models.user import User
from inventory_api.routers.common import search_filter, unwrap_result
from inventory_api.schemas.common import Message, PaginationInfo
from inventory_api.schemas.item import InventoryValue, ItemCreate, ItemPage, ItemResponse, ItemUpdate
from inventory_api.schemas.movement import InventoryAdjust, MovementPage, MovementResponse, ReconcileReport
from inventory_api.services import dashboard
from inventory_api.services.adjustment import AdjustmentService
from inventory_api.services.ledger import MovementLedger
from inventory_api.services.projector import derive_status
from inventory_api.store.base import PageParams

router = APIRouter()


async def _check_links(category_id: Optional[UUID], supplier_id: Optional[UUID]) -> None:
    if category_id and not await Category.get(category_id):
        raise HTTPException(404, "Category not found")
    if supplier_id and not await Supplier.get(supplier_id):
        raise HTTPException(404, "Supplier not found")


# ==========================================
# 🌍 READ ACTIONS (Any logged-in user)
# ==========================================

@router.get("/", response_model=ItemPage)
async def get_items(
    search: Optional[str] = None,
    category_id: Optional[UUID] = None,
    supplier_id: Optional[UUID] = None,
    item_status: Optional[ItemStatus] = None,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
):
    query = Item.find_all()

    if category_id:
        query = query.find(Item.category_id == category_id)
    if supplier_id:
        query = query.find(Item.supplier_id == supplier_id)
    if item_status:
        query = query.find(Item.status == item_status)
    if search:
        query = query.find(search_filter(search, "name", "sku", "barcode", "description"))

    total = await query.count()
    order = -Item.created_at if params.descending else +Item.created_at
    items = await query.sort(order).skip(params.skip).limit(params.limit).to_list()
    return ItemPage(items=items, pagination=PaginationInfo.build(params.page, params.limit, total))


@router.get("/low-stock", response_model=List[ItemResponse])
async def get_low_stock_items(user: User = Depends(get_current_active_user)):
    """Items at or below their min_quantity. Computed on read, never stored as a status."""
    return await dashboard.low_stock_items()


@router.get("/out-of-stock", response_model=List[ItemResponse])
async def get_out_of_stock_items(user: User = Depends(get_current_active_user)):
    return await dashboard.out_of_stock_items()


@router.get("/total-value", response_model=InventoryValue)
async def get_total_inventory_value(user: User = Depends(get_current_active_user)):
    return InventoryValue(total_value=await dashboard.total_inventory_value())


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: UUID, user: User = Depends(get_current_active_user)):
    item = await Item.get(item_id)
    if not item:
        raise HTTPException(404, "Item not found")
    return item


# ==========================================
# 🔒 CATALOGUE ACTIONS (Admin + Manager)
# ==========================================

@router.post("/", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    manager: User = Depends(get_manager_user)
):
    # Check Duplicates
    if await Item.find_one(Item.sku == item_data.sku):
        raise HTTPException(400, "Item with this SKU already exists")
    if item_data.barcode and await Item.find_one(Item.barcode == item_data.barcode):
        raise HTTPException(400, "Item with this barcode already exists")

    await _check_links(item_data.category_id, item_data.supplier_id)

    new_item = Item(
        **item_data.model_dump(exclude={"quantity"}),
        quantity=item_data.quantity,
        initial_quantity=item_data.quantity,
        status=derive_status(item_data.quantity),
    )
    await new_item.insert()
    return new_item


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: UUID,
    update_data: ItemUpdate,
    manager: User = Depends(get_manager_user)
):
    item = await Item.get(item_id)
    if not item:
        raise HTTPException(404, "Item not found")

    data_dict = update_data.model_dump(exclude_unset=True)

    if data_dict.get("sku") and data_dict["sku"] != item.sku:
        if await Item.find_one(Item.sku == data_dict["sku"]):
            raise HTTPException(400, "Item with this SKU already exists")
    if data_dict.get("barcode") and data_dict["barcode"] != item.barcode:
        if await Item.find_one(Item.barcode == data_dict["barcode"]):
            raise HTTPException(400, "Item with this barcode already exists")

    await _check_links(data_dict.get("category_id"), data_dict.get("supplier_id"))

    min_quantity = data_dict.get("min_quantity", item.min_quantity)
    max_quantity = data_dict.get("max_quantity", item.max_quantity)
    if max_quantity is not None and max_quantity < min_quantity:
        raise HTTPException(422, "max_quantity cannot be lower than min_quantity")

    stock_statuses = (ItemStatus.ACTIVE, ItemStatus.OUT_OF_STOCK)
    if data_dict.get("status") in stock_statuses and data_dict["status"] != derive_status(item.quantity):
        raise HTTPException(422, f"Status {data_dict['status'].value} does not match quantity {item.quantity}")

    data_dict["updated_at"] = utc_now()

    # quantity/status/version stay with the adjustment service; only touch
    # the row if nobody moved stock since we read it
    result = await Item.find_one(Item.id == item_id, Item.version == item.version).update(
        {"$set": data_dict}
    )
    if result is None or result.modified_count == 0:
        raise HTTPException(409, "Item changed while updating, please retry")
    return await Item.get(item_id)


@router.delete("/{item_id}", response_model=Message)
async def delete_item(
    item_id: UUID,
    manager: User = Depends(get_manager_user)
):
    item = await Item.get(item_id)
    if not item:
        raise HTTPException(404, "Item not found")

    # The ledger is append-only: an item with history cannot disappear from under it
    movements = await Movement.find(Movement.item_id == item_id).count()
    if movements > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete item with {movements} recorded movements. Set it INACTIVE or DISCONTINUED instead."
        )

    await item.delete()
    return Message(message="Item deleted successfully")


# ==========================================
# 📦 STOCK ACTIONS (go through the ledger)
# ==========================================

@router.get("/{item_id}/movements", response_model=MovementPage)
async def get_item_movements(
    item_id: UUID,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return unwrap_result(await ledger.find_by_item(item_id, params))


@router.get("/{item_id}/reconcile", response_model=ReconcileReport)
async def reconcile_item(
    item_id: UUID,
    manager: User = Depends(get_manager_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    """Replays the item's ledger and compares it to the stored quantity."""
    return unwrap_result(await ledger.reconcile(item_id))


@router.post("/{item_id}/adjust", response_model=MovementResponse, status_code=status.HTTP_201_CREATED)
async def adjust_item_inventory(
    item_id: UUID,
    data: InventoryAdjust,
    current_user: User = Depends(get_operator_user),
    service: AdjustmentService = Depends(get_adjustment_service),
):
    result = await service.adjust_inventory(item_id, data.quantity, data.reason, user_id=current_user.id)
    return unwrap_result(result)
