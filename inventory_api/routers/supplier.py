from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional
from uuid import UUID

from inventory_api.core.timeutil import utc_now
from inventory_api.dependencies.auth import get_current_active_user, get_manager_user
from inventory_api.dependencies.pagination import page_params
from inventory_api.models.item import Item
from inventory_api.models.supplier import Supplier, SupplierStatus
from inventory_api.models.user import User
from inventory_api.routers.common import search_filter
from inventory_api.schemas.common import Message, PaginationInfo
from inventory_api.schemas.item import ItemPage
from inventory_api.schemas.supplier import SupplierCreate, SupplierPage, SupplierResponse, SupplierUpdate
from inventory_api.store.base import PageParams

router = APIRouter()


async def _to_response(supplier: Supplier) -> SupplierResponse:
    item_count = await Item.find(Item.supplier_id == supplier.id).count()
    return SupplierResponse(**supplier.model_dump(), item_count=item_count)


# ---------------------------------------------------------
# ➕ CREATE A SUPPLIER
# ---------------------------------------------------------
@router.post("/", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    supplier_data: SupplierCreate,
    manager: User = Depends(get_manager_user)  # Only Managers/Admins
):
    if await Supplier.find_one(Supplier.name == supplier_data.name):
        raise HTTPException(400, "Supplier with this name already exists")

    new_supplier = Supplier(**supplier_data.model_dump())
    await new_supplier.insert()
    return await _to_response(new_supplier)

# ---------------------------------------------------------
# 📜 LIST SUPPLIERS
# ---------------------------------------------------------
@router.get("/", response_model=SupplierPage)
async def get_suppliers(
    search: Optional[str] = None,
    supplier_status: Optional[SupplierStatus] = None,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
):
    query = Supplier.find_all()
    if supplier_status:
        query = query.find(Supplier.status == supplier_status)
    if search:
        query = query.find(search_filter(search, "name", "contact_name", "email", "city", "country"))

    total = await query.count()
    order = -Supplier.created_at if params.descending else +Supplier.created_at
    suppliers = await query.sort(order).skip(params.skip).limit(params.limit).to_list()
    return SupplierPage(
        suppliers=[await _to_response(s) for s in suppliers],
        pagination=PaginationInfo.build(params.page, params.limit, total),
    )


@router.get("/list", response_model=List[SupplierResponse])
async def get_all_suppliers(user: User = Depends(get_current_active_user)):
    suppliers = await Supplier.find_all().sort(+Supplier.name).to_list()
    return [await _to_response(s) for s in suppliers]


@router.get("/active", response_model=List[SupplierResponse])
async def get_active_suppliers(user: User = Depends(get_current_active_user)):
    suppliers = await Supplier.find(
        Supplier.status == SupplierStatus.ACTIVE,
        Supplier.is_active == True,  # noqa: E712
    ).sort(+Supplier.name).to_list()
    return [await _to_response(s) for s in suppliers]

# ---------------------------------------------------------
# 🔍 GET ONE SUPPLIER
# ---------------------------------------------------------
@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: UUID,
    user: User = Depends(get_current_active_user)
):
    supplier = await Supplier.get(supplier_id)
    if not supplier:
        raise HTTPException(404, "Supplier not found")
    return await _to_response(supplier)


@router.get("/{supplier_id}/items", response_model=ItemPage)
async def get_supplier_items(
    supplier_id: UUID,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
):
    if not await Supplier.get(supplier_id):
        raise HTTPException(404, "Supplier not found")

    query = Item.find(Item.supplier_id == supplier_id)
    total = await query.count()
    items = await query.sort(+Item.name).skip(params.skip).limit(params.limit).to_list()
    return ItemPage(items=items, pagination=PaginationInfo.build(params.page, params.limit, total))

# ---------------------------------------------------------
# ✏️ UPDATE SUPPLIER
# ---------------------------------------------------------
@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: UUID,
    update_data: SupplierUpdate,
    manager: User = Depends(get_manager_user)
):
    supplier = await Supplier.get(supplier_id)
    if not supplier:
        raise HTTPException(404, "Supplier not found")

    data_dict = update_data.model_dump(exclude_unset=True)
    if data_dict.get("name") and data_dict["name"] != supplier.name:
        if await Supplier.find_one(Supplier.name == data_dict["name"]):
            raise HTTPException(400, "Supplier with this name already exists")

    # is_active mirrors the trading status
    if "status" in data_dict:
        data_dict["is_active"] = data_dict["status"] == SupplierStatus.ACTIVE
    data_dict["updated_at"] = utc_now()

    await supplier.update({"$set": data_dict})
    return await _to_response(await Supplier.get(supplier_id))

# ---------------------------------------------------------
# 🗑️ DELETE SUPPLIER
# ---------------------------------------------------------
@router.delete("/{supplier_id}", response_model=Message)
async def delete_supplier(
    supplier_id: UUID,
    manager: User = Depends(get_manager_user)
):
    supplier = await Supplier.get(supplier_id)
    if not supplier:
        raise HTTPException(404, "Supplier not found")

    linked = await Item.find(Item.supplier_id == supplier_id).count()
    if linked > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete supplier with existing items ({linked})."
        )

    await supplier.delete()
    return Message(message="Supplier deleted successfully")
