from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional
from slugify import slugify
from uuid import UUID

from inventory_api.core.timeutil import utc_now
from inventory_api.dependencies.auth import get_current_active_user, get_manager_user
from inventory_api.dependencies.pagination import page_params
from inventory_api.models.category import Category
from inventory_api.models.item import Item
from inventory_api.models.user import User
from inventory_api.routers.common import search_filter
from inventory_api.schemas.category import CategoryCreate, CategoryPage, CategoryResponse, CategoryUpdate
from inventory_api.schemas.common import Message, PaginationInfo
from inventory_api.schemas.dashboard import CategoryCount
from inventory_api.schemas.item import ItemPage
from inventory_api.services import dashboard
from inventory_api.store.base import PageParams

router = APIRouter()


async def _to_response(category: Category) -> CategoryResponse:
    item_count = await Item.find(Item.category_id == category.id).count()
    return CategoryResponse(**category.model_dump(), item_count=item_count)


# ==========================================
# 🔒 MANAGER ENDPOINTS (Create, Update, Delete)
# ==========================================

@router.post(
    "/",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a New Category",
    description="Creates a new item category. Auto-generates a slug from the name."
)
async def create_category(
    category_data: CategoryCreate,
    manager: User = Depends(get_manager_user)
):
    if await Category.find_one(Category.name == category_data.name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category with this name already exists"
        )

    slug = slugify(category_data.name)

    # "Soft Drinks" and "soft-drinks" collide on the slug only
    if await Category.find_one(Category.slug == slug):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category slug already exists"
        )

    new_category = Category(
        name=category_data.name,
        description=category_data.description,
        slug=slug
    )
    await new_category.insert()
    return await _to_response(new_category)


@router.put("/{category_id}", response_model=CategoryResponse, summary="Update Category")
async def update_category(
    category_id: UUID,
    update_data: CategoryUpdate,
    manager: User = Depends(get_manager_user)
):
    category = await Category.get(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    data_dict = update_data.model_dump(exclude_unset=True)

    if data_dict.get("name") and data_dict["name"] != category.name:
        if await Category.find_one(Category.name == data_dict["name"]):
            raise HTTPException(400, "Category with this name already exists")
        # keep the slug in step with the name
        data_dict["slug"] = slugify(data_dict["name"])
        clash = await Category.find_one(Category.slug == data_dict["slug"])
        if clash and clash.id != category.id:
            raise HTTPException(400, "Category slug already exists")

    data_dict["updated_at"] = utc_now()
    await category.update({"$set": data_dict})
    return await _to_response(await Category.get(category_id))


@router.delete("/{category_id}", response_model=Message, summary="Delete Category")
async def delete_category(
    category_id: UUID,
    manager: User = Depends(get_manager_user)
):
    category = await Category.get(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    items_using_category = await Item.find(Item.category_id == category_id).count()
    if items_using_category > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete category with existing items ({items_using_category}). Reassign or delete them first."
        )

    await category.delete()
    return Message(message="Category deleted successfully")


# ==========================================
# 🌍 READ ENDPOINTS (Any logged-in user)
# ==========================================

@router.get("/", response_model=CategoryPage, summary="List Categories")
async def get_categories(
    search: Optional[str] = None,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
):
    query = Category.find_all()
    if search:
        query = query.find(search_filter(search, "name", "description"))

    total = await query.count()
    order = -Category.created_at if params.descending else +Category.created_at
    categories = await query.sort(order).skip(params.skip).limit(params.limit).to_list()
    return CategoryPage(
        categories=[await _to_response(c) for c in categories],
        pagination=PaginationInfo.build(params.page, params.limit, total),
    )


@router.get("/list", response_model=List[CategoryResponse], summary="All Categories (unpaginated)")
async def get_all_categories(user: User = Depends(get_current_active_user)):
    categories = await Category.find_all().sort(+Category.name).to_list()
    return [await _to_response(c) for c in categories]


@router.get("/stats", response_model=List[CategoryCount])
async def get_category_stats(user: User = Depends(get_current_active_user)):
    return await dashboard.category_counts()


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: UUID, user: User = Depends(get_current_active_user)):
    category = await Category.get(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return await _to_response(category)


@router.get("/{category_id}/items", response_model=ItemPage)
async def get_category_items(
    category_id: UUID,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
):
    if not await Category.get(category_id):
        raise HTTPException(status_code=404, detail="Category not found")

    query = Item.find(Item.category_id == category_id)
    total = await query.count()
    items = await query.sort(+Item.name).skip(params.skip).limit(params.limit).to_list()
    return ItemPage(items=items, pagination=PaginationInfo.build(params.page, params.limit, total))
