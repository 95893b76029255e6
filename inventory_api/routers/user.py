from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional
from uuid import UUID

from inventory_api.core.security import get_password_hash
from inventory_api.core.timeutil import utc_now
from inventory_api.dependencies.auth import get_admin_user
from inventory_api.dependencies.pagination import page_params
from inventory_api.models.movement import Movement
from inventory_api.models.user import User, UserRole, UserStatus
from inventory_api.routers.common import search_filter
from inventory_api.schemas.common import Message, PaginationInfo
from inventory_api.schemas.user import UserCreate, UserPage, UserResponse, UserStats, UserUpdate
from inventory_api.store.base import PageParams

router = APIRouter()

# Every route here is admin only


# ---------------------------------------------------------
# 1. LIST USERS
# ---------------------------------------------------------
@router.get("/", response_model=UserPage)
async def list_users(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    params: PageParams = Depends(page_params),
    admin: User = Depends(get_admin_user),
):
    query = User.find_all()
    if role:
        query = query.find(User.role == role)
    if search:
        query = query.find(search_filter(search, "username", "email", "first_name", "last_name"))

    total = await query.count()
    order = -User.created_at if params.descending else +User.created_at
    users = await query.sort(order).skip(params.skip).limit(params.limit).to_list()
    return UserPage(users=users, pagination=PaginationInfo.build(params.page, params.limit, total))


@router.get("/active", response_model=List[UserResponse])
async def get_active_users(admin: User = Depends(get_admin_user)):
    return await User.find(
        User.is_active == True,  # noqa: E712
        User.status == UserStatus.ACTIVE,
    ).sort(+User.username).to_list()


@router.get("/stats", response_model=UserStats)
async def get_user_stats(admin: User = Depends(get_admin_user)):
    by_role = {}
    for role in UserRole:
        by_role[role] = await User.find(User.role == role).count()
    return UserStats(
        total_users=await User.find_all().count(),
        active_users=await User.find(User.is_active == True).count(),  # noqa: E712
        by_role=by_role,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, admin: User = Depends(get_admin_user)):
    user = await User.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ---------------------------------------------------------
# 2. CREATE USER
# ---------------------------------------------------------
@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(user_data: UserCreate, admin: User = Depends(get_admin_user)):
    if await User.find_one(User.username == user_data.username):
        raise HTTPException(status_code=400, detail="Username already exists")
    if await User.find_one(User.email == user_data.email):
        raise HTTPException(status_code=400, detail=f"User with email {user_data.email} already exists.")

    new_user = User(
        **user_data.model_dump(exclude={"password"}),
        hashed_password=get_password_hash(user_data.password),
    )
    await new_user.insert()
    return new_user


# ---------------------------------------------------------
# 3. UPDATE USER
# ---------------------------------------------------------
@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    update_data: UserUpdate,
    admin: User = Depends(get_admin_user)
):
    """Update profile, role or status. Status drives the is_active flag."""
    user = await User.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    data_dict = update_data.model_dump(exclude_unset=True)

    if data_dict.get("username") and data_dict["username"] != user.username:
        if await User.find_one(User.username == data_dict["username"]):
            raise HTTPException(status_code=400, detail="Username already exists")
    if data_dict.get("email") and data_dict["email"] != user.email:
        if await User.find_one(User.email == data_dict["email"]):
            raise HTTPException(status_code=400, detail="Email already in use")

    # Prevent an admin from locking themselves out
    if user.id == admin.id:
        if data_dict.get("role") not in (None, UserRole.ADMIN):
            raise HTTPException(status_code=400, detail="You cannot demote yourself.")
        if data_dict.get("status") not in (None, UserStatus.ACTIVE):
            raise HTTPException(status_code=400, detail="You cannot deactivate your own account.")

    if "status" in data_dict:
        data_dict["is_active"] = data_dict["status"] == UserStatus.ACTIVE
    data_dict["updated_at"] = utc_now()

    await user.update({"$set": data_dict})
    return await User.get(user_id)


# ---------------------------------------------------------
# 4. DELETE USER
# ---------------------------------------------------------
@router.delete("/{user_id}", response_model=Message)
async def delete_user(user_id: UUID, admin: User = Depends(get_admin_user)):
    user = await User.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account.")

    # Ledger entries keep pointing at their author
    if await Movement.find(Movement.user_id == user_id).count() > 0:
        raise HTTPException(
            status_code=400,
            detail="User has recorded movements. Set the status to INACTIVE instead."
        )

    await user.delete()
    return Message(message="User deleted successfully")
