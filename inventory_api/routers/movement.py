from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from inventory_api.core.config import settings
from inventory_api.dependencies.auth import get_current_active_user, get_operator_user
from inventory_api.dependencies.pagination import page_params
from inventory_api.dependencies.services import get_adjustment_service, get_ledger
from inventory_api.models.movement import MovementType
from inventory_api.models.user import User
from inventory_api.routers.common import unwrap_result
from inventory_api.schemas.movement import MovementCreate, MovementPage, MovementResponse, MovementStats
from inventory_api.services.adjustment import AdjustmentService
from inventory_api.services.ledger import MovementLedger
from inventory_api.store.base import PageParams

router = APIRouter()

# ==========================================
# 📦 RECORD A MOVEMENT (Admin, Manager, User)
# ==========================================

@router.post(
    "/",
    response_model=MovementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a Stock Movement",
    description="Appends a movement to the ledger and applies it to the item's quantity in one transaction."
)
async def create_movement(
    data: MovementCreate,
    current_user: User = Depends(get_operator_user),
    service: AdjustmentService = Depends(get_adjustment_service),
):
    """
    - **IN / RETURN** add to stock.
    - **OUT / TRANSFER** remove stock; refused when more than is available.
    - **ADJUSTMENT** sets the on-hand quantity to exactly `quantity`.
    """
    result = await service.record_movement(
        data.item_id,
        data.type,
        data.quantity,
        reason=data.reason,
        reference=data.reference,
        notes=data.notes,
        user_id=current_user.id,
    )
    return unwrap_result(result)


# ==========================================
# 🌍 LEDGER QUERIES (Any logged-in user)
# ==========================================

@router.get("/", response_model=MovementPage)
async def get_movements(
    search: Optional[str] = None,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return unwrap_result(await ledger.find_all(params, search=search))


@router.get("/recent", response_model=List[MovementResponse])
async def get_recent_movements(
    limit: int = Query(10, ge=1, le=settings.MAX_PAGE_SIZE),
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return unwrap_result(await ledger.recent(limit))


@router.get("/stats", response_model=MovementStats)
async def get_movement_stats(
    item_id: Optional[UUID] = None,
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return unwrap_result(await ledger.aggregate(item_id))


@router.get("/type/{movement_type}", response_model=MovementPage)
async def get_movements_by_type(
    movement_type: MovementType,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return unwrap_result(await ledger.find_by_type(movement_type, params))


@router.get("/date-range", response_model=MovementPage)
async def get_movements_by_date_range(
    start_date: datetime,
    end_date: datetime,
    params: PageParams = Depends(page_params),
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return unwrap_result(await ledger.find_by_date_range(start_date, end_date, params))


@router.get("/{movement_id}", response_model=MovementResponse)
async def get_movement(
    movement_id: UUID,
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return unwrap_result(await ledger.find_by_id(movement_id))
