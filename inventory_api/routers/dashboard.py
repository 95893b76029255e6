from fastapi import APIRouter, Depends, Query
from typing import List

from inventory_api.dependencies.auth import get_current_active_user, get_manager_user
from inventory_api.dependencies.services import get_ledger
from inventory_api.models.user import User
from inventory_api.routers.common import unwrap_result
from inventory_api.schemas.dashboard import DashboardStats, InventoryReportRow
from inventory_api.schemas.movement import MonthlyMovementTotals
from inventory_api.services import dashboard
from inventory_api.services.ledger import MovementLedger

router = APIRouter()


@router.get("/stats", response_model=DashboardStats, summary="Headline Figures")
async def get_dashboard_stats(
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return await dashboard.dashboard_stats(ledger)


@router.get(
    "/inventory-report",
    response_model=List[InventoryReportRow],
    summary="Per-item Stock Report",
    description="One row per active item with its stock level, low-stock flag and lifetime in/out totals."
)
async def get_inventory_report(
    manager: User = Depends(get_manager_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return await dashboard.inventory_report(ledger)


@router.get("/monthly-movements", response_model=List[MonthlyMovementTotals])
async def get_monthly_movements(
    months: int = Query(12, ge=1, le=120),
    user: User = Depends(get_current_active_user),
    ledger: MovementLedger = Depends(get_ledger),
):
    return unwrap_result(await ledger.monthly_totals(months))
