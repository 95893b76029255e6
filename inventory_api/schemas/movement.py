from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from uuid import UUID
from datetime import datetime

from inventory_api.models.item import ItemStatus
from inventory_api.models.movement import MovementType
from inventory_api.models.user import UserRef
from inventory_api.schemas.common import PaginationInfo


# ==========================================
# REQUEST SCHEMAS
# ==========================================

class MovementCreate(BaseModel):
    """Record a stock movement. ADJUSTMENT quantities are absolute targets."""
    item_id: UUID
    type: MovementType
    quantity: int = Field(..., ge=0, description="Units moved, or the new on-hand quantity for ADJUSTMENT")
    reason: Optional[str] = Field(default=None, max_length=255)
    reference: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)


class InventoryAdjust(BaseModel):
    quantity: int = Field(..., ge=0, description="New on-hand quantity")
    reason: str = Field(..., min_length=1, max_length=255)


# ==========================================
# RESPONSE SCHEMAS
# ==========================================

class ItemSummary(BaseModel):
    id: UUID
    name: str
    sku: str
    quantity: int
    status: ItemStatus


class MovementResponse(BaseModel):
    id: UUID
    item_id: UUID
    item: Optional[ItemSummary] = None
    type: MovementType
    quantity: int
    quantity_before: int
    quantity_after: int
    reason: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    user: Optional[UserRef] = None
    created_at: datetime


class MovementPage(BaseModel):
    movements: List[MovementResponse]
    pagination: PaginationInfo


class MovementStats(BaseModel):
    total_in: int = 0
    total_out: int = 0
    total_adjustments: int = 0
    total_transfers: int = 0
    total_returns: int = 0


class ReconcileReport(BaseModel):
    """Stored quantity versus the quantity rebuilt from the ledger."""
    item_id: UUID
    initial_quantity: int
    movement_count: int
    stored_quantity: int
    replayed_quantity: Optional[int] = None  # None when the history does not replay
    consistent: bool
    replay_error: Optional[str] = None


class MonthlyMovementTotals(BaseModel):
    month: str  # YYYY-MM
    totals: Dict[MovementType, int]
