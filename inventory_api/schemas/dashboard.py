from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from inventory_api.models.item import ItemStatus
from inventory_api.schemas.movement import MovementResponse


class CategoryCount(BaseModel):
    category_id: UUID
    category: str
    item_count: int


class DashboardStats(BaseModel):
    total_items: int
    total_categories: int
    total_suppliers: int
    low_stock_items: int
    out_of_stock_items: int
    total_value: float
    recent_movements: List[MovementResponse]
    top_categories: List[CategoryCount]


class InventoryReportRow(BaseModel):
    item_id: UUID
    item_name: str
    sku: str
    current_quantity: int
    min_quantity: int
    max_quantity: Optional[int] = None
    status: ItemStatus
    low_stock: bool
    last_movement: Optional[datetime] = None
    total_in: int
    total_out: int
    category: Optional[str] = None
    supplier: Optional[str] = None
