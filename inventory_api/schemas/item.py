from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from inventory_api.models.item import Dimensions, ItemStatus
from inventory_api.schemas.common import PaginationInfo


class ItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=64)
    barcode: Optional[str] = None
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    cost: float = Field(..., ge=0)
    min_quantity: int = Field(default=0, ge=0)
    max_quantity: Optional[int] = Field(default=None, ge=0)
    unit: str = "pcs"
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[Dimensions] = None
    category_id: UUID
    supplier_id: Optional[UUID] = None
    location: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_thresholds(self):
        if self.max_quantity is not None and self.max_quantity < self.min_quantity:
            raise ValueError("max_quantity cannot be lower than min_quantity")
        return self


# Input: the opening stock level is only accepted here
class ItemCreate(ItemBase):
    quantity: int = Field(default=0, ge=0, description="Opening stock level")


# Input: quantity is deliberately absent, stock changes go through movements
class ItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    sku: Optional[str] = Field(default=None, min_length=1, max_length=64)
    barcode: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    min_quantity: Optional[int] = Field(default=None, ge=0)
    max_quantity: Optional[int] = Field(default=None, ge=0)
    unit: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[Dimensions] = None
    category_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[ItemStatus] = None
    is_active: Optional[bool] = None


class ItemResponse(ItemBase):
    id: UUID
    quantity: int
    initial_quantity: int
    status: ItemStatus
    is_active: bool
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ItemPage(BaseModel):
    items: List[ItemResponse]
    pagination: PaginationInfo


class InventoryValue(BaseModel):
    total_value: float
