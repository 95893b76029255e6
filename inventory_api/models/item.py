from beanie import Document
from pydantic import BaseModel, Field
from pymongo import ASCENDING, IndexModel
from typing import Optional
from enum import Enum
from uuid import UUID, uuid4
from datetime import datetime

from inventory_api.core.timeutil import utc_now


class ItemStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DISCONTINUED = "DISCONTINUED"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class Dimensions(BaseModel):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class ItemRecord(BaseModel):
    """
    The stock-bearing part of an item, independent of where it is persisted.
    `quantity`, `status` and `version` are written only by the adjustment service.
    """
    id: UUID = Field(default_factory=uuid4)

    # --- Identification ---
    name: str
    sku: str
    barcode: Optional[str] = None
    description: Optional[str] = None

    # --- Financials ---
    price: float = Field(default=0.0, ge=0)
    cost: float = Field(default=0.0, ge=0)

    # --- Stock ---
    quantity: int = Field(default=0, ge=0)
    initial_quantity: int = Field(default=0, ge=0)  # replay seed
    min_quantity: int = Field(default=0, ge=0)
    max_quantity: Optional[int] = Field(default=None, ge=0)
    status: ItemStatus = ItemStatus.ACTIVE
    version: int = 0

    # --- Physical ---
    unit: str = "pcs"
    weight: Optional[float] = None
    dimensions: Optional[Dimensions] = None
    location: Optional[str] = None  # e.g., "Aisle 4, Shelf B"
    notes: Optional[str] = None

    # --- Links ---
    category_id: UUID
    supplier_id: Optional[UUID] = None

    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity


class Item(ItemRecord, Document):
    class Settings:
        name = "items"
        indexes = [
            IndexModel([("sku", ASCENDING)], unique=True),
            # barcode is optional, uniqueness only applies when it is set
            IndexModel(
                [("barcode", ASCENDING)],
                unique=True,
                partialFilterExpression={"barcode": {"$type": "string"}},
            ),
            "category_id",
            "supplier_id",
            "quantity",
        ]
