from beanie import Document
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING, IndexModel
from typing import Optional
from enum import Enum
from uuid import UUID, uuid4
from datetime import datetime

from inventory_api.core.timeutil import utc_now


class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"
    TRANSFER = "TRANSFER"
    RETURN = "RETURN"


class MovementRecord(BaseModel):
    """
    One immutable ledger entry.

    `item_version` is the item version this movement produced; per item it
    grows by exactly one per committed movement, so it is the replay order.
    """
    id: UUID = Field(default_factory=uuid4)
    item_id: UUID
    type: MovementType
    quantity: int

    reason: Optional[str] = None
    reference: Optional[str] = None  # PO number, invoice, transfer slip...
    notes: Optional[str] = None
    user_id: Optional[UUID] = None

    quantity_before: int
    quantity_after: int
    item_version: int

    created_at: datetime = Field(default_factory=utc_now)


class Movement(MovementRecord, Document):
    class Settings:
        name = "movements"
        indexes = [
            IndexModel([("item_id", ASCENDING), ("item_version", ASCENDING)], unique=True),
            IndexModel([("created_at", DESCENDING)]),
            "type",
            "user_id",
        ]
