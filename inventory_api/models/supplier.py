from beanie import Document, Indexed
from pydantic import Field, EmailStr
from typing import Optional
from enum import Enum
from uuid import UUID, uuid4
from datetime import datetime

from inventory_api.core.timeutil import utc_now


class SupplierStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class Supplier(Document):
    id: UUID = Field(default_factory=uuid4)

    # Company Details
    name: Indexed(str, unique=True)  # e.g. "Dangote Flour Mills"
    contact_name: Optional[str] = None

    # Contact Info
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None

    # Status
    status: SupplierStatus = SupplierStatus.ACTIVE
    is_active: bool = True  # Set to False if you stop trading with them

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "suppliers"
