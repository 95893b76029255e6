from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from inventory_api.models.supplier import SupplierStatus
from inventory_api.schemas.common import PaginationInfo

# Fields shared by create and response
class SupplierBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None

# POST body
class SupplierCreate(SupplierBase):
    pass

# PUT body, every field optional
class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    status: Optional[SupplierStatus] = None

# item_count is filled in by the router
class SupplierResponse(SupplierBase):
    id: UUID
    status: SupplierStatus
    is_active: bool
    item_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class SupplierPage(BaseModel):
    suppliers: List[SupplierResponse]
    pagination: PaginationInfo
