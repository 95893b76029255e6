from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from inventory_api.schemas.common import PaginationInfo

# POST body; the slug is derived from the name
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

# PUT body
class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None

# item_count is filled in by the router
class CategoryResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    item_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class CategoryPage(BaseModel):
    categories: List[CategoryResponse]
    pagination: PaginationInfo
