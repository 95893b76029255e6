from beanie import Document, Indexed
from pydantic import Field
from typing import Optional
from uuid import UUID, uuid4
from datetime import datetime

from inventory_api.core.timeutil import utc_now

class Category(Document):
    id: UUID = Field(default_factory=uuid4)  # Generates a random unique ID
    name: Indexed(str, unique=True)
    slug: Indexed(str, unique=True)          # e.g., "beverages"
    description: Optional[str] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "categories"
