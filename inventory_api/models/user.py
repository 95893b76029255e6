from beanie import Document, Indexed
from pydantic import BaseModel, Field, EmailStr
from typing import Optional
from enum import Enum
from datetime import datetime
from uuid import UUID, uuid4

from inventory_api.core.timeutil import utc_now


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"
    VIEWER = "VIEWER"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class UserRef(BaseModel):
    """Who performed a movement, as shown next to ledger entries."""
    id: UUID
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class User(Document):
    id: UUID = Field(default_factory=uuid4)
    username: Indexed(str, unique=True)
    email: Indexed(EmailStr, unique=True)

    first_name: str
    last_name: str
    hashed_password: str
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    is_active: bool = True

    created_at: datetime = Field(default_factory=utc_now)
    last_login: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "users"

    def to_ref(self) -> UserRef:
        return UserRef(
            id=self.id,
            username=self.username,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
        )
