from pydantic import BaseModel, EmailStr, Field
from typing import Dict, List, Optional
from inventory_api.models.user import UserRole, UserStatus
from inventory_api.schemas.common import PaginationInfo
from datetime import datetime
from uuid import UUID

# --- 1. TOKEN SCHEMAS ---
class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds

class RefreshRequest(BaseModel):
    refresh_token: str

# --- 2. USER INPUT ---
class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.USER

# Self-service signup never picks its own role
class UserRegister(UserBase):
    password: str = Field(..., min_length=8)

class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None

# --- 3. USER OUTPUT ---
class UserResponse(UserBase):
    id: UUID
    role: UserRole
    status: UserStatus
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class UserPage(BaseModel):
    users: List[UserResponse]
    pagination: PaginationInfo

class UserStats(BaseModel):
    total_users: int
    active_users: int
    by_role: Dict[UserRole, int]

class LoginResponse(Token):
    user: UserResponse
