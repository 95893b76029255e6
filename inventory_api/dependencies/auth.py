from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from inventory_api.core.security import decode_token
from inventory_api.models.user import User, UserRole, UserStatus

# 1. SETUP OAUTH2
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

# 2. GET CURRENT USER (Base Dependency)
async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(token)
    except JWTError:
        raise credentials_exception

    username = payload.get("sub")
    if username is None or payload.get("type") != "access":
        raise credentials_exception

    user = await User.find_one(User.username == username)
    if user is None:
        raise credentials_exception

    return user

# 3. GET ACTIVE USER
async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    if not current_user.is_active or current_user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return current_user

# 4. ROLE GUARDS
def require_roles(*roles: UserRole):
    """Dependency factory: only lets the listed roles through."""
    async def guard(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access Denied: requires one of {allowed}",
            )
        return current_user
    return guard

get_admin_user = require_roles(UserRole.ADMIN)

# Catalogue maintenance (items, categories, suppliers)
get_manager_user = require_roles(UserRole.ADMIN, UserRole.MANAGER)

# Anyone allowed to move stock; viewers are read-only
get_operator_user = require_roles(UserRole.ADMIN, UserRole.MANAGER, UserRole.USER)
