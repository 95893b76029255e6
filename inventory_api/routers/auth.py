import logging

from fastapi import APIRouter, HTTPException, status, Depends
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError

from inventory_api.core.config import settings
from inventory_api.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from inventory_api.core.timeutil import utc_now
from inventory_api.dependencies.auth import get_current_active_user
from inventory_api.models.user import User, UserRole, UserStatus
from inventory_api.schemas.user import LoginResponse, RefreshRequest, Token, UserRegister, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_tokens(user: User) -> Token:
    return Token(
        access_token=create_access_token(data={"sub": user.username}),
        refresh_token=create_refresh_token(user.username),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


# ---------------------------------------------------------
# 1. LOGIN ENDPOINT (Get Tokens)
# ---------------------------------------------------------
@router.post("/login", response_model=LoginResponse)
async def login(form_data: OAuth2PasswordRequestForm = Depends()):
    # The form's "username" may hold either the username or the email
    identifier = form_data.username
    if "@" in identifier:
        user = await User.find_one(User.email == identifier)
    else:
        user = await User.find_one(User.username == identifier)

    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.info("failed login for %s", identifier)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active or user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    user.last_login = utc_now()
    await user.save()

    tokens = _issue_tokens(user)
    return LoginResponse(**tokens.model_dump(), user=UserResponse.model_validate(user))


# ---------------------------------------------------------
# 2. REGISTER (Self-service, always a plain USER)
# ---------------------------------------------------------
@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister):
    if await User.find_one(User.username == data.username):
        raise HTTPException(status_code=400, detail="Username already exists")
    if await User.find_one(User.email == data.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        **data.model_dump(exclude={"password"}),
        hashed_password=get_password_hash(data.password),
        role=UserRole.USER,
    )
    await user.insert()
    logger.info("registered user %s", user.username)
    return user


# ---------------------------------------------------------
# 3. REFRESH (Trade a refresh token for a fresh pair)
# ---------------------------------------------------------
@router.post("/refresh", response_model=Token)
async def refresh(data: RefreshRequest):
    invalid = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired refresh token")
    try:
        payload = decode_token(data.refresh_token)
    except JWTError:
        raise invalid

    username = payload.get("sub")
    if not username or payload.get("type") != "refresh":
        raise invalid

    user = await User.find_one(User.username == username)
    if not user or not user.is_active:
        raise invalid
    return _issue_tokens(user)


# ---------------------------------------------------------
# 4. WHO AM I
# ---------------------------------------------------------
@router.get("/me", response_model=UserResponse)
async def get_my_profile(current_user: User = Depends(get_current_active_user)):
    return current_user
