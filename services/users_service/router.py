"""Authentication and self-service account endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.auth.tokens import create_access_token
from libs.common.rate_limit import auth_limit
from libs.db.session import get_async_db
from services.users_service.schemas import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
    UserUpdate,
)
from services.users_service.services import (
    authenticate,
    get_user_or_404,
    register_user,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["auth"])


def _token_for(user) -> TokenResponse:
    token = create_access_token(str(user.id), email=user.email, is_admin=user.is_admin)
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/auth/register", response_model=TokenResponse, status_code=201)
@auth_limit
async def register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Create an account and return an access token."""
    user = await register_user(db, **data.model_dump())
    return _token_for(user)


@router.post("/auth/login", response_model=TokenResponse)
@auth_limit
async def login(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Exchange email and password for an access token."""
    user = await authenticate(db, data.email, data.password)
    return _token_for(user)


@router.get("/users/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Get my account."""
    return await get_user_or_404(db, current_user.id)


@router.patch("/users/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Update my profile fields."""
    user = await get_user_or_404(db, current_user.id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user
