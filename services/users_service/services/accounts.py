"""Account registration, login and admin account controls."""

import uuid
from typing import Optional

from libs.auth.tokens import hash_password, verify_password
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from libs.common.logging import get_logger
from services.users_service.models import User
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_user_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: Optional[str] = None,
) -> User:
    if await get_user_by_email(db, email):
        raise ConflictError("An account with this email already exists")

    user = User(
        email=email.strip().lower(),
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        phone=phone,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Verify credentials; disabled accounts cannot log in."""
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if user.is_disabled:
        raise PermissionDeniedError("Account is disabled", code="ACCOUNT_DISABLED")

    user.last_active_at = utc_now()
    await db.commit()
    return user


async def set_disabled(db: AsyncSession, user: User, disabled: bool) -> User:
    user.is_disabled = disabled
    await db.commit()
    await db.refresh(user)
    return user


async def set_admin(db: AsyncSession, user: User, is_admin: bool) -> User:
    user.is_admin = is_admin
    await db.commit()
    await db.refresh(user)
    return user
