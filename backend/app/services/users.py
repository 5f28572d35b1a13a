from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.security import get_password_hash, verify_password
from app.models.user import User

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 10


class UserError(Exception):
    """Base error for account operations."""


class EmailAlreadyRegisteredError(UserError):
    """Raised when another account already uses the email."""


class InvalidPasswordError(UserError):
    """Raised when the current password does not match."""


class SearchQueryError(UserError):
    """Raised when a user search query is too short."""


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.exec(select(User).where(func.lower(User.email) == email.strip().lower()))
    return result.one_or_none()


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: Optional[str] = None,
) -> User:
    normalized = email.strip().lower()
    if await get_user_by_email(session, normalized):
        raise EmailAlreadyRegisteredError("Email already registered")
    user = User(
        email=normalized,
        full_name=full_name,
        hashed_password=get_password_hash(password),
    )
    session.add(user)
    await session.flush()
    return user


async def authenticate(session: AsyncSession, *, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


async def update_profile(
    session: AsyncSession,
    user: User,
    *,
    email: Optional[str] = None,
    full_name: Optional[str] = None,
) -> User:
    if email is not None and email.strip().lower() != user.email:
        existing = await get_user_by_email(session, email)
        if existing and existing.id != user.id:
            raise EmailAlreadyRegisteredError("Email already registered")
        user.email = email.strip().lower()
    if full_name is not None:
        user.full_name = full_name
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    await session.flush()
    return user


async def change_password(session: AsyncSession, user: User, *, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise InvalidPasswordError("Current password is incorrect")
    user.hashed_password = get_password_hash(new_password)
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    await session.flush()


async def search_users(session: AsyncSession, *, query: str) -> list[User]:
    """Case-insensitive substring match on email or name, capped at ``SEARCH_LIMIT``."""
    term = (query or "").strip().lower()
    if len(term) < SEARCH_MIN_LENGTH:
        raise SearchQueryError(f"Search query must be at least {SEARCH_MIN_LENGTH} characters")
    pattern = f"%{term}%"
    stmt = (
        select(User)
        .where(
            or_(
                func.lower(User.email).like(pattern),
                func.lower(func.coalesce(User.full_name, "")).like(pattern),
            )
        )
        .order_by(User.full_name.asc(), User.email.asc())
        .limit(SEARCH_LIMIT)
    )
    result = await session.exec(stmt)
    return list(result.all())
