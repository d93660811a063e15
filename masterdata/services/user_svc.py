"""User accounts: login, HR admin management, bootstrap."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import hash_password_async, verify_password_async
from ..config import settings
from ..errors import Conflict, NotFound, ValidationError
from ..models.user import User
from ..roles import Role, parse_role

log = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(User.email == _normalize_email(email))
    return (await db.execute(stmt)).scalar_one_or_none()


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    if not await verify_password_async(password, user.password_hash):
        return None
    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.email))
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    role: str | Role,
    is_active: bool = True,
) -> User:
    email = _normalize_email(email)
    if not email or "@" not in email:
        raise ValidationError("Invalid email format")
    if not password or len(password) < 8:
        raise ValidationError("Password must be at least 8 characters")
    try:
        role = parse_role(role)
    except ValueError as exc:
        raise ValidationError(f"Unknown role: {role}") from exc
    if await get_user_by_email(db, email):
        raise Conflict(f"A user with email {email} already exists")

    user = User(
        email=email,
        password_hash=await hash_password_async(password),
        role=role.value,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    log.info("user %s created with role %s", email, role.value)
    return user


async def set_active(db: AsyncSession, user_id: uuid.UUID, is_active: bool) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    user.is_active = is_active
    await db.commit()
    await db.refresh(user)
    log.info("[AUDIT] user %s %s", user.email, "activated" if is_active else "deactivated")
    return user


async def ensure_bootstrap_admin(db: AsyncSession) -> User | None:
    """Create the configured HR admin account when no user has that email yet."""
    email = _normalize_email(settings.auth_bootstrap_email)
    if not email or not settings.auth_bootstrap_password:
        return None
    existing = await get_user_by_email(db, email)
    if existing:
        return existing
    return await create_user(
        db, email=email, password=settings.auth_bootstrap_password, role=Role.HR_ADMIN
    )
