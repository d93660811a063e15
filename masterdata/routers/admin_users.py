"""HR admin user management."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import SessionUser, require_hr_admin
from ..database import get_db
from ..errors import ValidationError
from ..models.user import User
from ..schemas.user import UserCreate, UserResponse, UserUpdate
from ..services import user_svc

router = APIRouter(prefix="/api/admin/users")


def user_out(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


@router.get("")
async def list_users(
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    return {"data": [user_out(u) for u in await user_svc.list_users(db)]}


@router.post("", status_code=201)
async def create_user(
    data: UserCreate,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    created = await user_svc.create_user(
        db, email=data.email, password=data.password, role=data.role, is_active=data.is_active
    )
    return {"data": user_out(created)}


@router.patch("/{user_id}")
async def update_user(
    user_id: uuid.UUID,
    data: UserUpdate,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    if str(user_id) == user.user_id and not data.is_active:
        raise ValidationError("You cannot deactivate your own account")
    updated = await user_svc.set_active(db, user_id, data.is_active)
    return {"data": user_out(updated)}
