"""HR admin column management: permissions, visibility, order, deletion."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import SessionUser, require_hr_admin
from ..database import get_db
from ..schemas.column import PermissionsUpdate, ReorderRequest
from ..services import column_svc
from .columns import column_out, grouped_out

router = APIRouter(prefix="/api/admin/columns")


def _matrix_input(data: PermissionsUpdate) -> dict:
    return {role: flags.model_dump() for role, flags in data.role_permissions.items()}


@router.get("")
async def list_all_columns(
    grouped: bool = False,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    columns = await column_svc.list_columns(db)
    if grouped:
        return {"data": grouped_out(columns)}
    return {"data": [column_out(c) for c in columns]}


@router.post("/reorder")
async def reorder_columns(
    data: ReorderRequest,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    columns = await column_svc.reorder_columns(
        db, [u.model_dump() for u in data.updates], user.role
    )
    return {"data": [column_out(c) for c in columns]}


@router.patch("/{column_id}")
async def update_permissions(
    column_id: uuid.UUID,
    data: PermissionsUpdate,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    column = await column_svc.set_column_permissions(db, column_id, _matrix_input(data), user.role)
    return {"data": column_out(column)}


@router.post("/{column_id}/hide")
async def hide_column(
    column_id: uuid.UUID,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    column, saved = await column_svc.hide(db, column_id, user.role)
    return {"data": column_out(column), "saved_permissions": saved.to_dict()}


@router.post("/{column_id}/unhide")
async def unhide_column(
    column_id: uuid.UUID,
    data: PermissionsUpdate,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    column = await column_svc.unhide(db, column_id, _matrix_input(data), user.role)
    return {"data": column_out(column)}


@router.delete("/{column_id}")
async def delete_column(
    column_id: uuid.UUID,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    affected = await column_svc.delete_column(db, column_id, user.role)
    return {"data": {"success": True, "affected_records": affected}}
