"""Party custom data for one employee, scoped to the caller's own table."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import SessionUser, require_party
from ..database import get_db
from ..permissions import can_view
from ..schemas.custom_data import CustomDataUpdate
from ..services import column_svc, employee_svc, party_data_svc
from ..services.projection import authorize_custom_data_write

router = APIRouter(prefix="/api/employees")


async def _visible_document(db: AsyncSession, employee_id: uuid.UUID, user: SessionUser) -> dict:
    document = await party_data_svc.get(db, employee_id, user.role)
    columns = await column_svc.list_columns(db)
    return {
        c.column_name: document.get(c.column_name)
        for c in columns
        if not c.is_masterdata and can_view(user.role, c)
    }


@router.get("/{employee_id}/custom-data")
async def get_custom_data(
    employee_id: uuid.UUID,
    user: SessionUser = Depends(require_party),
    db: AsyncSession = Depends(get_db),
):
    await employee_svc.get_employee(db, employee_id)
    return {"data": await _visible_document(db, employee_id, user)}


@router.patch("/{employee_id}/custom-data")
async def update_custom_data(
    employee_id: uuid.UUID,
    data: CustomDataUpdate,
    user: SessionUser = Depends(require_party),
    db: AsyncSession = Depends(get_db),
):
    await employee_svc.get_employee(db, employee_id)
    columns = await column_svc.list_columns(db)
    cleaned = authorize_custom_data_write(columns, user.role, data.root)
    await party_data_svc.patch(db, employee_id, user.role, cleaned)
    return {"data": await _visible_document(db, employee_id, user)}
