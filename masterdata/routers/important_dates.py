"""Important dates: readable by every role, managed by HR admin."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import SessionUser, get_current_user, require_hr_admin
from ..database import get_db
from ..schemas.important_date import (
    ImportantDateCreate,
    ImportantDateResponse,
    ImportantDateUpdate,
)
from ..services import import_svc, important_date_svc
from .employees import read_csv_upload

router = APIRouter(prefix="/api/important-dates")


def date_out(important_date) -> dict:
    return ImportantDateResponse.model_validate(important_date).model_dump(mode="json")


@router.get("")
async def list_dates(
    category: str | None = None,
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    dates = await important_date_svc.list_dates(db, category)
    return {"data": [date_out(d) for d in dates], "meta": {"total": len(dates)}}


@router.post("", status_code=201)
async def create_date(
    data: ImportantDateCreate,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    important_date = await important_date_svc.create_date(db, data.model_dump(), user.role)
    return {"data": date_out(important_date)}


@router.post("/import")
async def import_dates(
    file: UploadFile = File(...),
    column_mapping: str | None = Form(None),
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    content = await read_csv_upload(file)
    mapping = import_svc.parse_column_mapping(column_mapping)
    result = await important_date_svc.import_dates(db, content, mapping, user.role)
    return {"data": result.to_dict()}


@router.patch("/{date_id}")
async def update_date(
    date_id: uuid.UUID,
    data: ImportantDateUpdate,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    important_date = await important_date_svc.update_date(
        db, date_id, data.model_dump(exclude_unset=True), user.role
    )
    return {"data": date_out(important_date)}


@router.delete("/{date_id}")
async def delete_date(
    date_id: uuid.UUID,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    await important_date_svc.delete_date(db, date_id, user.role)
    return {"data": {"success": True}}
