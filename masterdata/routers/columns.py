"""Column listing and party-managed custom columns."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import SessionUser, get_current_user
from ..database import get_db
from ..models.column import ColumnConfig
from ..schemas.column import ColumnCreate, ColumnResponse, ColumnUpdate
from ..services import column_svc

router = APIRouter(prefix="/api/columns")


def column_out(column: ColumnConfig) -> dict:
    return ColumnResponse.model_validate(column).model_dump(mode="json")


def grouped_out(columns: list[ColumnConfig]) -> list[dict]:
    return [
        {"category": category, "columns": [column_out(c) for c in items]}
        for category, items in column_svc.group_columns_by_category(columns).items()
    ]


@router.get("")
async def list_columns(
    grouped: bool = False,
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    columns = await column_svc.list_columns_for_role(db, user.role)
    if grouped:
        return {"data": grouped_out(columns)}
    return {"data": [column_out(c) for c in columns]}


@router.post("", status_code=201)
async def create_column(
    data: ColumnCreate,
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    column = await column_svc.create_column(
        db,
        column_name=data.column_name,
        column_type=data.column_type,
        category=data.category,
        acting_role=user.role,
    )
    return {"data": column_out(column)}


@router.patch("/{column_id}")
async def update_column(
    column_id: uuid.UUID,
    data: ColumnUpdate,
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    column = await column_svc.update_column(
        db,
        column_id,
        user.role,
        column_name=data.column_name,
        category=data.category,
        column_type=data.column_type,
        fields_set=data.model_fields_set,
    )
    return {"data": column_out(column)}
