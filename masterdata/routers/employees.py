"""Employee listing (projected per role) and HR admin lifecycle endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import SessionUser, get_current_user, require_hr_admin
from ..config import settings
from ..database import get_db
from ..errors import ValidationError
from ..models.employee import Employee
from ..schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate, TerminateRequest
from ..services import employee_svc, import_svc

router = APIRouter(prefix="/api/employees")


def employee_out(employee: Employee) -> dict:
    data = EmployeeResponse.model_validate(employee).model_dump(mode="json")
    data["status"] = employee.status
    return data


@router.get("")
async def list_employees(
    include_archived: bool = False,
    include_terminated: bool = True,
    search: str | None = None,
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await employee_svc.list_employees_for_role(
        db,
        user.role,
        include_archived=include_archived,
        include_terminated=include_terminated,
        search=search,
    )
    return {"data": rows, "meta": {"total": len(rows)}}


@router.post("", status_code=201)
async def create_employee(
    data: EmployeeCreate,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await employee_svc.create_employee(db, data.model_dump(), user.role)
    return {"data": employee_out(employee)}


async def read_csv_upload(file: UploadFile) -> bytes:
    if not (file.filename or "").lower().endswith(".csv"):
        raise ValidationError("File must be a CSV file")
    content = await file.read(settings.import_max_bytes + 1)
    if len(content) > settings.import_max_bytes:
        raise ValidationError("CSV file is too large")
    return content


@router.post("/import")
async def import_employees(
    file: UploadFile = File(...),
    column_mapping: str | None = Form(None),
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    content = await read_csv_upload(file)
    mapping = import_svc.parse_column_mapping(column_mapping)
    result = await import_svc.import_employees(db, content, mapping)
    return {"data": result.to_dict()}


@router.get("/{employee_id}")
async def get_employee(
    employee_id: uuid.UUID,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await employee_svc.get_employee(db, employee_id)
    return {"data": employee_out(employee)}


@router.patch("/{employee_id}")
async def update_employee(
    employee_id: uuid.UUID,
    data: EmployeeUpdate,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await employee_svc.update_employee(
        db, employee_id, data.model_dump(exclude_unset=True), user.role
    )
    return {"data": employee_out(employee)}


@router.post("/{employee_id}/archive")
async def archive_employee(
    employee_id: uuid.UUID,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await employee_svc.archive_employee(db, employee_id, user.role)
    return {"data": employee_out(employee)}


@router.post("/{employee_id}/unarchive")
async def unarchive_employee(
    employee_id: uuid.UUID,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await employee_svc.unarchive_employee(db, employee_id, user.role)
    return {"data": employee_out(employee)}


@router.post("/{employee_id}/terminate")
async def terminate_employee(
    employee_id: uuid.UUID,
    data: TerminateRequest,
    user: SessionUser = Depends(require_hr_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await employee_svc.terminate_employee(
        db, employee_id, data.termination_date, data.termination_reason, user.role
    )
    return {"data": employee_out(employee)}
