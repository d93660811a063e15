"""Employee service - HR admin CRUD, lifecycle, per-role listing."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Mapping

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import Conflict, Forbidden, NotFound, ValidationError
from ..models.employee import Employee
from ..roles import Role, is_external_party, is_hr_admin
from . import column_svc, party_data_svc
from .change_svc import EmployeeChange, feed, snapshot
from .projection import authorize_masterdata_write, project_for_read

log = logging.getLogger(__name__)

EMPLOYEE_FIELDS = (
    "first_name",
    "surname",
    "ssn",
    "email",
    "mobile",
    "rank",
    "gender",
    "town_district",
    "hire_date",
    "comments",
)
REQUIRED_FIELDS = ("first_name", "surname", "ssn", "hire_date")


def _require_hr_admin(role: str | Role, action: str) -> None:
    if not is_hr_admin(role):
        raise Forbidden(f"Only HR Admin can {action}")


async def list_employees(
    db: AsyncSession,
    *,
    include_archived: bool = False,
    include_terminated: bool = True,
    search: str | None = None,
) -> list[Employee]:
    stmt = select(Employee)
    if not include_archived:
        stmt = stmt.where(Employee.is_archived.is_(False))
    if not include_terminated:
        stmt = stmt.where(Employee.is_terminated.is_(False))
    if search and search.strip():
        q = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Employee.first_name.ilike(q),
                Employee.surname.ilike(q),
                Employee.email.ilike(q),
                Employee.mobile.ilike(q),
                Employee.rank.ilike(q),
                Employee.ssn.ilike(q),
            )
        )
    stmt = stmt.order_by(Employee.surname, Employee.first_name)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise NotFound("Employee not found")
    return employee


async def find_by_ssn(
    db: AsyncSession, ssn: str, *, exclude_id: uuid.UUID | None = None
) -> Employee | None:
    stmt = select(Employee).where(Employee.ssn == ssn.strip())
    if exclude_id is not None:
        stmt = stmt.where(Employee.id != exclude_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def _commit_or_conflict(db: AsyncSession, ssn: str | None) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise Conflict(f"An employee with SSN {ssn} already exists") from exc


async def create_employee(
    db: AsyncSession, data: Mapping, acting_role: str | Role = Role.HR_ADMIN
) -> Employee:
    _require_hr_admin(acting_role, "create employees")
    values = {k: data[k] for k in EMPLOYEE_FIELDS if k in data}
    ssn = values.get("ssn")
    if not ssn:
        raise ValidationError("SSN is required")
    if await find_by_ssn(db, ssn):
        raise Conflict(f"An employee with SSN {ssn} already exists")

    employee = Employee(**values)
    db.add(employee)
    await _commit_or_conflict(db, ssn)
    await db.refresh(employee)
    feed.publish(EmployeeChange("INSERT", None, snapshot(employee)))
    log.info("employee %s created", employee.id)
    return employee


async def update_employee(
    db: AsyncSession,
    employee_id: uuid.UUID,
    updates: Mapping,
    acting_role: str | Role = Role.HR_ADMIN,
) -> Employee:
    _require_hr_admin(acting_role, "update employees")
    columns = await column_svc.list_columns(db)
    authorize_masterdata_write(columns, acting_role, updates.keys())
    for key in REQUIRED_FIELDS:
        if key in updates and updates[key] is None:
            raise ValidationError(f"{key} cannot be empty")

    employee = await get_employee(db, employee_id)
    old = snapshot(employee)

    ssn = updates.get("ssn")
    if ssn and ssn != employee.ssn and await find_by_ssn(db, ssn, exclude_id=employee.id):
        raise Conflict(f"An employee with SSN {ssn} already exists")

    for key, value in updates.items():
        setattr(employee, key, value)
    await _commit_or_conflict(db, ssn)
    await db.refresh(employee)
    feed.publish(EmployeeChange("UPDATE", old, snapshot(employee)))
    return employee


async def _set_flags(
    db: AsyncSession, employee_id: uuid.UUID, **values
) -> Employee:
    employee = await get_employee(db, employee_id)
    old = snapshot(employee)
    for key, value in values.items():
        setattr(employee, key, value)
    await db.commit()
    await db.refresh(employee)
    feed.publish(EmployeeChange("UPDATE", old, snapshot(employee)))
    return employee


async def archive_employee(
    db: AsyncSession, employee_id: uuid.UUID, acting_role: str | Role = Role.HR_ADMIN
) -> Employee:
    _require_hr_admin(acting_role, "archive employees")
    return await _set_flags(db, employee_id, is_archived=True)


async def unarchive_employee(
    db: AsyncSession, employee_id: uuid.UUID, acting_role: str | Role = Role.HR_ADMIN
) -> Employee:
    _require_hr_admin(acting_role, "unarchive employees")
    return await _set_flags(db, employee_id, is_archived=False)


async def terminate_employee(
    db: AsyncSession,
    employee_id: uuid.UUID,
    termination_date: date,
    termination_reason: str,
    acting_role: str | Role = Role.HR_ADMIN,
) -> Employee:
    _require_hr_admin(acting_role, "terminate employees")
    reason = (termination_reason or "").strip()
    if not reason or len(reason) > 500:
        raise ValidationError("Termination reason must be between 1 and 500 characters")
    if termination_date is None:
        raise ValidationError("Termination date is required")
    return await _set_flags(
        db,
        employee_id,
        is_terminated=True,
        termination_date=termination_date,
        termination_reason=reason,
    )


async def list_employees_for_role(
    db: AsyncSession,
    role: str | Role,
    *,
    include_archived: bool = False,
    include_terminated: bool = True,
    search: str | None = None,
) -> list[dict]:
    """Employees projected to the columns ``role`` can view.

    Each row is ``{"id": ..., "data": {column_name: value}}``.
    """
    columns = await column_svc.list_columns_for_role(db, role)
    employees = await list_employees(
        db,
        include_archived=include_archived,
        include_terminated=include_terminated,
        search=search,
    )
    ids = [e.id for e in employees]
    documents: dict = {}
    if is_external_party(role):
        documents = await party_data_svc.get_many(db, ids, role)
    elif is_hr_admin(role):
        granted = [c.column_name for c in columns if not c.is_masterdata]
        documents = await party_data_svc.get_many_merged(db, ids, granted)

    return [
        {"id": str(e.id), "data": project_for_read(e, documents.get(e.id), role, columns)}
        for e in employees
    ]
