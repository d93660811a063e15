"""Column registry: masterdata + custom column definitions and their matrices."""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Mapping

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import DuplicateName, Forbidden, NotFound, ValidationError
from ..models.column import COLUMN_TYPES, ColumnConfig
from ..permissions import (
    NO_ACCESS,
    READ_ONLY,
    FULL_ACCESS,
    PermissionMatrix,
    can_edit,
    can_view,
    hide_column,
    replace_permissions,
    unhide_column,
)
from ..roles import PARTY_ROLES, Role, is_external_party, is_hr_admin, parse_role
from ..schemas.column import normalize_category, normalize_column_name
from . import party_data_svc

log = logging.getLogger(__name__)

MASTERDATA_CATEGORY = "Employee Information"
UNCATEGORIZED = "Uncategorized"

# name, type, parties with read-only access
MASTERDATA_COLUMNS: list[tuple[str, str, tuple[Role, ...]]] = [
    ("First Name", "text", PARTY_ROLES),
    ("Surname", "text", PARTY_ROLES),
    ("SSN", "text", (Role.PAYROLL,)),
    ("Email", "text", PARTY_ROLES),
    ("Mobile", "text", (Role.SODEXO, Role.OMC, Role.TOPLUX)),
    ("Town District", "text", (Role.SODEXO, Role.OMC, Role.TOPLUX)),
    ("Rank", "text", PARTY_ROLES),
    ("Gender", "text", ()),
    ("Hire Date", "date", PARTY_ROLES),
    ("Termination Date", "date", ()),
    ("Termination Reason", "text", ()),
    ("Status", "text", PARTY_ROLES),
    ("Comments", "text", ()),
]


def _require_hr_admin(role: str | Role, message: str) -> None:
    if not is_hr_admin(role):
        raise Forbidden(message)


async def list_columns(db: AsyncSession) -> list[ColumnConfig]:
    stmt = select(ColumnConfig).order_by(ColumnConfig.display_order, ColumnConfig.created_at)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_columns_for_role(db: AsyncSession, role: str | Role) -> list[ColumnConfig]:
    """Columns the role can view, in display order."""
    return [c for c in await list_columns(db) if can_view(role, c)]


async def get_column(db: AsyncSession, column_id: uuid.UUID) -> ColumnConfig:
    column = await db.get(ColumnConfig, column_id)
    if column is None:
        raise NotFound("Column not found")
    return column


async def find_by_name(
    db: AsyncSession, column_name: str, *, exclude_id: uuid.UUID | None = None
) -> ColumnConfig | None:
    """Case-insensitive lookup by name."""
    stmt = select(ColumnConfig).where(
        func.lower(ColumnConfig.column_name) == column_name.strip().lower()
    )
    if exclude_id is not None:
        stmt = stmt.where(ColumnConfig.id != exclude_id)
    return (await db.execute(stmt.limit(1))).scalar_one_or_none()


async def _next_display_order(db: AsyncSession) -> int:
    current = (await db.execute(select(func.max(ColumnConfig.display_order)))).scalar()
    return 0 if current is None else current + 1


def _validated_name(raw: str) -> str:
    try:
        return normalize_column_name(raw)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def _validated_category(raw: str | None) -> str | None:
    try:
        return normalize_category(raw)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


async def create_column(
    db: AsyncSession,
    *,
    column_name: str,
    column_type: str,
    acting_role: str | Role,
    category: str | None = None,
) -> ColumnConfig:
    """Create a custom column. The creating party gets view + edit."""
    if is_hr_admin(acting_role):
        raise Forbidden("HR Admin cannot create custom columns")
    if not is_external_party(acting_role):
        raise Forbidden("Only external parties can create custom columns")
    role = parse_role(acting_role)

    name = _validated_name(column_name)
    if column_type not in COLUMN_TYPES:
        raise ValidationError(f"Column type must be one of: {', '.join(COLUMN_TYPES)}")
    category = _validated_category(category)

    if await find_by_name(db, name):
        raise DuplicateName(f'A column named "{name}" already exists')

    column = ColumnConfig(
        column_name=name,
        column_type=column_type,
        is_masterdata=False,
        category=category,
        display_order=await _next_display_order(db),
        role_permissions=PermissionMatrix({role: FULL_ACCESS}).to_dict(),
    )
    db.add(column)
    await db.commit()
    await db.refresh(column)
    log.info("column %r created by %s", name, role.value)
    return column


async def update_column(
    db: AsyncSession,
    column_id: uuid.UUID,
    acting_role: str | Role,
    *,
    column_name: str | None = None,
    category: str | None = None,
    column_type: str | None = None,
    fields_set: Iterable[str] | None = None,
) -> ColumnConfig:
    """Rename and/or recategorise a custom column.

    ``fields_set`` lists the fields the caller actually sent, so that an
    explicit ``category: null`` clears the category while an omitted one
    leaves it alone. When not given, only non-None values are applied.
    """
    if is_hr_admin(acting_role):
        raise Forbidden("HR Admin must use the admin panel to manage columns")
    if column_type is not None:
        raise ValidationError("Column type cannot be changed after creation")

    column = await get_column(db, column_id)
    if column.is_masterdata:
        raise Forbidden("Cannot modify masterdata columns")
    if not can_edit(acting_role, column):
        raise Forbidden("You do not have permission to edit this column")

    sent = set(fields_set) if fields_set is not None else {
        k for k, v in (("column_name", column_name), ("category", category)) if v is not None
    }

    if "column_name" in sent and column_name is not None:
        name = _validated_name(column_name)
        if await find_by_name(db, name, exclude_id=column.id):
            raise DuplicateName(f'A column named "{name}" already exists')
        old_name = column.column_name
        if name != old_name:
            for role in PARTY_ROLES:
                await party_data_svc.rename_key_everywhere(db, role, old_name, name)
            column.column_name = name

    if "category" in sent:
        column.category = _validated_category(category)

    await db.commit()
    await db.refresh(column)
    return column


async def set_column_permissions(
    db: AsyncSession,
    column_id: uuid.UUID,
    role_permissions: Mapping,
    acting_role: str | Role,
) -> ColumnConfig:
    """Replace a column's matrix. HR admin only."""
    _require_hr_admin(acting_role, "Only HR Admin can change column permissions")
    matrix = PermissionMatrix.from_input(role_permissions)
    column = await get_column(db, column_id)
    replace_permissions(column, matrix)
    await db.commit()
    await db.refresh(column)
    log.info("[AUDIT] permissions of column %r set to %s", column.column_name, matrix.to_dict())
    return column


async def hide(
    db: AsyncSession, column_id: uuid.UUID, acting_role: str | Role
) -> tuple[ColumnConfig, PermissionMatrix]:
    """Hide a column from every party. Returns the column and the saved matrix."""
    _require_hr_admin(acting_role, "Only HR Admin can hide columns")
    column = await get_column(db, column_id)
    saved = column.permissions
    hide_column(column)
    await db.commit()
    await db.refresh(column)
    log.info("[AUDIT] column %r hidden", column.column_name)
    return column, saved


async def unhide(
    db: AsyncSession,
    column_id: uuid.UUID,
    saved_permissions: PermissionMatrix | Mapping,
    acting_role: str | Role,
) -> ColumnConfig:
    _require_hr_admin(acting_role, "Only HR Admin can unhide columns")
    if not isinstance(saved_permissions, PermissionMatrix):
        saved_permissions = PermissionMatrix.from_input(saved_permissions)
    column = await get_column(db, column_id)
    unhide_column(column, saved_permissions)
    await db.commit()
    await db.refresh(column)
    log.info("[AUDIT] column %r restored to %s", column.column_name, saved_permissions.to_dict())
    return column


async def delete_column(
    db: AsyncSession, column_id: uuid.UUID, acting_role: str | Role
) -> int:
    """Delete a custom column and sweep its key from every party table.

    Each party table is cleaned and committed on its own; a failing table is
    logged and skipped. The definition is deleted regardless. Returns the
    number of party records that were actually cleaned.
    """
    _require_hr_admin(acting_role, "Only HR Admin can delete columns")
    column = await get_column(db, column_id)
    if column.is_masterdata:
        raise Forbidden("Cannot delete masterdata columns")

    name = column.column_name
    affected = 0
    for role in PARTY_ROLES:
        try:
            count = await party_data_svc.remove_key_everywhere(db, role, name)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            log.exception("failed to remove column %r from %s data", name, role.value)
            continue
        affected += count

    await db.execute(delete(ColumnConfig).where(ColumnConfig.id == column_id))
    await db.commit()
    log.info("[AUDIT] column %r deleted, %d party records cleaned", name, affected)
    return affected


async def reorder_columns(
    db: AsyncSession, updates: list[Mapping], acting_role: str | Role
) -> list[ColumnConfig]:
    """Apply ``[{id, display_order}]``. Unknown ids abort the whole batch."""
    _require_hr_admin(acting_role, "Only HR Admin can reorder columns")
    ids = [uuid.UUID(str(u["id"])) for u in updates]
    result = await db.execute(select(ColumnConfig).where(ColumnConfig.id.in_(ids)))
    by_id = {c.id: c for c in result.scalars().all()}
    missing = [str(i) for i in ids if i not in by_id]
    if missing:
        raise NotFound(f"Column not found: {', '.join(missing)}")

    orders = [u["display_order"] for u in updates]
    for order in orders:
        if not isinstance(order, int) or isinstance(order, bool) or order < 0:
            raise ValidationError("display_order must be a non-negative integer")

    for column_id, order in zip(ids, orders):
        by_id[column_id].display_order = order
    await db.commit()
    return await list_columns(db)


def group_columns_by_category(columns: Iterable[ColumnConfig]) -> dict[str, list[ColumnConfig]]:
    """Masterdata under "Employee Information" first, then custom categories."""
    groups: dict[str, list[ColumnConfig]] = {MASTERDATA_CATEGORY: []}
    for column in columns:
        if column.is_masterdata:
            key = MASTERDATA_CATEGORY
        else:
            key = (column.category or "").strip() or UNCATEGORIZED
        groups.setdefault(key, []).append(column)
    if not groups[MASTERDATA_CATEGORY]:
        del groups[MASTERDATA_CATEGORY]
    return groups


async def seed_masterdata_columns(db: AsyncSession) -> int:
    """Insert any missing built-in columns. Returns how many were created."""
    created = 0
    for position, (name, column_type, readers) in enumerate(MASTERDATA_COLUMNS):
        if await find_by_name(db, name):
            continue
        matrix = PermissionMatrix(
            {role: READ_ONLY if role in readers else NO_ACCESS for role in PARTY_ROLES}
        )
        db.add(
            ColumnConfig(
                column_name=name,
                column_type=column_type,
                is_masterdata=True,
                category=None,
                display_order=position,
                role_permissions=matrix.to_dict(),
            )
        )
        created += 1
    if created:
        await db.commit()
        log.info("seeded %d masterdata columns", created)
    return created
