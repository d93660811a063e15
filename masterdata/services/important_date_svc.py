"""Important dates: CRUD for HR admin, read for everyone, CSV import."""

from __future__ import annotations

import logging
import re
import uuid
from collections import defaultdict
from typing import Mapping

from pydantic import ValidationError as SchemaError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import Forbidden, NotFound, ValidationError
from ..models.important_date import ImportantDate, duplicate_key
from ..roles import Role, is_hr_admin
from ..schemas.important_date import ImportantDateImportRow
from .import_svc import (
    ImportResult,
    ImportRowError,
    mapped_header,
    parse_csv,
)

log = logging.getLogger(__name__)

DATE_FIELDS = ("week_number", "year", "category", "date_description", "date_value", "notes")

DATE_HEADER_ALIASES = {
    "week": "week_number",
    "week_no": "week_number",
    "type": "category",
    "description": "date_description",
    "event": "date_description",
    "date": "date_value",
    "dates": "date_value",
    "comment": "notes",
    "comments": "notes",
}


def normalize_date_header(header: str) -> str:
    normalized = re.sub(r"\s+", "_", (header or "").strip().lower())
    return DATE_HEADER_ALIASES.get(normalized, normalized)


def _require_hr_admin(role: str | Role, action: str) -> None:
    if not is_hr_admin(role):
        raise Forbidden(f"Only HR Admin can {action}")


def _describe(key: tuple) -> str:
    week, year, category = key
    return f"Week {week if week is not None else 'none'}, Year {year}, Category {category}"


async def list_dates(db: AsyncSession, category: str | None = None) -> list[ImportantDate]:
    """Ordered by week (undated weeks last), then year."""
    stmt = select(ImportantDate)
    if category:
        stmt = stmt.where(ImportantDate.category == category)
    stmt = stmt.order_by(
        ImportantDate.week_number.is_(None),
        ImportantDate.week_number,
        ImportantDate.year,
        ImportantDate.created_at,
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_date(db: AsyncSession, date_id: uuid.UUID) -> ImportantDate:
    important_date = await db.get(ImportantDate, date_id)
    if important_date is None:
        raise NotFound(f"Important date with ID {date_id} not found")
    return important_date


async def create_date(
    db: AsyncSession, data: Mapping, acting_role: str | Role = Role.HR_ADMIN
) -> ImportantDate:
    _require_hr_admin(acting_role, "create important dates")
    important_date = ImportantDate(**{k: data[k] for k in DATE_FIELDS if k in data})
    db.add(important_date)
    await db.commit()
    await db.refresh(important_date)
    log.info("important date %s created", important_date.id)
    return important_date


async def update_date(
    db: AsyncSession,
    date_id: uuid.UUID,
    updates: Mapping,
    acting_role: str | Role = Role.HR_ADMIN,
) -> ImportantDate:
    _require_hr_admin(acting_role, "update important dates")
    unknown = set(updates) - set(DATE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown important date fields: {', '.join(sorted(unknown))}")
    if not updates:
        raise ValidationError("At least one field must be provided for update")

    important_date = await get_date(db, date_id)
    for key, value in updates.items():
        setattr(important_date, key, value)
    await db.commit()
    await db.refresh(important_date)
    return important_date


async def delete_date(
    db: AsyncSession, date_id: uuid.UUID, acting_role: str | Role = Role.HR_ADMIN
) -> None:
    _require_hr_admin(acting_role, "delete important dates")
    important_date = await get_date(db, date_id)
    await db.delete(important_date)
    await db.commit()
    log.info("important date %s deleted", date_id)


async def import_dates(
    db: AsyncSession,
    content: str | bytes,
    column_mapping: Mapping[str, str] | None = None,
    acting_role: str | Role = Role.HR_ADMIN,
) -> ImportResult:
    """Import dates from CSV.

    Rows that repeat a (week, year, category) key inside the file are all
    rejected, as are rows whose key already exists. Partial success returns
    normally; a file with nothing importable returns ``imported == 0``.
    """
    _require_hr_admin(acting_role, "import important dates")
    header = mapped_header(column_mapping) if column_mapping else normalize_date_header
    result = ImportResult()

    parsed: list[tuple[int, tuple, dict]] = []
    for row_number, row in parse_csv(content, header):
        raw = {k: row.get(k, "") for k in DATE_FIELDS}
        try:
            values = ImportantDateImportRow.model_validate(raw).model_dump()
        except SchemaError as exc:
            for err in exc.errors():
                loc = ".".join(str(p) for p in err.get("loc", ())) or None
                message = str(err.get("msg", "")).removeprefix("Value error, ")
                result.errors.append(ImportRowError(row_number, message, field=loc))
            continue
        key = duplicate_key(values["week_number"], values["year"], values["category"])
        parsed.append((row_number, key, values))

    rows_by_key: dict[tuple, list[int]] = defaultdict(list)
    for row_number, key, _ in parsed:
        rows_by_key[key].append(row_number)
    repeated = {
        row_number
        for rows in rows_by_key.values() if len(rows) > 1
        for row_number in rows
    }

    existing = {d.duplicate_key for d in await list_dates(db)}
    for row_number, key, values in parsed:
        if row_number in repeated:
            result.errors.append(
                ImportRowError(row_number, f"Duplicate date entry ({_describe(key)})")
            )
            continue
        if key in existing:
            result.errors.append(
                ImportRowError(row_number, f"Duplicate date entry already exists ({_describe(key)})")
            )
            continue
        try:
            async with db.begin_nested():
                db.add(ImportantDate(**values))
                await db.flush()
        except IntegrityError:
            log.warning("important date row %d rejected by the database", row_number)
            result.errors.append(ImportRowError(row_number, "Row could not be saved"))
            continue
        result.imported += 1

    await db.commit()
    log.info("imported %d important dates, skipped %d rows", result.imported, result.skipped)
    return result
