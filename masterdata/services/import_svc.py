"""Bulk employee import from CSV, plus the CSV helpers shared by other imports."""

from __future__ import annotations

import csv
import io
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Mapping

from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import ValidationError
from ..models.employee import Employee
from ..schemas.employee import EmployeeImportRow
from .change_svc import EmployeeChange, feed, snapshot
from .employee_svc import find_by_ssn

log = logging.getLogger(__name__)

HEADER_ALIASES = {
    "firstname": "first_name",
    "given_name": "first_name",
    "last_name": "surname",
    "lastname": "surname",
    "family_name": "surname",
    "social_security_no": "ssn",
    "social_security_number": "ssn",
    "personal_number": "ssn",
    "phone": "mobile",
    "mobile_phone": "mobile",
    "position": "rank",
    "title": "rank",
    "sex": "gender",
    "town": "town_district",
    "district": "town_district",
    "location": "town_district",
    "start_date": "hire_date",
    "employment_date": "hire_date",
    "notes": "comments",
    "remarks": "comments",
}

IMPORT_FIELDS = (
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


@dataclass
class ImportRowError:
    row: int
    message: str
    field: str | None = None

    def to_dict(self) -> dict:
        data = {"row": self.row, "message": self.message}
        if self.field:
            data["field"] = self.field
        return data


@dataclass
class ImportResult:
    imported: int = 0
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len({e.row for e in self.errors})

    def to_dict(self) -> dict:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": [e.to_dict() for e in sorted(self.errors, key=lambda e: e.row)],
        }


def normalize_header(header: str) -> str:
    normalized = re.sub(r"\s+", "_", (header or "").strip().lower())
    return HEADER_ALIASES.get(normalized, normalized)


IGNORE = "ignore"


def parse_column_mapping(raw: str | Mapping | None) -> dict[str, str] | None:
    """Decode a ``{csv header: field}`` mapping sent alongside an upload."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError("Column mapping must be valid JSON") from exc
    if not isinstance(raw, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
    ):
        raise ValidationError("Column mapping must map CSV headers to field names")
    return {k.strip(): v.strip() for k, v in raw.items()}


def mapped_header(column_mapping: Mapping[str, str]) -> Callable[[str], str]:
    """Header function for an explicit mapping. Unmapped and ignored headers are dropped."""

    def _header(header: str) -> str:
        target = column_mapping.get((header or "").strip(), IGNORE)
        return "" if target == IGNORE else target

    return _header


def parse_csv(
    content: str | bytes, header: Callable[[str], str] = normalize_header
) -> list[tuple[int, dict]]:
    """Parse CSV text into ``(row_number, row)`` pairs; the header is row 1.

    ``header`` maps each raw header to a field name; an empty name drops the
    column.
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ValidationError("CSV file must be UTF-8 encoded") from exc

    reader = csv.DictReader(io.StringIO(content))
    try:
        if not reader.fieldnames:
            raise ValidationError("CSV file is empty")
        reader.fieldnames = [header(h) for h in reader.fieldnames]
        rows = []
        for row in reader:
            values = {k: (v or "").strip() for k, v in row.items() if k}
            if not any(values.values()):
                continue
            rows.append((len(rows) + 2, values))
    except csv.Error as exc:
        raise ValidationError(f"CSV parsing error: {exc}") from exc

    if not rows:
        raise ValidationError("CSV file is empty")
    if len(rows) > settings.import_max_rows:
        raise ValidationError(f"CSV file has more than {settings.import_max_rows} rows")
    return rows


def format_schema_error(exc: SchemaError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return ", ".join(parts)


async def import_employees(
    db: AsyncSession, content: str | bytes, column_mapping: Mapping[str, str] | None = None
) -> ImportResult:
    """Validate every row on its own, then insert the valid ones.

    Each insert runs in its own savepoint so a row the database rejects is
    reported without undoing the others.
    """
    result = ImportResult()
    valid: list[tuple[int, dict]] = []
    header = mapped_header(column_mapping) if column_mapping else normalize_header

    for row_number, row in parse_csv(content, header):
        raw = {k: row.get(k, "") for k in IMPORT_FIELDS}
        try:
            parsed = EmployeeImportRow.model_validate(raw)
        except SchemaError as exc:
            result.errors.append(ImportRowError(row_number, format_schema_error(exc)))
            continue
        valid.append((row_number, parsed.model_dump()))

    if not valid:
        raise ValidationError(
            "No valid employees found in CSV",
            details=[e.to_dict() for e in result.errors],
        )

    seen: set[str] = set()
    added: list[Employee] = []
    for row_number, values in valid:
        ssn = values["ssn"]
        if ssn in seen or await find_by_ssn(db, ssn):
            result.errors.append(
                ImportRowError(row_number, f"An employee with SSN {ssn} already exists")
            )
            continue
        seen.add(ssn)
        employee = Employee(**values)
        try:
            async with db.begin_nested():
                db.add(employee)
                await db.flush()
        except IntegrityError:
            log.warning("import row %d rejected by the database", row_number)
            result.errors.append(
                ImportRowError(row_number, f"An employee with SSN {ssn} already exists")
            )
            continue
        added.append(employee)

    await db.commit()

    for employee in added:
        feed.publish(EmployeeChange("INSERT", None, snapshot(employee)))
    result.imported = len(added)
    log.info("imported %d employees, skipped %d rows", result.imported, result.skipped)
    return result
