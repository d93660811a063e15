"""Narrow employee + party data to what a role may see or write."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping

from ..errors import Forbidden, ValidationError
from ..models.column import ColumnConfig
from ..permissions import can_edit, can_view
from ..roles import Role, is_hr_admin

# masterdata column name -> Employee attribute
MASTERDATA_FIELD_MAP: dict[str, str] = {
    "First Name": "first_name",
    "Surname": "surname",
    "SSN": "ssn",
    "Email": "email",
    "Mobile": "mobile",
    "Town District": "town_district",
    "Rank": "rank",
    "Gender": "gender",
    "Hire Date": "hire_date",
    "Termination Date": "termination_date",
    "Termination Reason": "termination_reason",
    "Status": "status",
    "Comments": "comments",
}

FIELD_TO_COLUMN: dict[str, str] = {v: k for k, v in MASTERDATA_FIELD_MAP.items()}

# derived values, never written directly
COMPUTED_FIELDS = frozenset({"status"})


def masterdata_field(column_name: str) -> str:
    """Employee attribute backing a masterdata column."""
    mapped = MASTERDATA_FIELD_MAP.get(column_name)
    if mapped:
        return mapped
    return column_name.strip().lower().replace(" ", "_")


def project_for_read(
    employee,
    party_data: Mapping | None,
    role: str | Role,
    columns: Iterable[ColumnConfig],
) -> dict:
    """Return ``{column_name: value}`` for the columns ``role`` may view."""
    party_data = party_data or {}
    projected: dict = {}
    for column in columns:
        if not can_view(role, column):
            continue
        if column.is_masterdata:
            projected[column.column_name] = getattr(employee, masterdata_field(column.column_name), None)
        else:
            projected[column.column_name] = party_data.get(column.column_name)
    return projected


def authorize_write(column: ColumnConfig, role: str | Role) -> None:
    if not can_edit(role, column):
        raise Forbidden(f'You do not have permission to edit "{column.column_name}"')


def authorize_masterdata_write(
    columns: Iterable[ColumnConfig], role: str | Role, field_names: Iterable[str]
) -> None:
    """Check every touched Employee attribute against its masterdata column.

    The HR admin's masterdata access is structural, so it does not need the
    column rows to be present.
    """
    by_name = {c.column_name: c for c in columns if c.is_masterdata}
    for field in field_names:
        if field in COMPUTED_FIELDS:
            raise ValidationError(f"{field} cannot be written directly")
        column_name = FIELD_TO_COLUMN.get(field)
        if column_name is None:
            raise ValidationError(f"Unknown masterdata field: {field}")
        if is_hr_admin(role):
            continue
        column = by_name.get(column_name)
        if column is None:
            raise Forbidden(f'You do not have permission to edit "{column_name}"')
        authorize_write(column, role)


def coerce_custom_value(column: ColumnConfig, value):
    """Validate ``value`` against the column type. ``None`` clears a value."""
    if value is None:
        return None
    kind = column.column_type
    name = column.column_name
    if kind == "boolean":
        if not isinstance(value, bool):
            raise ValidationError(f'"{name}" expects true or false')
        return value
    if kind == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f'"{name}" expects a number')
        return value
    if kind == "date":
        if not isinstance(value, str):
            raise ValidationError(f'"{name}" expects a date (YYYY-MM-DD)')
        try:
            return date.fromisoformat(value).isoformat()
        except ValueError as exc:
            raise ValidationError(f'"{name}" expects a date (YYYY-MM-DD)') from exc
    if not isinstance(value, str):
        raise ValidationError(f'"{name}" expects text')
    return value


def authorize_custom_data_write(
    columns: Iterable[ColumnConfig], role: str | Role, updates: Mapping
) -> dict:
    """Validate a custom-data patch and return the cleaned updates."""
    by_name = {c.column_name: c for c in columns if not c.is_masterdata}
    cleaned = {}
    for key, value in updates.items():
        column = by_name.get(key)
        if column is None:
            raise ValidationError(f"Unknown custom column: {key}")
        authorize_write(column, role)
        cleaned[key] = coerce_custom_value(column, value)
    return cleaned


# kept on every snapshot so filters and view membership still work
LIFECYCLE_FIELDS = frozenset({"id", "is_archived", "is_terminated"})


def project_snapshot(snapshot: Mapping | None, role: str | Role, columns: Iterable[ColumnConfig]):
    """Copy of an employee snapshot with fields ``role`` cannot view set to None."""
    if snapshot is None:
        return None
    visible = {
        masterdata_field(c.column_name)
        for c in columns
        if c.is_masterdata and can_view(role, c)
    }
    return {
        key: value if key in LIFECYCLE_FIELDS or key in visible else None
        for key, value in snapshot.items()
    }
