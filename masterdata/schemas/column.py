"""Column request/response schemas."""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

COLUMN_NAME_MAX = 100
CATEGORY_MAX = 100
COLUMN_NAME_RE = re.compile(r"^[A-Za-z0-9 _\-]+$")

ColumnType = Literal["text", "number", "date", "boolean"]


def normalize_column_name(value: str) -> str:
    """Strip and validate a column name. Raises ValueError on bad input."""
    name = (value or "").strip()
    if not name:
        raise ValueError("Column name is required")
    if len(name) > COLUMN_NAME_MAX:
        raise ValueError(f"Column name must be less than {COLUMN_NAME_MAX} characters")
    if not COLUMN_NAME_RE.match(name):
        raise ValueError(
            "Column name can only contain letters, numbers, spaces, hyphens, and underscores"
        )
    return name


def normalize_category(value: str | None) -> str | None:
    if value is None:
        return None
    category = value.strip()
    if len(category) > CATEGORY_MAX:
        raise ValueError(f"Category must be {CATEGORY_MAX} characters or less")
    return category or None


class ColumnCreate(BaseModel):
    column_name: str
    column_type: ColumnType
    category: str | None = None

    @field_validator("column_name")
    @classmethod
    def _name(cls, v: str) -> str:
        return normalize_column_name(v)

    @field_validator("category")
    @classmethod
    def _category(cls, v: str | None) -> str | None:
        return normalize_category(v)


class ColumnUpdate(BaseModel):
    column_name: str | None = None
    category: str | None = None
    column_type: str | None = None

    @field_validator("column_name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return None if v is None else normalize_column_name(v)

    @field_validator("category")
    @classmethod
    def _category(cls, v: str | None) -> str | None:
        return normalize_category(v)


class PermissionFlags(BaseModel):
    view: bool
    edit: bool


class PermissionsUpdate(BaseModel):
    role_permissions: dict[str, PermissionFlags]


class ReorderItem(BaseModel):
    id: uuid.UUID
    display_order: int = Field(ge=0)


class ReorderRequest(BaseModel):
    updates: list[ReorderItem] = Field(min_length=1)


class ColumnResponse(BaseModel):
    id: uuid.UUID
    column_name: str
    column_type: str
    is_masterdata: bool
    category: str | None = None
    display_order: int
    role_permissions: dict[str, dict[str, bool]]
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
