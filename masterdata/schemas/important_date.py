"""Important date schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, Field, field_validator, model_validator

Category = Literal["Stena Dates", "ÖMC Dates", "PE3 Dates", "Other"]


def _blank_to_none(value):
    if isinstance(value, str):
        return value.strip() or None
    return value


class ImportantDateCreate(BaseModel):
    week_number: int | None = Field(default=None, ge=1, le=53)
    year: int = Field(ge=2020, le=2100)
    category: Category
    date_description: str = Field(min_length=1, max_length=255)
    date_value: str = Field(min_length=1, max_length=100)
    notes: str | None = None

    @field_validator("week_number", "notes", mode="before")
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator("date_description", "date_value", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class ImportantDateImportRow(ImportantDateCreate):
    """A CSV row; category is matched case-insensitively."""

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v):
        if not isinstance(v, str):
            return v
        wanted = v.strip().lower()
        for option in get_args(Category):
            if option.lower() == wanted:
                return option
        return v.strip()


class ImportantDateUpdate(BaseModel):
    week_number: int | None = Field(default=None, ge=1, le=53)
    year: int | None = Field(default=None, ge=2020, le=2100)
    category: Category | None = None
    date_description: str | None = Field(default=None, min_length=1, max_length=255)
    date_value: str | None = Field(default=None, min_length=1, max_length=100)
    notes: str | None = None

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        for key in ("year", "category", "date_description", "date_value"):
            if key in self.model_fields_set and getattr(self, key) is None:
                raise ValueError(f"{key} cannot be empty")
        return self


class ImportantDateResponse(BaseModel):
    id: uuid.UUID
    week_number: int | None = None
    year: int
    category: str
    date_description: str
    date_value: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
