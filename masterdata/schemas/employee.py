"""Employee schemas."""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

SSN_RE = re.compile(r"^\d{10}$|^\d{12}$|^\d{6,8}-\d{4}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

Gender = Literal["Male", "Female", "Other", "Prefer not to say"]

OPTIONAL_TEXT = ("email", "mobile", "rank", "gender", "town_district", "comments")


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def check_ssn(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("SSN is required")
    if not SSN_RE.match(value):
        raise ValueError("SSN must be in format YYYYMMDD-XXXX or YYMMDD-XXXX")
    return value


def check_email(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not EMAIL_RE.match(value):
        raise ValueError("Invalid email format")
    return value


def check_hire_date(value: date) -> date:
    if value > date.today():
        raise ValueError("Hire date cannot be in the future")
    return value


class EmployeeBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    surname: str = Field(min_length=1, max_length=100)
    ssn: str
    email: str | None = None
    mobile: str | None = None
    rank: str | None = None
    gender: Gender | None = None
    town_district: str | None = None
    hire_date: date
    comments: str | None = None

    @field_validator(*OPTIONAL_TEXT, mode="before")
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator("ssn")
    @classmethod
    def _ssn(cls, v: str) -> str:
        return check_ssn(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return check_email(v)

    @field_validator("hire_date")
    @classmethod
    def _hire_date(cls, v: date) -> date:
        return check_hire_date(v)


class EmployeeCreate(EmployeeBase):
    rank: str = Field(min_length=1)


class EmployeeImportRow(EmployeeBase):
    """CSV rows are looser than the create form: rank may be empty."""


class EmployeeUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    surname: str | None = Field(default=None, min_length=1, max_length=100)
    ssn: str | None = None
    email: str | None = None
    mobile: str | None = None
    rank: str | None = None
    gender: Gender | None = None
    town_district: str | None = None
    hire_date: date | None = None
    comments: str | None = None

    @field_validator(*OPTIONAL_TEXT, mode="before")
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator("ssn")
    @classmethod
    def _ssn(cls, v: str | None) -> str | None:
        return None if v is None else check_ssn(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return check_email(v)

    @field_validator("hire_date")
    @classmethod
    def _hire_date(cls, v: date | None) -> date | None:
        return None if v is None else check_hire_date(v)

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class TerminateRequest(BaseModel):
    termination_date: date
    termination_reason: str = Field(min_length=1, max_length=500)


class EmployeeResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    surname: str
    ssn: str
    email: str | None = None
    mobile: str | None = None
    rank: str | None = None
    gender: str | None = None
    town_district: str | None = None
    hire_date: date
    termination_date: date | None = None
    termination_reason: str | None = None
    is_terminated: bool
    is_archived: bool
    comments: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
