"""Employee model."""

from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDMixin


class Employee(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "employees"

    first_name: Mapped[str] = mapped_column(String(100))
    surname: Mapped[str] = mapped_column(String(100))
    ssn: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    mobile: Mapped[str | None] = mapped_column(String(50), default=None)
    rank: Mapped[str | None] = mapped_column(String(100), default=None)
    gender: Mapped[str | None] = mapped_column(String(30), default=None)
    town_district: Mapped[str | None] = mapped_column(String(100), default=None)
    hire_date: Mapped[date] = mapped_column(Date)
    termination_date: Mapped[date | None] = mapped_column(Date, default=None)
    termination_reason: Mapped[str | None] = mapped_column(String(500), default=None)
    is_terminated: Mapped[bool] = mapped_column(Boolean, default=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    comments: Mapped[str | None] = mapped_column(Text, default=None)

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.surname) if p]
        return " ".join(parts) or "Unnamed"

    @property
    def status(self) -> str:
        if self.is_archived:
            return "Archived"
        if self.is_terminated:
            return "Terminated"
        return "Active"

    def __repr__(self) -> str:
        return f"<Employee {self.full_name!r}>"
